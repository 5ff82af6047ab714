"""
BuildLedger configuration management.

Supports loading from YAML files, environment variables, and keyword overrides.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field


class InvoiceConfig(BaseModel):
    """Invoice numbering and defaults."""

    number_prefix: str = Field(default="INV", description="Prefix for generated invoice numbers")
    number_width: int = Field(default=3, ge=1, description="Zero-padded width of the numeric suffix")
    default_payment_terms: str = Field(default="Net 30")
    max_number_retries: int = Field(
        default=3,
        ge=1,
        description="Attempts to allocate an invoice number before giving up",
    )


class AgingConfig(BaseModel):
    """Risk tier thresholds for the aging classifier."""

    high_share: float = Field(default=0.50, ge=0.0, le=1.0, description="90+ share above which risk is high")
    high_days: int = Field(default=120, ge=0)
    medium_share: float = Field(default=0.20, ge=0.0, le=1.0)
    medium_days: int = Field(default=60, ge=0)
    reminder_days: int = Field(default=30, ge=0, description="Oldest-invoice age that triggers a reminder")


class BuildLedgerConfig(BaseModel):
    """Root configuration for BuildLedger."""

    invoice: InvoiceConfig = Field(default_factory=InvoiceConfig)
    aging: AgingConfig = Field(default_factory=AgingConfig)

    currency: str = Field(default="USD")
    log_level: str = Field(default="WARNING")

    @classmethod
    def load(cls, config_path: str | None = None, **overrides: Any) -> BuildLedgerConfig:
        """Load configuration from file, env vars, and overrides.

        Priority: overrides > env vars > config file > defaults.
        """
        data: dict[str, Any] = {}

        # 1. Load from YAML file if provided
        if config_path:
            path = Path(config_path)
            if path.exists():
                with open(path) as f:
                    data = yaml.safe_load(f) or {}

        # 2. Override from environment variables
        env_currency = os.environ.get("BUILDLEDGER_CURRENCY")
        env_prefix = os.environ.get("BUILDLEDGER_INVOICE_PREFIX")
        env_terms = os.environ.get("BUILDLEDGER_PAYMENT_TERMS")
        env_level = os.environ.get("BUILDLEDGER_LOG_LEVEL")

        if env_currency:
            data["currency"] = env_currency.upper()
        if env_level:
            data["log_level"] = env_level.upper()

        if env_prefix or env_terms:
            invoice = data.get("invoice", {})
            if env_prefix:
                invoice["number_prefix"] = env_prefix
            if env_terms:
                invoice["default_payment_terms"] = env_terms
            data["invoice"] = invoice

        # 3. Apply keyword overrides
        data.update(overrides)

        return cls.model_validate(data)
