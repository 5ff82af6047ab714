"""
CSV Connector — load invoices, payments, expenses and timesheets from CSV.

The easiest way to get records into BuildLedger: export tables from your
accounting system or spreadsheet and point the CLI at them. Column names
are matched case-insensitively against common aliases, with spaces read
as underscores ("Due Date" is ``due_date``).
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Iterable, TypeVar

import pandas as pd
from pydantic import BaseModel, ValidationError

from buildledger.models.financial import Expense, ExpenseCategory, Invoice, Payment, PaymentMethod
from buildledger.models.timesheet import TimesheetEntry

logger = logging.getLogger("buildledger.connectors.csv")

ModelT = TypeVar("ModelT", bound=BaseModel)

# Canonical field -> accepted column names
INVOICE_COLUMNS: dict[str, list[str]] = {
    "id": ["id", "invoice_id"],
    "invoice_number": ["invoice_number", "number", "invoice_no", "invoice_#"],
    "contact_id": ["contact_id", "client_id", "customer_id"],
    "client_name": ["client_name", "client", "customer", "company_name"],
    "client_email": ["client_email", "email", "customer_email"],
    "project_id": ["project_id", "project"],
    "invoice_date": ["invoice_date", "issue_date", "date"],
    "due_date": ["due_date", "due"],
    "subtotal": ["subtotal"],
    "tax_rate": ["tax_rate"],
    "tax_amount": ["tax_amount", "tax"],
    "total_amount": ["total_amount", "total", "amount"],
    "amount_paid": ["amount_paid", "paid"],
    "status": ["status"],
    "payment_terms": ["payment_terms", "terms"],
    "notes": ["notes", "memo"],
}

PAYMENT_COLUMNS: dict[str, list[str]] = {
    "id": ["id", "payment_id"],
    "invoice_id": ["invoice_id", "invoice"],
    "company_id": ["company_id"],
    "amount": ["amount", "payment_amount"],
    "payment_date": ["payment_date", "date", "paid_on"],
    "payment_method": ["payment_method", "method"],
    "reference_number": ["reference_number", "reference", "ref"],
    "notes": ["notes", "memo"],
}

EXPENSE_COLUMNS: dict[str, list[str]] = {
    "id": ["id", "expense_id"],
    "project_id": ["project_id", "project"],
    "date": ["date", "expense_date", "transaction_date"],
    "vendor": ["vendor", "payee", "supplier", "merchant"],
    "description": ["description", "memo", "details"],
    "amount": ["amount", "total"],
    "category": ["category", "expense_type"],
    "payment_method": ["payment_method", "method"],
    "payment_status": ["payment_status", "status"],
    "billable_to_client": ["billable_to_client", "billable"],
    "markup_percentage": ["markup_percentage", "markup"],
    "invoiced": ["invoiced"],
    "invoice_id": ["invoice_id"],
}

TIMESHEET_COLUMNS: dict[str, list[str]] = {
    "id": ["id", "entry_id"],
    "employee_id": ["employee_id", "employee"],
    "employee_name": ["employee_name", "name"],
    "project_id": ["project_id"],
    "project_name": ["project_name", "project"],
    "work_date": ["work_date", "date"],
    "regular_hours": ["regular_hours", "hours"],
    "overtime_hours": ["overtime_hours", "ot_hours"],
    "hourly_rate": ["hourly_rate", "rate"],
    "overtime_rate": ["overtime_rate", "ot_rate"],
}

_CATEGORY_KEYWORDS: dict[str, ExpenseCategory] = {
    "rental": ExpenseCategory.EQUIPMENT_RENTAL,
    "lumber": ExpenseCategory.MATERIALS,
    "material": ExpenseCategory.MATERIALS,
    "supplies": ExpenseCategory.MATERIALS,
    "subcontract": ExpenseCategory.SUBCONTRACTORS,
    "labor": ExpenseCategory.LABOR,
    "wages": ExpenseCategory.LABOR,
    "equipment": ExpenseCategory.EQUIPMENT,
    "tool": ExpenseCategory.EQUIPMENT,
    "permit": ExpenseCategory.PERMITS,
    "inspection": ExpenseCategory.PERMITS,
    "utilit": ExpenseCategory.UTILITIES,
    "insurance": ExpenseCategory.INSURANCE,
    "legal": ExpenseCategory.PROFESSIONAL_FEES,
    "accounting": ExpenseCategory.PROFESSIONAL_FEES,
    "professional": ExpenseCategory.PROFESSIONAL_FEES,
    "fuel": ExpenseCategory.TRAVEL,
    "travel": ExpenseCategory.TRAVEL,
    "mileage": ExpenseCategory.TRAVEL,
    "office": ExpenseCategory.OFFICE,
    "marketing": ExpenseCategory.MARKETING,
    "advertising": ExpenseCategory.MARKETING,
}


class CSVConnector:
    """Read BuildLedger records from CSV files.

    Usage::

        connector = CSVConnector()
        invoices = connector.load_invoices("invoices.csv", company_id="acme")
        payments = connector.load_payments("payments.csv")

    Rows that fail validation are skipped with a warning, or raise when
    ``strict=True``.

    When an invoice file carries ``amount_paid`` and no payments file is
    available, pass the invoices through ``snapshot_payments`` so the ledger,
    which derives paid amounts from payments only, sees what was paid.
    """

    name = "csv"

    def __init__(self, encoding: str = "utf-8", delimiter: str = ",", strict: bool = False) -> None:
        self.encoding = encoding
        self.delimiter = delimiter
        self.strict = strict

    def read(self, file_path: str | Path) -> pd.DataFrame:
        path = Path(file_path)
        if not path.exists():
            raise FileNotFoundError(f"CSV file not found: {file_path}")

        # Read as text so ids like "0042" survive; pydantic does the typing.
        df = pd.read_csv(
            path,
            encoding=self.encoding,
            delimiter=self.delimiter,
            dtype=str,
            keep_default_na=False,
        )
        df.columns = df.columns.str.strip().str.lower().str.replace(" ", "_")
        return df

    def load_invoices(self, file_path: str | Path, company_id: str = "default") -> list[Invoice]:
        rows = self._records(self.read(file_path), INVOICE_COLUMNS)
        for row in rows:
            row.setdefault("company_id", company_id)
            if not row.get("contact_id"):
                row["contact_id"] = row.get("client_name") or "unknown"
            if row.get("status"):
                row["status"] = row["status"].lower()
        return self._build(Invoice, rows, file_path)

    def load_payments(self, file_path: str | Path) -> list[Payment]:
        rows = self._records(self.read(file_path), PAYMENT_COLUMNS)
        for row in rows:
            if row.get("payment_method"):
                row["payment_method"] = _map_payment_method(row["payment_method"])
        return self._build(Payment, rows, file_path)

    def load_expenses(self, file_path: str | Path, company_id: str = "default") -> list[Expense]:
        rows = self._records(self.read(file_path), EXPENSE_COLUMNS)
        for row in rows:
            row.setdefault("company_id", company_id)
            if row.get("category"):
                row["category"] = map_category(row["category"])
            if row.get("payment_method"):
                row["payment_method"] = _map_payment_method(row["payment_method"])
            if row.get("payment_status"):
                row["payment_status"] = row["payment_status"].lower()
        return self._build(Expense, rows, file_path)

    def load_timesheet(self, file_path: str | Path) -> list[TimesheetEntry]:
        rows = self._records(self.read(file_path), TIMESHEET_COLUMNS)
        for row in rows:
            if not row.get("employee_name") and row.get("employee_id"):
                row["employee_name"] = row["employee_id"]
        return self._build(TimesheetEntry, rows, file_path)

    @staticmethod
    def _detect_columns(df: pd.DataFrame, aliases: dict[str, list[str]]) -> dict[str, str]:
        """Auto-detect column mappings from the DataFrame."""
        col_map: dict[str, str] = {}
        df_cols = set(df.columns)
        for field, names in aliases.items():
            for name in names:
                if name in df_cols:
                    col_map[field] = name
                    break
        return col_map

    def _records(self, df: pd.DataFrame, aliases: dict[str, list[str]]) -> list[dict[str, Any]]:
        col_map = self._detect_columns(df, aliases)
        records = []
        for _, row in df.iterrows():
            record: dict[str, Any] = {}
            for field, column in col_map.items():
                value = str(row[column]).strip()
                if value:
                    record[field] = value
            records.append(record)
        return records

    def _build(self, model: type[ModelT], rows: list[dict[str, Any]], source: str | Path) -> list[ModelT]:
        results: list[ModelT] = []
        skipped = 0
        for line, row in enumerate(rows, start=2):
            try:
                results.append(model.model_validate(row))
            except ValidationError as e:
                if self.strict:
                    raise ValueError(f"{Path(source).name} line {line}: {e}") from e
                skipped += 1
                logger.warning("Skipping %s line %d: %s", Path(source).name, line, e.errors()[0]["msg"])

        logger.info(
            "Parsed %d %s records from %s (%d skipped)",
            len(results), model.__name__, Path(source).name, skipped,
        )
        return results


def map_category(raw_category: str) -> str:
    """Map free-text categories onto ``ExpenseCategory`` values."""
    raw_lower = raw_category.strip().lower().replace(" ", "_")
    if raw_lower in {c.value for c in ExpenseCategory}:
        return raw_lower
    for keyword, category in _CATEGORY_KEYWORDS.items():
        if keyword in raw_lower:
            return category.value
    return ExpenseCategory.OTHER.value


def _map_payment_method(raw_method: str) -> str:
    method = raw_method.strip().lower().replace(" ", "_").replace("-", "_")
    if method in {m.value for m in PaymentMethod}:
        return method
    if method in ("cheque",):
        return PaymentMethod.CHECK.value
    if "card" in method or method in ("visa", "mastercard", "amex"):
        return PaymentMethod.CREDIT_CARD.value
    return PaymentMethod.OTHER.value


def snapshot_payments(invoices: Iterable[Invoice]) -> list[Payment]:
    """One payment per invoice whose paid-amount column is non-zero.

    For invoice exports that carry ``amount_paid`` but come without a payment
    history. The payment is dated on the invoice date. Invoices without an id
    are skipped since nothing could link the payment back to them.
    """
    return [
        Payment(
            id=f"{invoice.id}-paid",
            invoice_id=invoice.id,
            company_id=invoice.company_id,
            amount=invoice.amount_paid,
            payment_date=invoice.invoice_date,
            notes="Paid amount from invoice import",
        )
        for invoice in invoices
        if invoice.id and invoice.amount_paid > 0
    ]
