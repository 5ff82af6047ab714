"""Connectors package — persistence ports and record loaders."""
from buildledger.connectors.base import LedgerPort
from buildledger.connectors.csv_connector import CSVConnector, snapshot_payments
from buildledger.connectors.memory import InMemoryPort

__all__ = ["CSVConnector", "InMemoryPort", "LedgerPort", "snapshot_payments"]
