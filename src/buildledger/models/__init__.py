"""Data models for invoices, expenses, quotes and timesheets."""
