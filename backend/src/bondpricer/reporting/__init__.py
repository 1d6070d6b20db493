"""Cashflow reporting."""

from bondpricer.reporting.cashflow_report import (
    CashflowEntry,
    CashflowReport,
    generate_cashflow_report,
)

__all__ = ["CashflowEntry", "CashflowReport", "generate_cashflow_report"]
