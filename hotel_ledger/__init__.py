"""Hotel back office ledger: invoices, vendor balances and the revenue/expense ledger."""

__version__ = "1.0.0"
