"""Personal finance ledger with CSV interchange and spending insights."""

__version__ = "1.0.0"
