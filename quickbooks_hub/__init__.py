"""Multi-company QuickBooks Online OAuth connection hub."""

__version__ = "0.1.0"
