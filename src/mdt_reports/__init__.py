"""Discord MDT reports backed by Google Sheets."""

__version__ = "0.1.0"
