"""Discord presentation layer."""
