"""Google Sheets persistence."""
