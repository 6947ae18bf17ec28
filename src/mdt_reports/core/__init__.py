"""Draft lifecycle, case numbering and penalty aggregation."""
