"""Organization-wide scanning."""
