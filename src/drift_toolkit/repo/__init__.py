"""Repository metadata and scannability."""
