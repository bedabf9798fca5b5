"""Integrity checking and discovery of protected files."""
