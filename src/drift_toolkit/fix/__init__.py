"""Remediation of drifted protected files."""
