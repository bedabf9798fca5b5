"""Scan execution and per-repository drift reports."""
