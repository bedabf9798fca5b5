"""Report actions for repositories with drift."""
