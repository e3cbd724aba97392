"""API views grouped by workflow area."""
