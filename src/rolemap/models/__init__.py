"""Data models for grants, roles, mapping tables and results."""
