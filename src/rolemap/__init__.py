"""rolemap - RBAC role recommendations for legacy access-policy grants."""

__version__ = "1.0.0"
