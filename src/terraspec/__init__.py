"""Unit tests for Terraform configurations, checked against the computed plan."""

__version__ = "0.1.0"

__all__ = ["__version__"]
