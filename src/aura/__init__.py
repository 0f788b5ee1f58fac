"""Aura: a local chat assistant that turns model replies into system actions."""

__all__ = ["__version__"]

__version__ = "0.1.0"
