"""Financify recurring-obligation normalization and projection engine."""

from financify.config import Settings, configure_logging, get_global_settings

__version__ = "0.1.0"

__all__ = ["Settings", "configure_logging", "get_global_settings", "__version__"]
