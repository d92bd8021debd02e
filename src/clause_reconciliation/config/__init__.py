"""Catalog and engine configuration."""

from .config_manager import ConfigurationManager
from .models import (
    CatalogConfiguration,
    ConfigurationError,
    ConfigurationType,
    EngineSettings,
    ValidationResult,
)

__all__ = [
    "ConfigurationManager",
    "CatalogConfiguration",
    "ConfigurationError",
    "ConfigurationType",
    "EngineSettings",
    "ValidationResult",
]
