"""Data models for configuration management."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from ..models.catalog import Template
from ..reconciliation.tie_break import DEFAULT_TIE_BREAK


class ConfigurationType(Enum):
    """Types of configuration supported by the engine."""
    CATALOG = "catalog"
    ENGINE = "engine"


@dataclass
class ValidationResult:
    """Result of configuration validation."""
    is_valid: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def add_error(self, message: str) -> None:
        """Add an error message."""
        self.errors.append(message)
        self.is_valid = False

    def add_warning(self, message: str) -> None:
        """Add a warning message."""
        self.warnings.append(message)

    def merge(self, other: "ValidationResult") -> "ValidationResult":
        """Merge another validation result into this one."""
        return ValidationResult(
            is_valid=self.is_valid and other.is_valid,
            errors=self.errors + other.errors,
            warnings=self.warnings + other.warnings
        )


class ConfigurationError(Exception):
    """Exception raised for configuration errors."""

    def __init__(self, message: str, validation_result: Optional[ValidationResult] = None):
        super().__init__(message)
        self.message = message
        self.validation_result = validation_result


@dataclass
class EngineSettings:
    """
    Tunables of the reconciliation engine and its orchestration.

    Only the tie-break strategy (and its seed) changes outcomes; the rest
    controls parallelism, persistence and export location.
    """
    tie_break_strategy: str = DEFAULT_TIE_BREAK
    tie_break_seed: Optional[str] = None
    max_workers: int = 1
    enable_audit_logging: bool = False
    database_url: Optional[str] = None
    output_dir: str = "data/exports"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tie_break_strategy": self.tie_break_strategy,
            "tie_break_seed": self.tie_break_seed,
            "max_workers": self.max_workers,
            "enable_audit_logging": self.enable_audit_logging,
            "database_url": self.database_url,
            "output_dir": self.output_dir,
        }


@dataclass
class CatalogConfiguration:
    """Loaded clause catalog: the templates known to the engine."""
    templates: List[Template] = field(default_factory=list)
    version: int = 1
    metadata: Dict[str, Any] = field(default_factory=dict)

    def get_template(self, template_id: str) -> Optional[Template]:
        for template in self.templates:
            if template.id == template_id:
                return template
        return None
