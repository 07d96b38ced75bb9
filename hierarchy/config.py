"""
Configuration management for the asset hierarchy tools.

All configuration is done via environment variables.
This module provides typed configuration classes with validation.

Invariants:
    - All settings have sensible defaults for local use
    - The default export action is always a valid ExportAction

How to change safely:
    - Add new settings with defaults that keep existing behavior
    - Mirror editor-facing settings in hierarchy_editor.config
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field

from .model import ExportAction
from .workbook import DEFAULT_EXPORT_FILENAME

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WorkbookConfig:
    """Workbook import/export configuration.

    Attributes:
        has_header: Whether imported sheets start with a header row
        export_filename: Default file name for exports
        default_action: Export tag used when none is given (INSERT or DELETE)
    """

    has_header: bool = True
    export_filename: str = DEFAULT_EXPORT_FILENAME
    default_action: str = ExportAction.INSERT.value

    @classmethod
    def from_env(cls) -> WorkbookConfig:
        """Load configuration from environment variables."""
        return cls(
            has_header=os.getenv("HIERARCHY_HAS_HEADER", "true").lower() == "true",
            export_filename=os.getenv("HIERARCHY_EXPORT_FILENAME", DEFAULT_EXPORT_FILENAME),
            default_action=os.getenv("HIERARCHY_DEFAULT_ACTION", ExportAction.INSERT.value),
        )


@dataclass(frozen=True)
class ObservabilityConfig:
    """Logging configuration.

    Attributes:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_format: Log format (json, text)
    """

    log_level: str = "INFO"
    log_format: str = "text"

    @classmethod
    def from_env(cls) -> ObservabilityConfig:
        """Load configuration from environment variables."""
        return cls(
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_format=os.getenv("LOG_FORMAT", "text"),
        )


@dataclass
class HierarchyConfig:
    """Complete configuration.

    Attributes:
        workbook: Workbook import/export configuration
        observability: Logging configuration
    """

    workbook: WorkbookConfig = field(default_factory=WorkbookConfig)
    observability: ObservabilityConfig = field(default_factory=ObservabilityConfig)

    @classmethod
    def from_env(cls) -> HierarchyConfig:
        """Load complete configuration from environment variables.

        Raises:
            ValueError: If configuration is invalid.
        """
        config = cls(
            workbook=WorkbookConfig.from_env(),
            observability=ObservabilityConfig.from_env(),
        )
        config.validate()
        return config

    def validate(self) -> None:
        """Validate configuration consistency.

        Raises:
            ValueError: If configuration is invalid.
        """
        try:
            ExportAction.from_str(self.workbook.default_action)
        except ValueError:
            raise ValueError(
                f"Invalid HIERARCHY_DEFAULT_ACTION '{self.workbook.default_action}'. "
                "Must be one of: INSERT, DELETE"
            )

        if self.observability.log_format not in ("json", "text"):
            raise ValueError(
                f"Invalid LOG_FORMAT '{self.observability.log_format}'. Must be one of: json, text"
            )

        if not self.workbook.export_filename.lower().endswith(".xlsx"):
            logger.warning(
                f"Export filename {self.workbook.export_filename} does not end in .xlsx"
            )

    def log_config(self) -> None:
        """Log configuration."""
        logger.info(
            "Hierarchy configuration loaded",
            extra={
                "has_header": self.workbook.has_header,
                "export_filename": self.workbook.export_filename,
                "default_action": self.workbook.default_action,
                "log_level": self.observability.log_level,
            },
        )
