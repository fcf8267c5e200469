"""Public API surface for dk_common."""

from dk_common.errors import (
    ConfigurationError,
    ContentError,
    ContractError,
    DatasetError,
    DKError,
    SpecValidationError,
    StructuralWarning,
    error_to_payload,
    wrap_error,
)
from dk_common.logging import configure_logging
from dk_common.settings import DashkitSettings, load_settings

__all__ = [
    "configure_logging",
    "ConfigurationError",
    "ContentError",
    "ContractError",
    "DashkitSettings",
    "DatasetError",
    "DKError",
    "error_to_payload",
    "load_settings",
    "SpecValidationError",
    "StructuralWarning",
    "wrap_error",
]
