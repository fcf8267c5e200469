"""Shared helpers for dashkit."""

from dk_common.api import DashkitSettings, DKError, configure_logging, load_settings

__all__ = ["configure_logging", "DashkitSettings", "DKError", "load_settings"]
