"""Build settings shared by the content core, the CLI and render hand-off."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict, Literal, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError

from dk_common.config.env import parse_bool_env, parse_choice_env, parse_int_env
from dk_common.errors import ConfigurationError

logger = logging.getLogger(__name__)

CollapsePolicy = Literal["never", "root", "recursive"]
LabelFallback = Literal["humanize", "verbatim"]

COLLAPSE_POLICIES = {"never", "root", "recursive"}
LABEL_FALLBACKS = {"humanize", "verbatim"}


class DashkitSettings(BaseModel):
    """Tunable behavior for materializing, validating and handing off content."""

    shared_first_level: bool = Field(
        default=True,
        description="Render multiple top-level groups in one shared tab strip",
    )
    collapse_policy: CollapsePolicy = Field(
        default="root",
        description="When a single-item group is shown as a standalone item",
    )
    label_fallback: LabelFallback = Field(
        default="humanize",
        description="Label used for groups without an explicit label",
    )
    fail_fast: bool = Field(
        default=True,
        description="Stop validation at the first issue instead of collecting all",
    )
    refuse_invalid_render: bool = Field(
        default=True,
        description="Refuse to hand an invalid collection to the emitter",
    )
    suggestion_max_distance: int = Field(
        default=2,
        ge=0,
        description="Largest edit distance for 'did you mean' column suggestions",
    )
    warn_ambiguous_paths: bool = Field(
        default=False,
        description="Emit StructuralWarning for ambiguous group paths",
    )

    model_config = {
        "extra": "ignore",
    }


def _env_overrides() -> Dict[str, Any]:
    overrides: Dict[str, Any] = {}
    bools = {
        "shared_first_level": "DK_SHARED_FIRST_LEVEL",
        "fail_fast": "DK_FAIL_FAST",
        "refuse_invalid_render": "DK_REFUSE_INVALID_RENDER",
        "warn_ambiguous_paths": "DK_WARN_AMBIGUOUS_PATHS",
    }
    for field_name, env_name in bools.items():
        value = parse_bool_env(os.environ.get(env_name))
        if value is not None:
            overrides[field_name] = value

    distance = parse_int_env(os.environ.get("DK_SUGGESTION_MAX_DISTANCE"))
    if distance is not None:
        overrides["suggestion_max_distance"] = distance

    collapse = parse_choice_env(os.environ.get("DK_COLLAPSE_POLICY"), COLLAPSE_POLICIES)
    if collapse is not None:
        overrides["collapse_policy"] = collapse

    fallback = parse_choice_env(os.environ.get("DK_LABEL_FALLBACK"), LABEL_FALLBACKS)
    if fallback is not None:
        overrides["label_fallback"] = fallback
    return overrides


def load_settings(path: Optional[Path] = None) -> DashkitSettings:
    """
    Load settings from an optional YAML file, then apply ``DK_*`` env overrides.

    The file may hold the settings at top level or under a ``dashkit:`` key.

    Raises:
        ConfigurationError: If the file is missing, not valid YAML, or holds
            values that do not match the settings schema.
    """
    data: Dict[str, Any] = {}
    if path is not None:
        if not path.exists():
            raise ConfigurationError(
                f"Settings file not found: {path}", context={"path": path}
            )
        try:
            with open(path, "r", encoding="utf-8") as f:
                raw = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ConfigurationError(
                f"Settings file is not valid YAML: {path}", context={"path": path}, cause=exc
            ) from exc
        if not isinstance(raw, dict):
            raise ConfigurationError(
                f"Settings file must contain a mapping: {path}", context={"path": path}
            )
        data = dict(raw.get("dashkit", raw))

    data.update(_env_overrides())
    try:
        settings = DashkitSettings(**data)
    except ValidationError as exc:
        raise ConfigurationError("Invalid dashkit settings", cause=exc) from exc
    logger.debug("Loaded dashkit settings: %s", settings.model_dump())
    return settings
