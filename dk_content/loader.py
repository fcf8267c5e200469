"""Load collections from YAML files."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, model_validator

from dk_common.errors import ConfigurationError, DKError, wrap_error
from dk_common.settings import DashkitSettings
from dk_content.collection import Collection

logger = logging.getLogger(__name__)


class ItemEntry(BaseModel):
    """One entry of ``items:``; unknown keys become renderer parameters."""

    type: Optional[str] = Field(default=None, description="Visualization type")
    block: Optional[str] = Field(default=None, description="Content block kind")
    pagination: bool = Field(default=False, description="Page break marker")
    tabgroup: Any = Field(default=None, description="Group path ('a/b', list or mapping)")
    title: Optional[str] = None
    tab_title: Optional[str] = None
    data: Optional[str] = Field(default=None, description="Named dataset reference")

    model_config = {
        "extra": "allow",
    }

    @model_validator(mode="after")
    def _one_kind(self) -> "ItemEntry":
        chosen = [name for name in ("type", "block") if getattr(self, name)]
        if self.pagination:
            chosen.append("pagination")
        if len(chosen) > 1:
            raise ValueError(f"an item may set only one of type, block, pagination (got {', '.join(chosen)})")
        return self

    @property
    def params(self) -> Dict[str, Any]:
        return dict(self.model_extra or {})


class CollectionFile(BaseModel):
    labels: Dict[str, str] = Field(default_factory=dict)
    shared_first_level: Optional[bool] = None
    defaults: Dict[str, Any] = Field(default_factory=dict)
    items: List[ItemEntry] = Field(default_factory=list)

    model_config = {
        "extra": "forbid",
    }


def _add_entry(collection: Collection, entry: ItemEntry) -> Collection:
    if entry.pagination:
        return collection.add_pagination(**entry.params)
    common = {
        "tabgroup": entry.tabgroup,
        "title": entry.title,
        "tab_title": entry.tab_title,
        "data": entry.data,
    }
    if entry.block:
        return collection.add_block(entry.block, **common, **entry.params)
    return collection.add_viz(entry.type, **common, **entry.params)


def build_collection(document: CollectionFile, settings: Optional[DashkitSettings] = None) -> Collection:
    collection = Collection(
        document.labels,
        shared_first_level=document.shared_first_level,
        defaults=document.defaults,
        settings=settings,
    )
    for position, entry in enumerate(document.items, start=1):
        try:
            collection = _add_entry(collection, entry)
        except DKError as exc:
            raise wrap_error(
                ConfigurationError,
                f"Item {position}: {exc}",
                context={"item": position, **exc.context},
                cause=exc,
            ) from exc
    return collection


def load_collection(path: Path, settings: Optional[DashkitSettings] = None) -> Collection:
    """
    Read a collection file.

    Raises:
        ConfigurationError: If the file is missing, is not valid YAML, does not
            match the collection schema, or an item is rejected.
    """
    path = Path(path)
    if not path.exists():
        raise wrap_error(ConfigurationError, f"Collection file not found: {path}", context={"path": path})
    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
    except yaml.YAMLError as exc:
        raise wrap_error(
            ConfigurationError, f"Collection file is not valid YAML: {path}", context={"path": path}, cause=exc
        ) from exc
    if not isinstance(raw, dict):
        raise wrap_error(ConfigurationError, f"Collection file must contain a mapping: {path}", context={"path": path})
    try:
        document = CollectionFile(**raw)
    except ValidationError as exc:
        raise wrap_error(
            ConfigurationError, f"Invalid collection file {path}: {exc}", context={"path": path}, cause=exc
        ) from exc
    collection = build_collection(document, settings)
    logger.info("Loaded %d item(s) from %s", len(collection), path)
    return collection
