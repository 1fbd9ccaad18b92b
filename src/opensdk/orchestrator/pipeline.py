from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from pydantic import ValidationError

from opensdk.catalog.catalog import ResourceCatalog, build_catalog, group_by_object
from opensdk.core.errors import ConfigurationError
from opensdk.core.logging import get_logger
from opensdk.domain.models import TaggedEndpoint

log = get_logger(__name__)


@dataclass(frozen=True)
class SdkBuildResult:
    object_count: int
    object_keys: tuple[str, ...]
    catalogs: dict[str, ResourceCatalog]


def read_tagged_endpoints(tagged_path: Path) -> list[TaggedEndpoint]:
    """Load and validate endpoints.tagged.json (a JSON array of tagged records)."""
    if not tagged_path.is_file():
        raise ConfigurationError(f"Tagged endpoints not found: {tagged_path}")

    raw = json.loads(tagged_path.read_text(encoding="utf-8"))
    if not isinstance(raw, list):
        raise ConfigurationError("endpoints.tagged.json must be an array")

    try:
        return [TaggedEndpoint.model_validate(r) for r in raw]
    except ValidationError as e:
        raise ConfigurationError(f"Invalid tagged endpoint record in {tagged_path}: {e}") from e


def build_sdk(records: Iterable[TaggedEndpoint]) -> SdkBuildResult:
    """
    Group tagged records by object key and elect primary endpoints.

    Deterministic: same records (in any order) -> same catalogs.
    """
    grouped = group_by_object(records)
    if not grouped:
        raise ConfigurationError("No objectKey found in tagged endpoints")

    catalogs = {key: build_catalog(key, endpoints) for key, endpoints in grouped.items()}
    for key, catalog in catalogs.items():
        log.debug(
            "catalog_built",
            object_key=key,
            actions=list(catalog.actions),
            candidates=catalog.candidate_notes(),
        )

    return SdkBuildResult(
        object_count=len(catalogs),
        object_keys=tuple(catalogs),
        catalogs=catalogs,
    )


def load_sdk(tagged_path: Path) -> SdkBuildResult:
    return build_sdk(read_tagged_endpoints(tagged_path))
