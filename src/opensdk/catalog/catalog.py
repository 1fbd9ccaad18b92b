from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterable, Mapping, Optional

from opensdk.catalog.selector import choose_primary
from opensdk.core.errors import ConfigurationError
from opensdk.domain.models import ACTION_OPERATIONS, OPERATIONS, EndpointDescriptor, TaggedEndpoint


@dataclass(frozen=True)
class ResourceCatalog:
    """
    Chosen endpoint per operation for one resource, plus the alternates
    that lost the election (kept for debugging, never called).

    Built once, read-only afterwards; safe to share between concurrent calls.
    """

    object_key: str
    primaries: Mapping[str, EndpointDescriptor] = field(default_factory=lambda: MappingProxyType({}))
    alternates: Mapping[str, tuple[EndpointDescriptor, ...]] = field(
        default_factory=lambda: MappingProxyType({})
    )

    def get(self, operation: str) -> Optional[EndpointDescriptor]:
        return self.primaries.get(operation)

    def has(self, operation: str) -> bool:
        ep = self.primaries.get(operation)
        return ep is not None and bool(ep.path_or_url)

    def require(self, operation: str) -> EndpointDescriptor:
        ep = self.primaries.get(operation)
        if ep is None:
            raise ConfigurationError(f"Endpoint for operation {operation} is not configured")
        return ep

    def for_action(self, action: str) -> Optional[EndpointDescriptor]:
        op = ACTION_OPERATIONS.get(action)
        return self.primaries.get(op) if op else None

    @property
    def operations(self) -> tuple[str, ...]:
        return tuple(op for op in OPERATIONS if op in self.primaries)

    @property
    def actions(self) -> tuple[str, ...]:
        return tuple(a for a, op in ACTION_OPERATIONS.items() if op in self.primaries)

    def candidate_notes(self) -> list[str]:
        notes: list[str] = []
        for op in OPERATIONS:
            alts = self.alternates.get(op, ())
            if not alts:
                continue
            texts = "; ".join(f"{c.title} [{c.method or 'POST'} {c.path_or_url or ''}]" for c in alts)
            notes.append(f"{op}: {texts}")
        return notes

    def to_manifest(self) -> dict:
        return {
            "objectKey": self.object_key,
            "endpoints": {a: self.primaries[ACTION_OPERATIONS[a]].to_dict() for a in self.actions},
            "candidates": {
                op: [c.to_dict() for c in alts] for op, alts in self.alternates.items() if alts
            },
        }


def build_catalog(object_key: str, endpoints: Iterable[EndpointDescriptor]) -> ResourceCatalog:
    endpoints = list(endpoints)
    primaries: dict[str, EndpointDescriptor] = {}
    alternates: dict[str, tuple[EndpointDescriptor, ...]] = {}

    for op in OPERATIONS:
        selection = choose_primary(endpoints, op)
        if selection.primary is None:
            continue
        primaries[op] = selection.primary
        alternates[op] = selection.alternates

    return ResourceCatalog(
        object_key=object_key,
        primaries=MappingProxyType(primaries),
        alternates=MappingProxyType(alternates),
    )


def group_by_object(records: Iterable[TaggedEndpoint]) -> dict[str, list[EndpointDescriptor]]:
    """object_key -> descriptors, keys sorted. Records without a key or op are skipped."""
    grouped: dict[str, list[EndpointDescriptor]] = {}
    for r in records:
        if not r.object_key:
            continue
        descriptor = r.to_descriptor()
        bucket = grouped.setdefault(r.object_key, [])
        if descriptor is not None:
            bucket.append(descriptor)
    return {k: grouped[k] for k in sorted(grouped)}
