from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

HttpMethod = Literal["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "HEAD"]

Operation = Literal[
    "read:list",
    "read:detail",
    "write:upsert",
    "write:create",
    "write:update",
    "write:delete",
    "workflow:submit",
    "workflow:audit",
    "workflow:unaudit",
    "workflow:cancel",
    "workflow:close",
    "workflow:open",
    "workflow:enable",
    "workflow:disable",
]

WORKFLOW_ACTIONS: tuple[str, ...] = (
    "submit",
    "audit",
    "unaudit",
    "cancel",
    "close",
    "open",
    "enable",
    "disable",
)

# action name -> operation tag, in the order resource methods are exposed
ACTION_OPERATIONS: dict[str, str] = {
    "list": "read:list",
    "detail": "read:detail",
    "save": "write:upsert",
    "create": "write:create",
    "update": "write:update",
    "delete": "write:delete",
    **{name: f"workflow:{name}" for name in WORKFLOW_ACTIONS},
}

OPERATIONS: tuple[str, ...] = tuple(ACTION_OPERATIONS.values())

BODY_METHODS = frozenset({"POST", "PUT", "PATCH"})


def is_read(operation: str) -> bool:
    return operation.startswith("read:")


def is_write_or_workflow(operation: str) -> bool:
    return operation.startswith("write:") or operation.startswith("workflow:")


class EndpointTags(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    op: Optional[str] = None
    entity_type: str = Field(default="", alias="entityType")
    sync: list[str] = Field(default_factory=list)
    id: list[str] = Field(default_factory=list)


class TaggedEndpoint(BaseModel):
    """One record of the tagger's output (endpoints.tagged.json)."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    object_key: Optional[str] = Field(default=None, alias="objectKey")
    group: str = ""
    module: str = ""
    title: str = ""
    method: Optional[str] = None
    path_or_url: Optional[str] = Field(default=None, alias="pathOrUrl")
    is_relative: bool = Field(default=False, alias="isRelative")
    doc_path: Optional[str] = Field(default=None, alias="docPath")
    tags: EndpointTags = Field(default_factory=EndpointTags)

    def to_descriptor(self) -> Optional["EndpointDescriptor"]:
        if not self.tags.op:
            return None
        return EndpointDescriptor(
            operation=self.tags.op,
            title=self.title,
            method=self.method.upper() if self.method else None,
            path_or_url=self.path_or_url or "",
            is_relative=self.is_relative,
            doc_source=self.doc_path,
        )


@dataclass(frozen=True)
class EndpointDescriptor:
    operation: str
    title: str
    method: Optional[str]
    path_or_url: str
    is_relative: bool = False
    doc_source: Optional[str] = None

    @property
    def effective_method(self) -> str:
        # untagged methods default to POST, the usual verb of these APIs
        return (self.method or "POST").upper()

    def to_dict(self) -> dict:
        return {
            "op": self.operation,
            "title": self.title,
            "method": self.method,
            "pathOrUrl": self.path_or_url or None,
            "isRelative": self.is_relative,
            "docPath": self.doc_source,
        }
