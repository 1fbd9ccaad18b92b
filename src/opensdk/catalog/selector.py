from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

from opensdk.domain.models import EndpointDescriptor

# Localized synonyms per operation. A title hit is worth more than a path hit.
OPERATION_KEYWORDS: dict[str, tuple[str, ...]] = {
    "read:list": ("列表", "查询", "检索", "list", "query", "search"),
    "read:detail": ("详情", "明细", "detail", "get"),
    "write:upsert": ("保存", "save"),
    "write:create": ("新增", "创建", "create", "add"),
    "write:update": ("修改", "更新", "update", "edit"),
    "write:delete": ("删除", "delete", "remove"),
    "workflow:submit": ("提交", "submit"),
    "workflow:audit": ("审核", "audit", "approve"),
    "workflow:unaudit": ("反审核", "unaudit", "unapprove"),
    "workflow:cancel": ("取消", "作废", "cancel", "void"),
    "workflow:close": ("关闭", "close"),
    "workflow:open": ("反关闭", "open", "reopen"),
    "workflow:enable": ("启用", "enable"),
    "workflow:disable": ("禁用", "disable"),
}

TITLE_HIT = 30
PATH_HIT = 8
READ_GET_BONUS = 20
WRITE_POST_BONUS = 15
MAX_PATH_LEN = 1000


@dataclass(frozen=True)
class ScoredEndpoint:
    endpoint: EndpointDescriptor
    score: int

    def sort_key(self) -> tuple:
        ep = self.endpoint
        return (
            -self.score,
            len(ep.path_or_url or ""),
            ep.title or "",
            # past this point only identical-looking records remain
            ep.path_or_url or "",
            ep.method or "",
            ep.doc_source or "",
        )


@dataclass(frozen=True)
class Selection:
    primary: Optional[EndpointDescriptor]
    candidates: tuple[EndpointDescriptor, ...]

    @property
    def alternates(self) -> tuple[EndpointDescriptor, ...]:
        return self.candidates[1:]


def score_endpoint(ep: EndpointDescriptor, operation: str) -> int:
    title = (ep.title or "").lower()
    path = (ep.path_or_url or "").lower()
    method = (ep.method or "").upper()

    length_score = MAX_PATH_LEN - min(len(path), MAX_PATH_LEN)

    keyword_score = 0
    for keyword in OPERATION_KEYWORDS.get(operation, ()):
        k = keyword.lower()
        if k in title:
            keyword_score += TITLE_HIT
        if k in path:
            keyword_score += PATH_HIT

    method_score = 0
    if operation.startswith("read:") and method == "GET":
        method_score += READ_GET_BONUS
    if (operation.startswith("write:") or operation.startswith("workflow:")) and method == "POST":
        method_score += WRITE_POST_BONUS

    return length_score + keyword_score + method_score


def rank_endpoints(endpoints: Iterable[EndpointDescriptor], operation: str) -> list[ScoredEndpoint]:
    scored = [
        ScoredEndpoint(endpoint=ep, score=score_endpoint(ep, operation))
        for ep in endpoints
        if ep.operation == operation
    ]
    scored.sort(key=ScoredEndpoint.sort_key)
    return scored


def choose_primary(endpoints: Iterable[EndpointDescriptor], operation: str) -> Selection:
    """
    Pick the canonical endpoint for `operation`.

    Ranking: higher score, then shorter path, then smaller title. The result
    does not depend on input order. No candidates -> Selection(None, ()).
    """
    ranked = rank_endpoints(endpoints, operation)
    if not ranked:
        return Selection(primary=None, candidates=())
    return Selection(primary=ranked[0].endpoint, candidates=tuple(s.endpoint for s in ranked))
