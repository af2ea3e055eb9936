"""식별자 해석 — 유연한 조회 값을 (키, 값) 한 쌍으로 정규화.

Identifier resolution: normalizes a flexible lookup value into a single
``(key, value)`` pair used by update and delete.

Usage:
    resolve_identifier("abc123")            # ResolvedIdentifier(key="id", value="abc123")
    resolve_identifier({"email": "x@y.com"})  # ResolvedIdentifier(key="email", value="x@y.com")
"""

from collections.abc import Mapping
from typing import Any, NamedTuple
from uuid import UUID

from pydantic import BaseModel

PRIMARY_KEY: str = "id"


class ResolvedIdentifier(NamedTuple):
    key: str | None
    value: Any

    @property
    def is_valid(self) -> bool:
        """값이 있어야 저장소 호출 가능 — a missing value must never reach storage."""
        return self.key is not None and self.value is not None


def resolve_identifier(identifier: Any) -> ResolvedIdentifier:
    """식별자를 단일 고유 조회 쌍으로 변환합니다.

    A string, integer or UUID is taken as the primary key; any other
    non-mapping value (``None``, ``True``, arbitrary objects) resolves to
    no key and fails the gate. A mapping (or a pydantic model,
    through its explicitly set fields) contributes only its first declared
    key; any further keys are ignored.
    """
    if isinstance(identifier, BaseModel):
        identifier = identifier.model_dump(exclude_unset=True)

    if isinstance(identifier, Mapping):
        for key, value in identifier.items():
            return ResolvedIdentifier(key, value)
        return ResolvedIdentifier(None, None)

    # bool은 int의 하위 타입 — bool is an int subclass, never a key
    if isinstance(identifier, (str, int, UUID)) and not isinstance(identifier, bool):
        return ResolvedIdentifier(PRIMARY_KEY, identifier)
    return ResolvedIdentifier(None, None)
