"""Join descriptors accepted in the source list of a SELECT."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Optional, Sequence, Union

from ..utils.exceptions import MalformedJoinError
from .shapes import LiteralSQL

TableRef = Union[str, LiteralSQL]

_KIND_TOKEN = re.compile(r"^-(.+)$")


@dataclass(frozen=True)
class JoinSpec:
    """A ``JOIN`` against ``target`` on one or more (foreign key, primary key) pairs.

    ``kind`` is the join keyword without ``JOIN`` (``"left"``, ``"inner"``, ...);
    ``None`` renders a plain ``JOIN``.
    """

    target: TableRef
    key_pairs: tuple[tuple[str, str], ...]
    kind: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.key_pairs:
            raise MalformedJoinError(
                "join must have at least one foreign key/primary key pair",
                context={"target": self.target},
            )

    @classmethod
    def from_sequence(cls, spec: Sequence[Any]) -> "JoinSpec":
        """Parse ``[table, fk, pk, ...]`` or ``["-kind", table, fk, pk, ...]``."""
        items = list(spec)
        if len(items) < 3:
            raise MalformedJoinError(
                "join must be in the form [table, fk, pk]", context={"join": items}
            )
        kind = None
        if len(items) % 2 == 0:
            token, *items = items
            match = _KIND_TOKEN.match(token) if isinstance(token, str) else None
            if match:
                kind = match.group(1)
        target, *keys = items
        return cls(target=target, key_pairs=tuple(zip(keys[0::2], keys[1::2])), kind=kind)
