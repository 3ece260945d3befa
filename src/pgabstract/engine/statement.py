"""Hand compiled SQL over to SQLAlchemy for execution."""

from __future__ import annotations

import logging
import re
from typing import Any, Sequence

from sqlalchemy import bindparam, text
from sqlalchemy.sql.elements import TextClause
from sqlalchemy.types import JSON

from ..sql.shapes import JSONValue
from ..utils.exceptions import CompilationError

logger = logging.getLogger(__name__)

# quoted identifiers and string literals are matched first so their question marks survive
_PLACEHOLDER = re.compile(r""""(?:[^"]|"")*"|'(?:[^']|'')*'|\?""")


def to_statement(sql: str, binds: Sequence[Any]) -> TextClause:
    """Convert ``?`` placeholders into a SQLAlchemy ``text()`` clause with bound values.

    Placeholders become ``:p1``, ``:p2``, ... in order. Binds wrapped in
    :class:`~pgabstract.sql.shapes.JSONValue` are typed as ``JSON`` so the
    dialect serializes them.

    Args:
        sql: SQL text produced by a builder
        binds: Bind values in placeholder order

    Returns:
        TextClause ready for ``Connection.execute``

    Raises:
        CompilationError: If the number of placeholders and binds differ
    """
    names: list[str] = []

    def _replace(match: re.Match[str]) -> str:
        if match.group(0) != "?":
            return match.group(0)
        names.append(f"p{len(names) + 1}")
        return f":{names[-1]}"

    named_sql = _PLACEHOLDER.sub(_replace, sql)
    if len(names) != len(binds):
        raise CompilationError(
            f"SQL has {len(names)} placeholders but {len(binds)} bind values were given",
            context={"sql": sql},
        )

    params = [
        bindparam(name, value.value, type_=JSON)
        if isinstance(value, JSONValue)
        else bindparam(name, value)
        for name, value in zip(names, binds)
    ]
    logger.debug("Prepared statement with %d parameters: %s", len(params), named_sql)
    return text(named_sql).bindparams(*params)
