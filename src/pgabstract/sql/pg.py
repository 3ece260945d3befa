"""PostgreSQL features on top of :class:`~pgabstract.sql.abstract.Abstract`.

Adds ``ON CONFLICT`` to INSERT, field aliases and literal SQL in the field
list, ``JOIN`` descriptors in the source list, the ``group_by``, ``having``,
``order_by``, ``limit``, ``offset`` and ``for`` options for SELECT, and the
``-json`` value marker.

Examples:
    >>> abstract = PgAbstract()
    >>> abstract.insert("t", {"a": "b"}, {"on_conflict": None})
    ('INSERT INTO "t" ("a") VALUES (?) ON CONFLICT DO NOTHING', ['b'])
    >>> abstract.select(["foo", ["-left", "bar", "foo_id", "id"]])
    ('SELECT * FROM "foo" LEFT JOIN "bar" ON ("bar"."foo_id" = "foo"."id")', [])
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from typing import Any, Iterable, Optional

from ..config import BuilderConfig
from ..utils.exceptions import (
    DisallowedForValueError,
    MalformedAliasError,
    MalformedConflictSpecError,
    MalformedJoinError,
)
from .abstract import Abstract, Fragment, UnaryOp
from .builders import comma_separated
from .joins import JoinSpec, TableRef
from .shapes import (
    Absent,
    AliasPair,
    Identifier,
    JSONValue,
    LiteralSQL,
    LiteralSQLWithBinds,
    PlainScalar,
    ValueList,
    classify,
    unsupported,
)

logger = logging.getLogger(__name__)

_LEGACY_ORDER_KEY = re.compile(r"^-(?:desc|asc)", re.IGNORECASE)


def _json_op(builder: Abstract, op: str, value: Any) -> Fragment:
    return "?", [JSONValue(value)]


JSON_OP = UnaryOp(pattern=re.compile(r"^json$"), handler=_json_op)


class PgAbstract(Abstract):
    """Statement builder for the PostgreSQL dialect."""

    def __init__(
        self,
        config: Optional[BuilderConfig] = None,
        unary_ops: Iterable[UnaryOp] = (),
        **kwargs: object,
    ):
        super().__init__(config, (*unary_ops, JSON_OP), **kwargs)

    # -- INSERT ... ON CONFLICT -------------------------------------------------------

    def insert(self, table: Any, data: Any, options: Optional[Mapping[str, Any]] = None) -> Fragment:
        """Compile an INSERT statement, with ``on_conflict`` and ``returning`` options.

        ``on_conflict`` accepts ``None`` (``DO NOTHING``), ``[target, {set}]``
        (``DO UPDATE SET``), ``raw(...)`` or ``raw_binds(...)``. With ``on_conflict``
        present, RETURNING is only emitted when ``returning`` is given explicitly.
        """
        options = dict(options) if options is not None else {}
        # The conflict clause is rendered by the returning hook, so request the hook
        # and drop the returning clause again unless the caller asked for one.
        if "on_conflict" in options and not options.get("returning"):
            options["returning"] = True
            options["_pg_returning"] = True
        return super().insert(table, data, options)

    def _insert_returning(self, options: Mapping[str, Any]) -> Fragment:
        options = dict(options)
        if options.get("_pg_returning"):
            options.pop("returning", None)

        sql, binds = "", []
        if "on_conflict" in options:
            conflict_sql, conflict_binds = self._on_conflict(options["on_conflict"])
            sql += self._sqlcase(" on conflict ") + conflict_sql
            binds += conflict_binds

        if options.get("returning"):
            returning_sql, returning_binds = super()._insert_returning(options)
            sql += returning_sql
            binds += returning_binds

        return sql, binds

    def _on_conflict(self, conflict: Any) -> Fragment:
        node = classify(conflict, "on_conflict")
        if isinstance(node, Absent):
            return self._sqlcase("do nothing"), []
        if isinstance(node, LiteralSQL):
            return node.sql, []
        if isinstance(node, LiteralSQLWithBinds):
            return node.sql, list(node.binds)
        if isinstance(node, ValueList):
            target = node.items[0] if node.items else None
            assignments = node.items[1] if len(node.items) > 1 else None
            if not isinstance(assignments, Mapping):
                raise MalformedConflictSpecError(
                    "on_conflict value must be in the form [target, {set}]",
                    context={"clause": "on_conflict", "value": conflict},
                )
            if not isinstance(target, (list, tuple)):
                target = [target]
            set_sql, set_binds = self._update_set_values(assignments)
            sql = (
                f"({comma_separated(self._quote(column) for column in target)})"
                f"{self._sqlcase(' do update set ')}{set_sql}"
            )
            return sql, set_binds
        raise unsupported("on_conflict", conflict)

    # -- SELECT fields ----------------------------------------------------------------

    def _select_fields(self, fields: Any) -> Fragment:
        if not isinstance(fields, (list, tuple)):
            return super()._select_fields(fields)

        rendered, binds = [], []
        for field in fields:
            node = self._field_node(field)
            if isinstance(node, AliasPair):
                rendered.append(
                    f"{self._quote(node.name)}{self._sqlcase(' as ')}{self._quote(node.alias)}"
                )
            elif isinstance(node, LiteralSQLWithBinds):
                rendered.append(node.sql)
                binds += node.binds
            elif isinstance(node, LiteralSQL):
                rendered.append(node.sql)
            else:
                rendered.append(self._quote(node.name))
        return comma_separated(rendered), binds

    def _field_node(self, field: Any) -> AliasPair | LiteralSQL | LiteralSQLWithBinds | Identifier:
        node = classify(field, "fields")
        if isinstance(node, ValueList):
            if len(node.items) < 2:
                raise MalformedAliasError(
                    "field alias must be in the form [name, alias]",
                    context={"clause": "fields", "value": field},
                )
            return AliasPair(node.items[0], node.items[1])
        if isinstance(node, (LiteralSQL, LiteralSQLWithBinds)):
            return node
        if isinstance(node, PlainScalar):
            return Identifier(str(node.value))
        raise unsupported("fields", field)

    # -- FROM ... JOIN ----------------------------------------------------------------

    def _table(self, table: Any) -> str:
        if not isinstance(table, (list, tuple)):
            return super()._table(table)

        tables: list[TableRef] = []
        joins: list[JoinSpec] = []
        for item in table:
            if isinstance(item, JoinSpec):
                joins.append(item)
            elif isinstance(item, (list, tuple)):
                joins.append(JoinSpec.from_sequence(item))
            else:
                tables.append(item)

        sql = super()._table(tables)
        base = tables[0] if tables else None
        if joins:
            logger.debug("Joining %d table(s) against %r", len(joins), base)
        for join in joins:
            sql += self._join(join, base)
        return sql

    def _join(self, join: JoinSpec, base: Optional[TableRef]) -> str:
        keyword = f" {join.kind} join " if join.kind else " join "
        conditions = [
            f"{self._quote(self._qualify(fk, join.target))} = {self._quote(self._qualify(pk, base))}"
            for fk, pk in join.key_pairs
        ]
        return (
            f"{self._sqlcase(keyword)}{self._table(join.target)}{self._sqlcase(' on ')}"
            f"({self._sqlcase(' and ').join(conditions)})"
        )

    def _qualify(self, column: str, table: Optional[TableRef]) -> str:
        sep = self.config.name_sep
        if sep and column.find(sep) > 0:
            return column
        if not isinstance(table, str):
            raise MalformedJoinError(
                f"join key {column!r} must be qualified when its table is literal SQL or missing",
                context={"key": column, "table": table},
            )
        return f"{table}{sep or '.'}{column}"

    # -- GROUP BY, HAVING, ORDER BY, LIMIT, OFFSET, FOR --------------------------------

    def _order_by(self, options: Any) -> Fragment:
        # Legacy
        if not isinstance(options, Mapping) or any(
            isinstance(key, str) and _LEGACY_ORDER_KEY.match(key) for key in options
        ):
            return super()._order_by(options)

        sql, binds = "", []

        group = options.get("group_by")
        if group is not None:
            sql += self._sqlcase(" group by ") + self._group_by(group)

        having = options.get("having")
        if having is not None:
            having_sql, having_binds = self._recurse_where(having)
            if having_sql:
                sql += self._sqlcase(" having ") + having_sql
                binds += having_binds

        if options.get("order_by") is not None:
            order_sql, order_binds = self._order_by(options["order_by"])
            sql += order_sql
            binds += order_binds

        if options.get("limit") is not None:
            sql += self._sqlcase(" limit ") + "?"
            binds.append(options["limit"])

        if options.get("offset") is not None:
            sql += self._sqlcase(" offset ") + "?"
            binds.append(options["offset"])

        lock = options.get("for")
        if lock is not None:
            sql += self._sqlcase(" for ") + self._for(lock)

        return sql, binds

    def _group_by(self, group: Any) -> str:
        node = classify(group, "group_by")
        if isinstance(node, ValueList):
            return comma_separated(self._quote(column) for column in node.items)
        if isinstance(node, LiteralSQL):
            return node.sql
        raise unsupported("group_by", group, "expected a list of columns or raw()")

    def _for(self, lock: Any) -> str:
        node = classify(lock, "for")
        if isinstance(node, PlainScalar):
            if lock != "update":
                raise DisallowedForValueError(
                    f'for value "{lock}" is not allowed', context={"clause": "for", "value": lock}
                )
            return self._sqlcase("UPDATE")
        if isinstance(node, LiteralSQL):
            return node.sql
        raise unsupported("for", lock, "expected 'update' or raw()")
