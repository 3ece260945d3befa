"""Generic statement builder producing ``?``-parameterized SQL and bind lists."""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Optional

from ..config import BuilderConfig, create_config
from ..utils.exceptions import UnsupportedShapeError
from .builders import comma_separated, quote_identifier, sql_case
from .shapes import (
    Absent,
    AssignmentMap,
    JSONValue,
    LiteralSQL,
    LiteralSQLWithBinds,
    OperatorNode,
    PlainScalar,
    ValueList,
    classify,
    is_operator_key,
    normalize_operator,
    unsupported,
)

logger = logging.getLogger(__name__)

Fragment = tuple[str, list[Any]]

_COMPARISON_OPS = frozenset(
    {"=", "!=", "<>", "<", ">", "<=", ">=", "like", "not like", "ilike", "not ilike"}
)


@dataclass(frozen=True)
class UnaryOp:
    """A value marker such as ``{"-json": value}`` and the handler that renders it.

    The handler receives the builder, the operator name and the wrapped value,
    and returns the SQL to put in place of the value plus its binds.
    """

    pattern: re.Pattern[str]
    handler: Callable[["Abstract", str, Any], Fragment]


class Abstract:
    """Build INSERT, UPDATE, DELETE and SELECT statements from Python data.

    Instances are immutable after construction and can be shared across threads.
    """

    def __init__(
        self,
        config: Optional[BuilderConfig] = None,
        unary_ops: Iterable[UnaryOp] = (),
        **kwargs: object,
    ):
        self.config = config if config is not None else create_config(**kwargs)
        self.unary_ops: tuple[UnaryOp, ...] = tuple(unary_ops)

    # -- statements -------------------------------------------------------------------

    def insert(self, table: Any, data: Any, options: Optional[Mapping[str, Any]] = None) -> Fragment:
        """Compile an INSERT statement.

        Args:
            table: Target table name or literal SQL
            data: Mapping of column to value, or a sequence of values
            options: ``returning`` adds a RETURNING clause

        Returns:
            Tuple of SQL text and bind values
        """
        options = options if options is not None else {}
        sql = f"{self._sqlcase('insert into')} {self._table(table)} "
        values_sql, binds = self._insert_values(data)
        sql += values_sql
        if options.get("returning"):
            returning_sql, returning_binds = self._insert_returning(options)
            sql += returning_sql
            binds += returning_binds
        logger.debug("Compiled %s statement: %s", "insert", sql)
        return sql, binds

    def update(
        self,
        table: Any,
        data: Mapping[str, Any],
        where: Any = None,
        options: Optional[Mapping[str, Any]] = None,
    ) -> Fragment:
        """Compile an UPDATE statement with an optional WHERE and RETURNING clause."""
        options = options if options is not None else {}
        set_sql, binds = self._update_set_values(data)
        sql = f"{self._sqlcase('update')} {self._table(table)} {self._sqlcase('set')} {set_sql}"
        where_sql, where_binds = self.where(where)
        sql += where_sql
        binds += where_binds
        if options.get("returning"):
            sql += self._returning(options)
        logger.debug("Compiled %s statement: %s", "update", sql)
        return sql, binds

    def delete(
        self, table: Any, where: Any = None, options: Optional[Mapping[str, Any]] = None
    ) -> Fragment:
        """Compile a DELETE statement with an optional WHERE and RETURNING clause."""
        options = options if options is not None else {}
        sql = f"{self._sqlcase('delete from')} {self._table(table)}"
        where_sql, binds = self.where(where)
        sql += where_sql
        if options.get("returning"):
            sql += self._returning(options)
        logger.debug("Compiled %s statement: %s", "delete", sql)
        return sql, binds

    def select(self, source: Any, fields: Any = "*", where: Any = None, order: Any = None) -> Fragment:
        """Compile a SELECT statement.

        Field binds come first, followed by WHERE binds and ORDER BY binds, matching
        the placeholder order in the emitted text.
        """
        table_sql = self._table(source)
        fields_sql, binds = self._select_fields(fields)
        where_sql, where_binds = self.where(where, order)
        binds += where_binds
        sql = (
            f"{self._sqlcase('select')} {fields_sql} {self._sqlcase('from')} {table_sql}{where_sql}"
        )
        logger.debug("Compiled %s statement: %s", "select", sql)
        return sql, binds

    def where(self, where: Any, order: Any = None) -> Fragment:
        """Compile a WHERE clause, followed by the ORDER BY clause if ``order`` is given."""
        where_sql, binds = self._recurse_where(where)
        sql = f" {self._sqlcase('where')} {where_sql}" if where_sql else ""
        if order is not None:
            order_sql, order_binds = self._order_by(order)
            sql += order_sql
            binds += order_binds
        return sql, binds

    # -- naming -----------------------------------------------------------------------

    def _quote(self, label: Any) -> str:
        if isinstance(label, LiteralSQL):
            return label.sql
        if not isinstance(label, str):
            raise unsupported("identifier", label)
        return quote_identifier(label, self.config.quote_char, self.config.name_sep)

    def _sqlcase(self, keywords: str) -> str:
        return sql_case(keywords, self.config.case)

    def _table(self, table: Any) -> str:
        node = classify(table, "table")
        if isinstance(node, ValueList):
            return comma_separated(self._table(item) for item in node.items)
        if isinstance(node, LiteralSQL):
            return node.sql
        if isinstance(node, PlainScalar) and isinstance(node.value, str):
            return self._quote(node.value)
        raise unsupported("table", table)

    def _select_fields(self, fields: Any) -> Fragment:
        node = classify(fields, "fields")
        if isinstance(node, Absent):
            return "*", []
        if isinstance(node, ValueList):
            return comma_separated(self._quote(field) for field in node.items), []
        if isinstance(node, LiteralSQL):
            return node.sql, []
        if isinstance(node, LiteralSQLWithBinds):
            return node.sql, list(node.binds)
        if isinstance(node, PlainScalar) and isinstance(node.value, str):
            return node.value, []
        raise unsupported("fields", fields)

    def _insert_returning(self, options: Mapping[str, Any]) -> Fragment:
        return self._returning(options), []

    def _returning(self, options: Mapping[str, Any]) -> str:
        returning = options["returning"]
        node = classify(returning, "returning")
        if isinstance(node, ValueList):
            fields_sql = comma_separated(self._quote(field) for field in node.items)
        elif isinstance(node, LiteralSQL):
            fields_sql = node.sql
        elif isinstance(node, PlainScalar) and isinstance(node.value, str):
            fields_sql = self._quote(node.value)
        else:
            raise unsupported("returning", returning)
        return f" {self._sqlcase('returning')} {fields_sql}"

    # -- values -----------------------------------------------------------------------

    def _insert_values(self, data: Any) -> Fragment:
        node = classify(data, "insert")
        binds: list[Any] = []
        if isinstance(node, AssignmentMap):
            if not node.pairs:
                return self._sqlcase("default values"), []
            columns, values = [], []
            for column, value in node.pairs:
                columns.append(self._quote(column))
                value_sql, value_binds = self._value(value, "insert")
                values.append(value_sql)
                binds += value_binds
            return (
                f"({comma_separated(columns)}) {self._sqlcase('values')} ({comma_separated(values)})",
                binds,
            )
        if isinstance(node, ValueList):
            values = []
            for value in node.items:
                value_sql, value_binds = self._value(value, "insert")
                values.append(value_sql)
                binds += value_binds
            return f"{self._sqlcase('values')} ({comma_separated(values)})", binds
        raise unsupported("insert", data, "expected a mapping of columns to values or a list")

    def _update_set_values(self, data: Any) -> Fragment:
        node = classify(data, "set")
        if isinstance(node, OperatorNode):
            node = AssignmentMap(((f"-{node.op}", node.value),))
        if not isinstance(node, AssignmentMap) or not node.pairs:
            raise unsupported("set", data, "expected a non-empty mapping of columns to values")
        assignments, binds = [], []
        for column, value in node.pairs:
            if is_operator_key(column):
                raise unsupported("set", data, f"{column!r} is not a column name")
            value_sql, value_binds = self._value(value, "set")
            assignments.append(f"{self._quote(column)} = {value_sql}")
            binds += value_binds
        return comma_separated(assignments), binds

    def _value(self, value: Any, clause: str) -> Fragment:
        """Render a single value position as a placeholder, literal SQL or unary operator."""
        node = classify(value, clause)
        if isinstance(node, (Absent, PlainScalar)):
            return "?", [value]
        if isinstance(node, JSONValue):
            return "?", [node]
        if isinstance(node, ValueList):
            # bound as a single PostgreSQL array
            return "?", [list(node.items)]
        if isinstance(node, LiteralSQL):
            return node.sql, []
        if isinstance(node, LiteralSQLWithBinds):
            return node.sql, list(node.binds)
        if isinstance(node, OperatorNode):
            return self._unary_op(node.op, node.value, clause)
        raise unsupported(clause, value, "mappings are only accepted as unary operators")

    def _find_unary_op(self, op: str) -> Optional[UnaryOp]:
        for unary_op in self.unary_ops:
            if unary_op.pattern.match(op):
                return unary_op
        return None

    def _unary_op(self, op: str, value: Any, clause: str) -> Fragment:
        unary_op = self._find_unary_op(op)
        if unary_op is None:
            raise UnsupportedShapeError(
                f"Unknown operator '-{op}' in {clause} value",
                context={"clause": clause, "operator": op},
            )
        return unary_op.handler(self, op, value)

    # -- boolean expressions ----------------------------------------------------------

    def _recurse_where(self, where: Any) -> Fragment:
        sql, binds, _ = self._where_clause(where, "or")
        return sql, binds

    def _where_clause(self, where: Any, logic: str) -> tuple[str, list[Any], int]:
        """Compile a condition tree.

        Mappings AND their pairs together, sequences are joined with ``logic``, which is
        OR unless an enclosing ``-and`` group asked for AND.
        Returns the SQL, its binds and the number of conditions joined at the top.
        """
        node = classify(where, "where")
        if isinstance(node, Absent):
            return "", [], 0
        if isinstance(node, LiteralSQL):
            return node.sql, [], 1
        if isinstance(node, LiteralSQLWithBinds):
            return node.sql, list(node.binds), 1
        if isinstance(node, OperatorNode):
            conditions = [self._where_pair(f"-{node.op}", node.value)]
            logic = "and"
        elif isinstance(node, AssignmentMap):
            conditions = [self._where_pair(key, value) for key, value in node.pairs]
            logic = "and"
        elif isinstance(node, ValueList):
            conditions = [self._where_clause(item, "or") for item in node.items]
        else:
            raise unsupported("where", where, "expected a mapping, list or literal SQL")
        return self._join_conditions(conditions, logic)

    def _join_conditions(
        self, conditions: list[tuple[str, list[Any], int]], logic: str
    ) -> tuple[str, list[Any], int]:
        conditions = [condition for condition in conditions if condition[0]]
        parts, binds = [], []
        for sql, condition_binds, count in conditions:
            parts.append(f"({sql})" if count > 1 and len(conditions) > 1 else sql)
            binds += condition_binds
        return f" {self._sqlcase(logic)} ".join(parts), binds, len(parts)

    def _where_pair(self, key: str, value: Any) -> tuple[str, list[Any], int]:
        if not is_operator_key(key):
            sql, binds = self._where_column(key, value)
            return sql, binds, 1
        op = normalize_operator(key)
        if op in ("and", "or"):
            if op == "or" and isinstance(value, Mapping):
                value = [{k: v} for k, v in value.items()]
            return self._where_clause(value, op)
        if op == "not":
            sql, binds, _ = self._where_clause(value, "and")
            return f"{self._sqlcase('not')} ({sql})", binds, 1
        raise UnsupportedShapeError(
            f"Unknown top-level operator '{key}' in where clause",
            context={"clause": "where", "operator": key},
        )

    def _where_column(self, column: str, value: Any) -> Fragment:
        quoted = self._quote(column)
        node = classify(value, "where")
        if isinstance(node, Absent):
            return f"{quoted} {self._sqlcase('is null')}", []
        if isinstance(node, (PlainScalar, JSONValue)):
            return f"{quoted} = ?", [node if isinstance(node, JSONValue) else value]
        if isinstance(node, LiteralSQL):
            return f"{quoted} {node.sql}", []
        if isinstance(node, LiteralSQLWithBinds):
            return f"{quoted} {node.sql}", list(node.binds)
        if isinstance(node, ValueList):
            return self._where_any(column, "=", node.items)
        if isinstance(node, OperatorNode):
            return self._where_operator(column, node.op, node.value)
        if isinstance(node, AssignmentMap):
            parts, binds = [], []
            for op, operand in node.pairs:
                sql, operand_binds = self._where_operator(column, normalize_operator(op), operand)
                parts.append(sql)
                binds += operand_binds
            if len(parts) > 1:
                return "(" + f" {self._sqlcase('and')} ".join(parts) + ")", binds
            return parts[0], binds
        raise unsupported("where", value)

    def _where_any(self, column: str, op: str, values: tuple[Any, ...]) -> Fragment:
        if not values:
            return "0=1", []
        parts, binds = [], []
        for value in values:
            sql, value_binds = self._where_operator(column, op, value)
            parts.append(sql)
            binds += value_binds
        if len(parts) > 1:
            return "(" + f" {self._sqlcase('or')} ".join(parts) + ")", binds
        return parts[0], binds

    def _where_operator(self, column: str, op: str, value: Any) -> Fragment:
        quoted = self._quote(column)
        op = " ".join(op.replace("_", " ").split())
        node = classify(value, "where")

        if op in ("in", "not in"):
            if isinstance(node, ValueList):
                if not node.items:
                    return ("0=1" if op == "in" else "1=1"), []
                placeholders, binds = [], []
                for item in node.items:
                    item_sql, item_binds = self._value(item, "where")
                    placeholders.append(item_sql)
                    binds += item_binds
                return f"{quoted} {self._sqlcase(op)} ({comma_separated(placeholders)})", binds
            if isinstance(node, LiteralSQL):
                return f"{quoted} {self._sqlcase(op)} ({node.sql})", []
            if isinstance(node, LiteralSQLWithBinds):
                return f"{quoted} {self._sqlcase(op)} ({node.sql})", list(node.binds)
            raise unsupported(f"-{op}", value, "expected a list or literal SQL")

        if op in ("between", "not between"):
            if isinstance(node, ValueList) and len(node.items) == 2:
                low_sql, low_binds = self._value(node.items[0], "where")
                high_sql, high_binds = self._value(node.items[1], "where")
                return (
                    f"{quoted} {self._sqlcase(op)} {low_sql} {self._sqlcase('and')} {high_sql}",
                    low_binds + high_binds,
                )
            if isinstance(node, LiteralSQL):
                return f"{quoted} {self._sqlcase(op)} {node.sql}", []
            if isinstance(node, LiteralSQLWithBinds):
                return f"{quoted} {self._sqlcase(op)} {node.sql}", list(node.binds)
            raise unsupported(f"-{op}", value, "expected a two element list or literal SQL")

        if op in _COMPARISON_OPS:
            if isinstance(node, Absent):
                if op == "=":
                    return f"{quoted} {self._sqlcase('is null')}", []
                if op in ("!=", "<>"):
                    return f"{quoted} {self._sqlcase('is not null')}", []
                raise unsupported(op, value, "NULL can only be compared with = or !=")
            if isinstance(node, ValueList):
                return self._where_any(column, op, node.items)
            value_sql, binds = self._value(value, "where")
            return f"{quoted} {self._sqlcase(op)} {value_sql}", binds

        if self._find_unary_op(op) is not None:
            value_sql, binds = self._unary_op(op, value, "where")
            return f"{quoted} = {value_sql}", binds

        raise UnsupportedShapeError(
            f"Unknown operator '{op}' for column {column!r}",
            context={"clause": "where", "operator": op},
        )

    # -- ordering ---------------------------------------------------------------------

    def _order_by(self, order: Any) -> Fragment:
        chunks, binds = self._order_by_chunks(order)
        if not chunks:
            return "", []
        return f" {self._sqlcase('order by')} {comma_separated(chunks)}", binds

    def _order_by_chunks(self, order: Any) -> tuple[list[str], list[Any]]:
        node = classify(order, "order_by")
        if isinstance(node, Absent):
            return [], []
        if isinstance(node, PlainScalar) and isinstance(node.value, str):
            return [self._quote(node.value)], []
        if isinstance(node, LiteralSQL):
            return [node.sql], []
        if isinstance(node, LiteralSQLWithBinds):
            return [node.sql], list(node.binds)
        if isinstance(node, ValueList):
            chunks, binds = [], []
            for item in node.items:
                item_chunks, item_binds = self._order_by_chunks(item)
                chunks += item_chunks
                binds += item_binds
            return chunks, binds
        if isinstance(node, OperatorNode) and node.op in ("asc", "desc"):
            chunks, binds = self._order_by_chunks(node.value)
            direction = self._sqlcase(node.op)
            return [f"{chunk} {direction}" for chunk in chunks], binds
        raise unsupported(
            "order_by", order, "mappings must have exactly one key, either -asc or -desc"
        )
