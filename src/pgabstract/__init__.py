"""Public pgabstract API."""

from __future__ import annotations

from .config import BuilderConfig, create_config
from .engine.statement import to_statement
from .sql.abstract import Abstract, UnaryOp
from .sql.joins import JoinSpec
from .sql.pg import PgAbstract
from .sql.shapes import JSONValue, LiteralSQL, LiteralSQLWithBinds, classify, raw, raw_binds
from .utils.exceptions import (
    CompilationError,
    DisallowedForValueError,
    MalformedAliasError,
    MalformedConflictSpecError,
    MalformedJoinError,
    PgAbstractError,
    UnsupportedShapeError,
)

__version__ = "0.1.0"

__all__ = [
    "Abstract",
    "BuilderConfig",
    "CompilationError",
    "DisallowedForValueError",
    "JSONValue",
    "JoinSpec",
    "LiteralSQL",
    "LiteralSQLWithBinds",
    "MalformedAliasError",
    "MalformedConflictSpecError",
    "MalformedJoinError",
    "PgAbstract",
    "PgAbstractError",
    "UnaryOp",
    "UnsupportedShapeError",
    "__version__",
    "classify",
    "create_config",
    "raw",
    "raw_binds",
    "to_statement",
]
