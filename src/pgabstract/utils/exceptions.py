"""Custom exception hierarchy."""

from typing import Optional


class PgAbstractError(Exception):
    """Base exception for pgabstract-specific failures."""

    def __init__(
        self, message: str, suggestion: Optional[str] = None, context: Optional[dict] = None
    ):
        """Initialize exception with message, optional suggestion, and context.

        Args:
            message: Error message
            suggestion: Optional suggestion for fixing the error
            context: Optional dictionary with additional context
        """
        super().__init__(message)
        self.message = message
        self.suggestion = suggestion
        self.context = context or {}

    def __str__(self) -> str:
        """Return formatted error message with suggestion if available."""
        msg = self.message
        if self.suggestion:
            msg += f"\n\nSuggestion: {self.suggestion}"
        if self.context:
            context_str = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
            msg += f"\n\nContext: {context_str}"
        return msg


class CompilationError(PgAbstractError):
    """Raised when a clause description cannot be converted into SQL."""


class UnsupportedShapeError(CompilationError):
    """Raised when a value's shape matches no grammar rule of the clause."""

    def __init__(
        self, message: str, suggestion: Optional[str] = None, context: Optional[dict] = None
    ):
        """Initialize unsupported shape error.

        Common suggestions:
        - Wrap literal SQL with ``raw()`` or ``raw_binds()``
        - Pass a list where a list of columns is expected
        """
        if suggestion is None:
            suggestion = (
                "Check the documentation for the value shapes this clause accepts. "
                "Literal SQL must be wrapped with raw() or raw_binds()."
            )
        super().__init__(message, suggestion, context)


class MalformedAliasError(CompilationError):
    """Raised when a field alias pair has fewer than two elements."""

    def __init__(
        self, message: str, suggestion: Optional[str] = None, context: Optional[dict] = None
    ):
        """Initialize malformed alias error."""
        if suggestion is None:
            suggestion = "Field aliases must be given as [name, alias]. Example: ['foo', 'bar']"
        super().__init__(message, suggestion, context)


class MalformedJoinError(CompilationError):
    """Raised when a join descriptor cannot be compiled."""

    def __init__(
        self, message: str, suggestion: Optional[str] = None, context: Optional[dict] = None
    ):
        """Initialize malformed join error.

        Common suggestions:
        - Give at least one foreign key/primary key pair
        - Qualify keys when the table is literal SQL
        """
        if suggestion is None:
            if "qualified" in message.lower():
                suggestion = (
                    "Keys of a join against literal SQL must carry their table name. "
                    "Example: [raw('bar b'), 'b.foo_id', 'f.id']"
                )
            else:
                suggestion = (
                    "Joins must be given as [table, fk, pk, ...] or [kind, table, fk, pk, ...]. "
                    "Example: ['-left', 'bar', 'foo_id', 'id']"
                )
        super().__init__(message, suggestion, context)


class MalformedConflictSpecError(CompilationError):
    """Raised when an on_conflict descriptor is not of the form [target, {set}]."""

    def __init__(
        self, message: str, suggestion: Optional[str] = None, context: Optional[dict] = None
    ):
        """Initialize malformed conflict spec error."""
        if suggestion is None:
            suggestion = (
                "Pass on_conflict as [target, {column: value}]. "
                "Example: {'on_conflict': [['a', 'b'], {'a': 'e'}]}"
            )
        super().__init__(message, suggestion, context)


class DisallowedForValueError(CompilationError):
    """Raised when a FOR clause scalar is not the token ``update``."""

    def __init__(
        self, message: str, suggestion: Optional[str] = None, context: Optional[dict] = None
    ):
        """Initialize disallowed FOR value error."""
        if suggestion is None:
            suggestion = (
                "Only 'update' is accepted as a plain value. "
                "Use raw('update skip locked') for anything else."
            )
        super().__init__(message, suggestion, context)
