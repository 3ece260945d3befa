"""Runtime configuration objects for pgabstract."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Literal

KeywordCase = Literal["upper", "lower"]


@dataclass(frozen=True)
class BuilderConfig:
    """Identifier quoting and keyword casing options for a builder."""

    quote_char: str = '"'
    name_sep: str = "."
    case: KeywordCase = "upper"

    def __post_init__(self) -> None:
        """Validate the keyword casing."""
        if self.case not in ("upper", "lower"):
            raise ValueError(f"case must be 'upper' or 'lower', got {self.case!r}")


def _load_env_config() -> dict[str, object]:
    """Load configuration from environment variables.

    Returns:
        Dictionary of configuration values from environment
    """
    config: dict[str, object] = {}

    if "PGABSTRACT_QUOTE_CHAR" in os.environ:
        config["quote_char"] = os.environ["PGABSTRACT_QUOTE_CHAR"]

    if "PGABSTRACT_NAME_SEP" in os.environ:
        config["name_sep"] = os.environ["PGABSTRACT_NAME_SEP"]

    if "PGABSTRACT_CASE" in os.environ:
        config["case"] = os.environ["PGABSTRACT_CASE"].lower()

    return config


def create_config(**kwargs: object) -> BuilderConfig:
    """Convenience helper used by ``Abstract`` when no config is passed.

    Supports environment variables for configuration:
    - PGABSTRACT_QUOTE_CHAR: Identifier quote character (empty disables quoting)
    - PGABSTRACT_NAME_SEP: Separator between schema, table and column names
    - PGABSTRACT_CASE: "upper" or "lower" SQL keywords

    Args:
        **kwargs: Configuration options. Valid keys are ``quote_char``,
            ``name_sep`` and ``case``.

    Returns:
        BuilderConfig instance with parsed configuration

    Raises:
        TypeError: If an unknown option is given
        ValueError: If ``case`` is not "upper" or "lower"
    """
    unknown = set(kwargs) - set(BuilderConfig.__dataclass_fields__)
    if unknown:
        raise TypeError(f"Unknown builder options: {', '.join(sorted(unknown))}")

    # Merge: kwargs override env vars, env vars override defaults
    merged_kwargs = {**_load_env_config(), **kwargs}
    return BuilderConfig(**merged_kwargs)  # type: ignore[arg-type]
