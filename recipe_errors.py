#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Errors raised while loading recipes into Neo4j.

Every error aborts the run; load_recipes.main() turns them into a
non-zero exit with a readable message.
"""

from typing import Any, Dict, Iterable, Optional


class RecipeLoadError(Exception):
    """Base class for every failure of a recipe load run."""


class MalformedRow(RecipeLoadError):
    """A scalar column (id, minutes) did not decode, or a column is absent."""

    def __init__(self, line_no: Optional[int], row: Dict[str, Any], reason: str):
        self.line_no = line_no
        self.row = row
        self.reason = reason
        where = f"line {line_no}" if line_no is not None else "row"
        super().__init__(f"Malformed {where}: {reason} (row={row!r})")


class MalformedNumericField(RecipeLoadError):
    """An entry of a bracketed number list is not a decimal number."""

    def __init__(self, value: str, position: int, line_no: Optional[int] = None):
        self.value = value
        self.position = position
        self.line_no = line_no
        where = f" on line {line_no}" if line_no is not None else ""
        super().__init__(
            f"Malformed numeric entry {value!r} at position {position}{where}"
        )


class MissingColumns(RecipeLoadError):
    def __init__(self, missing: Iterable[str]):
        self.missing = sorted(missing)
        super().__init__(f"CSV missing required columns: {', '.join(self.missing)}")


class StoreConnectionError(RecipeLoadError):
    """Connecting or authenticating to Neo4j failed."""


class StoreError(RecipeLoadError):
    """A query or commit failed mid-run."""
