#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Turn raw RAW_recipes.csv rows into Recipe records.

The Food.com export stores list columns as display text, e.g.

    ingredients = "['winter squash', 'mexican seasoning', 'honey']"
    nutrition   = "[51.5, 0.0, 13.0, 0.0, 2.0, 0.0, 4.0]"

The decode below is lossy: it strips the brackets, splits on
commas and trims quotes. Commas or quotes inside an element are not
unescaped, so "['salt, kosher']" becomes ['salt', 'kosher'].
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from recipe_errors import MalformedNumericField, MalformedRow, MissingColumns

# ---------- Config ----------
REQUIRED_COLUMNS = frozenset({
    "id",
    "name",
    "description",
    "ingredients",
    "minutes",
    "steps",
    "nutrition",
})

BRACKETS = "[]"
QUOTES = "'\""

# Neo4j stores integers as signed 64-bit.
INT64_MIN = -(2 ** 63)
INT64_MAX = 2 ** 63 - 1


# ---------- Record ----------
@dataclass
class Recipe:
    id: int
    name: str
    description: str
    ingredients: List[str] = field(default_factory=list)
    minutes: int = 0
    steps: List[str] = field(default_factory=list)
    nutrition: List[float] = field(default_factory=list)

    def to_params(self) -> Dict[str, Any]:
        """Properties written onto the :Recipe node (ingredients become edges)."""
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "minutes": self.minutes,
            "nutrition": list(self.nutrition),
            "steps": list(self.steps),
        }


# ---------- Helpers ----------
def _strip_one(s: str, chars: str) -> str:
    """Remove at most one of `chars` from each end of s."""
    if s and s[0] in chars:
        s = s[1:]
    if s and s[-1] in chars:
        s = s[:-1]
    return s


def _split_bracketed(raw: str) -> List[str]:
    return _strip_one(raw or "", BRACKETS).split(",")


def decode_string_sequence(raw: str) -> List[str]:
    """
    Decode "['a', 'b']" into ['a', 'b'].

    Never fails: empty parts are kept, so "[]" gives [''].
    """
    return [_strip_one(part.strip(), QUOTES) for part in _split_bracketed(raw)]


def decode_number_sequence(raw: str) -> List[float]:
    """
    Decode "[1.0, 2.5, 3]" into [1.0, 2.5, 3.0].

    Entries go through float(), so "nan" and "inf" are accepted; digit
    separators such as "1_0" are not.
    """
    numbers: List[float] = []
    for position, part in enumerate(_split_bracketed(raw)):
        text = part.strip()
        try:
            if "_" in text:
                raise ValueError(text)
            numbers.append(float(text))
        except ValueError:
            raise MalformedNumericField(text, position) from None
    return numbers


def check_columns(fieldnames) -> None:
    missing = REQUIRED_COLUMNS - set(fieldnames or [])
    if missing:
        raise MissingColumns(missing)


def _to_int(row: Dict[str, Any], column: str, line_no: Optional[int]) -> int:
    value = row.get(column)
    try:
        text = value.strip() if isinstance(value, str) else value
        if isinstance(text, str) and "_" in text:
            raise ValueError(text)
        number = int(text)
    except (TypeError, ValueError):
        raise MalformedRow(line_no, row, f"{column}={value!r} is not an integer") from None
    if not INT64_MIN <= number <= INT64_MAX:
        raise MalformedRow(line_no, row, f"{column}={value!r} is out of the 64-bit integer range")
    return number


def normalize_row(row: Dict[str, Any], line_no: Optional[int] = None) -> Recipe:
    """
    Build a Recipe from one csv.DictReader row.

    Raises MalformedRow for a bad id/minutes or an absent column, and
    MalformedNumericField (with line_no attached) for a bad nutrition entry.
    """
    absent = sorted(c for c in REQUIRED_COLUMNS if row.get(c) is None)
    if absent:
        raise MalformedRow(line_no, row, f"missing value for {', '.join(absent)}")

    recipe_id = _to_int(row, "id", line_no)
    minutes = _to_int(row, "minutes", line_no)

    try:
        nutrition = decode_number_sequence(row["nutrition"])
    except MalformedNumericField as e:
        raise MalformedNumericField(e.value, e.position, line_no) from None

    return Recipe(
        id=recipe_id,
        name=row["name"],
        description=row["description"],
        ingredients=decode_string_sequence(row["ingredients"]),
        minutes=minutes,
        steps=decode_string_sequence(row["steps"]),
        nutrition=nutrition,
    )
