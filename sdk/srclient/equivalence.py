"""
Structural equivalence of schema texts.

Decides whether a schema text is already registered under a subject, for
idempotent registration. Two texts are equivalent when their parsed
structure is equal, regardless of whitespace, key order or formatting.

Each schema type has its own normalization strategy:
- AVRO, JSON: parse as JSON; compare the resulting values
- PROTOBUF: parse as JSON when possible, otherwise strip comments and
  collapse whitespace in the IDL text

Invariants:
    - A stored candidate that fails to normalize never matches
    - A query that fails to normalize is an InvalidRequestError
    - Candidates are scanned in order; the first match wins
"""

from __future__ import annotations

import json
import re
from collections.abc import Iterable
from typing import Any, Callable, Dict

from .errors import SCHEMA_NOT_FOUND, InvalidRequestError, NotFoundError
from .schema import Schema
from .types import SchemaType

_PROTO_LINE_COMMENT = re.compile(r"//[^\n]*")
_PROTO_BLOCK_COMMENT = re.compile(r"/\*.*?\*/", re.DOTALL)
_PROTO_PUNCT_SPACE = re.compile(r"\s*([{}();=,<>\[\]])\s*")
_WHITESPACE = re.compile(r"\s+")


class _Unparseable(Exception):
    """Schema text cannot be normalized for comparison."""


def _tag_bools(value: Any) -> Any:
    # True == 1 in Python; keep JSON booleans distinct from numbers
    if isinstance(value, bool):
        return ("bool", value)
    if isinstance(value, dict):
        return {k: _tag_bools(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_tag_bools(v) for v in value]
    return value


def _normalize_json(text: str) -> Any:
    try:
        return _tag_bools(json.loads(text))
    except (ValueError, RecursionError) as e:
        raise _Unparseable(str(e)) from e


def _normalize_protobuf(text: str) -> Any:
    try:
        return ("json", _tag_bools(json.loads(text)))
    except (ValueError, RecursionError):
        pass
    stripped = _PROTO_BLOCK_COMMENT.sub(" ", _PROTO_LINE_COMMENT.sub(" ", text))
    collapsed = _WHITESPACE.sub(" ", _PROTO_PUNCT_SPACE.sub(r"\1", stripped)).strip()
    if not collapsed:
        raise _Unparseable("empty protobuf definition")
    return ("proto", collapsed)


_STRATEGIES: Dict[SchemaType, Callable[[str], Any]] = {
    SchemaType.AVRO: _normalize_json,
    SchemaType.JSON: _normalize_json,
    SchemaType.PROTOBUF: _normalize_protobuf,
}


def normalize(schema_type: SchemaType, schema_text: str) -> Any:
    """Structural form of a schema text.

    Raises:
        InvalidRequestError: If the text cannot be parsed for its type
    """
    try:
        return _STRATEGIES[schema_type](schema_text)
    except _Unparseable as e:
        raise InvalidRequestError(f"Invalid {schema_type} schema: {e}") from e


def is_equivalent(schema_type: SchemaType, left: str, right: str) -> bool:
    """Whether two texts of the same type are structurally equal.

    Texts that fail to parse are never equivalent to anything.
    """
    strategy = _STRATEGIES[schema_type]
    try:
        return strategy(left) == strategy(right)
    except _Unparseable:
        return False


def find_equivalent(
    candidates: Iterable[Schema],
    schema_type: SchemaType,
    schema_text: str,
) -> Schema:
    """First candidate structurally equal to the query text.

    Only candidates of the same schema type are considered.

    Args:
        candidates: Live entries of one subject, in scan order
        schema_type: Type of the query schema
        schema_text: Query schema text

    Returns:
        The matching entry

    Raises:
        InvalidRequestError: If the query text cannot be parsed
        NotFoundError: If no candidate matches
    """
    strategy = _STRATEGIES[schema_type]
    wanted = normalize(schema_type, schema_text)

    for candidate in candidates:
        if candidate.schema_type != schema_type:
            continue
        try:
            existing = strategy(candidate.schema)
        except _Unparseable:
            continue
        if existing == wanted:
            return candidate

    raise NotFoundError("Schema not found", error_code=SCHEMA_NOT_FOUND)
