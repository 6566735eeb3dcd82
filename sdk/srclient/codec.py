"""
Codec handles built from schema text.

A codec encodes Python data to bytes and decodes bytes back, validating
against the schema it was built from:
- AVRO: Apache Avro binary encoding (avro)
- JSON: JSON encoding validated with JSON Schema (jsonschema)
- PROTOBUF: no codec factory; build_codec() always returns None

Invariants:
    - build_codec() never raises; construction failure returns None
    - Codecs are immutable once built and safe to share between threads

Example:
    >>> codec = build_codec(SchemaType.AVRO, '{"type": "string"}')
    >>> codec.decode(codec.encode("hello"))
    'hello'
"""

from __future__ import annotations

import io
import json
import logging
from typing import Any, Callable, Dict, Optional, Protocol

import avro.errors
import avro.io
import avro.schema
import jsonschema.exceptions
import jsonschema.validators

from .errors import InvalidRequestError
from .types import SchemaType

logger = logging.getLogger(__name__)


class Codec(Protocol):
    """Encoder/decoder bound to one schema."""

    def encode(self, datum: Any) -> bytes: ...

    def decode(self, data: bytes) -> Any: ...


class AvroCodec:
    """Avro binary codec."""

    def __init__(self, schema_text: str) -> None:
        self.schema = avro.schema.parse(schema_text)

    def encode(self, datum: Any) -> bytes:
        """Encode a datum to Avro binary.

        Raises:
            InvalidRequestError: If the datum does not match the schema
        """
        buf = io.BytesIO()
        try:
            avro.io.DatumWriter(self.schema).write(datum, avro.io.BinaryEncoder(buf))
        except avro.errors.AvroException as e:
            raise InvalidRequestError(f"Datum does not match Avro schema: {e}") from e
        return buf.getvalue()

    def decode(self, data: bytes) -> Any:
        """Decode Avro binary to a datum.

        Raises:
            InvalidRequestError: If the bytes cannot be read with the schema
        """
        try:
            return avro.io.DatumReader(self.schema).read(
                avro.io.BinaryDecoder(io.BytesIO(data))
            )
        except (avro.errors.AvroException, EOFError) as e:
            raise InvalidRequestError(f"Cannot decode Avro data: {e}") from e


class JsonSchemaCodec:
    """JSON codec validating every datum against a JSON Schema."""

    def __init__(self, schema_text: str) -> None:
        schema = json.loads(schema_text)
        validator_cls = jsonschema.validators.validator_for(schema)
        validator_cls.check_schema(schema)
        self.validator = validator_cls(schema)

    def encode(self, datum: Any) -> bytes:
        """Validate and encode a datum as compact JSON."""
        self._validate(datum)
        return json.dumps(datum, separators=(",", ":")).encode("utf-8")

    def decode(self, data: bytes) -> Any:
        """Decode JSON bytes and validate the result."""
        try:
            datum = json.loads(data)
        except (ValueError, RecursionError) as e:
            raise InvalidRequestError(f"Cannot decode JSON data: {e}") from e
        self._validate(datum)
        return datum

    def _validate(self, datum: Any) -> None:
        try:
            self.validator.validate(datum)
        except jsonschema.exceptions.ValidationError as e:
            raise InvalidRequestError(f"Datum does not match JSON schema: {e.message}") from e


_FACTORIES: Dict[SchemaType, Callable[[str], Codec]] = {
    SchemaType.AVRO: AvroCodec,
    SchemaType.JSON: JsonSchemaCodec,
}

_CONSTRUCTION_ERRORS = (
    avro.errors.AvroException,
    jsonschema.exceptions.SchemaError,
    ValueError,
    TypeError,
    RecursionError,
)


def has_codec_factory(schema_type: SchemaType) -> bool:
    """Whether codecs can be built for this schema type at all."""
    return schema_type in _FACTORIES


def build_codec(schema_type: SchemaType, schema_text: str) -> Optional[Codec]:
    """Try to build a codec for a schema.

    Args:
        schema_type: Schema definition language
        schema_text: Raw schema text

    Returns:
        Codec instance, or None if the type has no factory or the text
        is rejected by the codec library
    """
    factory = _FACTORIES.get(schema_type)
    if factory is None:
        return None
    try:
        return factory(schema_text)
    except _CONSTRUCTION_ERRORS as e:
        logger.debug(f"Codec construction failed for {schema_type} schema: {e}")
        return None
