"""
Schema entry returned by every resolution call.

A Schema is one immutable (id, subject, version, text) record. Entries
fetched by ID alone carry no subject or version.

Invariants:
    - Entries are immutable; equality ignores the codec handle
    - The codec handle is built at most once per entry, even when the
      entry is shared between cache readers on several threads
    - A failed codec build is memoized as None

Example:
    >>> schema = Schema(id=1, schema='{"type": "string"}', subject="test1", version=1)
    >>> schema.codec() is schema.codec()
    True
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Optional

from .codec import Codec, build_codec
from .errors import InvalidRequestError
from .types import Reference, SchemaType


class _CodecSlot:
    """Build-once holder for an entry's codec."""

    __slots__ = ("lock", "built", "codec")

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.built = False
        self.codec: Optional[Codec] = None


@dataclass(frozen=True)
class Schema:
    """A registered schema.

    Attributes:
        id: Globally unique schema ID
        schema: Raw schema text
        schema_type: Schema definition language
        subject: Subject the entry lives under (None when fetched by ID)
        version: Version within the subject (None when fetched by ID)
        references: Schemas this one depends on, in declaration order
    """

    id: int
    schema: str
    schema_type: SchemaType = SchemaType.AVRO
    subject: Optional[str] = None
    version: Optional[int] = None
    references: tuple[Reference, ...] = ()
    _codec_slot: _CodecSlot = field(
        default_factory=_CodecSlot, init=False, repr=False, compare=False
    )

    def codec(self) -> Optional[Codec]:
        """Codec for this schema, built on first use.

        Returns:
            Codec, or None if one cannot be built from the schema text
        """
        slot = self._codec_slot
        if slot.built:
            return slot.codec
        with slot.lock:
            if not slot.built:
                slot.codec = build_codec(self.schema_type, self.schema)
                slot.built = True
        return slot.codec

    def encode(self, datum: Any) -> bytes:
        """Encode a datum with this schema's codec.

        Raises:
            InvalidRequestError: If no codec is available or the datum is invalid
        """
        return self._require_codec().encode(datum)

    def decode(self, data: bytes) -> Any:
        """Decode bytes with this schema's codec.

        Raises:
            InvalidRequestError: If no codec is available or the data is invalid
        """
        return self._require_codec().decode(data)

    def _require_codec(self) -> Codec:
        codec = self.codec()
        if codec is None:
            raise InvalidRequestError(
                f"No codec available for {self.schema_type} schema {self.id}"
            )
        return codec

    def to_dict(self) -> Dict[str, Any]:
        """Registry wire representation.

        schemaType is omitted for AVRO and references when empty, the way
        registries answer.
        """
        data: Dict[str, Any] = {
            "subject": self.subject,
            "version": self.version,
            "id": self.id,
            "schema": self.schema,
        }
        if self.schema_type != SchemaType.AVRO:
            data["schemaType"] = self.schema_type.value
        if self.references:
            data["references"] = [ref.to_dict() for ref in self.references]
        return data

    @classmethod
    def from_dict(
        cls,
        data: Dict[str, Any],
        schema_id: Optional[int] = None,
        subject: Optional[str] = None,
    ) -> Schema:
        """Create from a registry response body.

        Args:
            data: Decoded response body
            schema_id: ID to use when the body carries none (lookup by ID)
            subject: Subject to use when the body carries none
        """
        return cls(
            id=int(data.get("id", schema_id)),
            schema=data["schema"],
            schema_type=SchemaType.parse(data.get("schemaType")),
            subject=data.get("subject", subject),
            version=data.get("version"),
            references=make_references(data.get("references") or ()),
        )


def make_references(refs: Iterable[Any]) -> tuple[Reference, ...]:
    """Normalize references given as Reference objects or dictionaries."""
    return tuple(ref if isinstance(ref, Reference) else Reference.from_dict(ref) for ref in refs)


def topic_subject(topic: str, is_key: bool) -> str:
    """Subject name for a topic's key or value schema.

    >>> topic_subject("orders", is_key=False)
    'orders-value'
    """
    return f"{topic}-key" if is_key else f"{topic}-value"
