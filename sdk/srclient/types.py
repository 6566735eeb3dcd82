"""
Value types shared by the client, the catalog and the emulator.

Invariants:
    - Enum values are the registry's wire strings
    - Reference is immutable and hashable
    - "latest" is the only non-numeric version selector

How to change safely:
    - New schema types need a codec factory entry (codec.py) and an
      equivalence strategy (equivalence.py)
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Literal, Union

from .errors import INVALID_VERSION, InvalidRequestError

LATEST = "latest"

VersionSelector = Union[int, Literal["latest"]]


class SchemaType(str, Enum):
    """Schema definition languages understood by the registry."""

    AVRO = "AVRO"
    PROTOBUF = "PROTOBUF"
    JSON = "JSON"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, value: Union[str, SchemaType, None]) -> SchemaType:
        """Parse a wire value; an empty value means AVRO.

        Raises:
            InvalidRequestError: If the value names no known schema type
        """
        if value is None or value == "":
            return cls.AVRO
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).upper())
        except ValueError:
            raise InvalidRequestError(f"Invalid schema type '{value}'") from None


class Compatibility(str, Enum):
    """Compatibility rules enforced when newer schemas join a subject."""

    BACKWARD = "BACKWARD"
    BACKWARD_TRANSITIVE = "BACKWARD_TRANSITIVE"
    FORWARD = "FORWARD"
    FORWARD_TRANSITIVE = "FORWARD_TRANSITIVE"
    FULL = "FULL"
    FULL_TRANSITIVE = "FULL_TRANSITIVE"
    NONE = "NONE"

    def __str__(self) -> str:
        return self.value


class Mode(str, Enum):
    """Registry operating mode."""

    IMPORT = "IMPORT"
    READONLY = "READONLY"
    READWRITE = "READWRITE"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Reference:
    """A named dependency on another registered schema.

    Protobuf imports and JSON Schema $ref entries resolve through these.

    Attributes:
        name: Import name or $ref as written in the referencing schema
        subject: Subject holding the referenced schema
        version: Version of the referenced schema
    """

    name: str
    subject: str
    version: int

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {"name": self.name, "subject": self.subject, "version": self.version}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Reference:
        """Create from dictionary."""
        return cls(name=data["name"], subject=data["subject"], version=int(data["version"]))


@dataclass(frozen=True)
class SubjectVersion:
    """A (subject, version) pair under which a schema ID is registered."""

    subject: str
    version: int

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {"subject": self.subject, "version": self.version}


def parse_version(value: Union[int, str]) -> VersionSelector:
    """Normalize a version selector.

    Accepts positive integers, their decimal strings, "latest" and -1
    (the registry's alias for latest).

    Raises:
        InvalidRequestError: If the value is not a valid selector
    """
    if isinstance(value, str):
        if value == LATEST:
            return LATEST
        try:
            value = int(value)
        except ValueError:
            raise InvalidRequestError(
                f"Invalid version '{value}'", error_code=INVALID_VERSION
            ) from None

    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidRequestError(f"Invalid version {value!r}", error_code=INVALID_VERSION)
    if value == -1:
        return LATEST
    if value < 1:
        raise InvalidRequestError(f"Invalid version {value}", error_code=INVALID_VERSION)
    return value
