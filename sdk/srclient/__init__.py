"""
srclient - Python client SDK for schema registries.

This SDK provides:
- SchemaRegistryClient: resolve, register and delete schemas, with a
  client-side resolution cache
- SchemaCatalog: in-process reference catalog following the registry's
  storage rules (backs the in-memory client and the emulator)
- Schema: immutable registered entry with a lazily built codec

Example:
    >>> from srclient import SchemaRegistryClient, SchemaType
    >>>
    >>> async with SchemaRegistryClient("http://localhost:8081") as client:
    ...     schema = await client.register_schema("orders-value", '{"type": "string"}')
    ...     latest = await client.get_latest_schema("orders-value")
    ...     data = latest.encode("hello")

Invariants:
    - Schema IDs are global and never reused
    - Versions increase per subject starting at 1
    - Cached entries are never invalidated, only cleared by disabling caching

Version: 1.0.0
"""

__version__ = "1.0.0"

from .cache import SchemaCache
from .catalog import SchemaCatalog
from .client import SchemaRegistryClient
from .config import ClientSettings
from .errors import (
    ConflictError,
    InvalidRequestError,
    NotFoundError,
    SchemaRegistryError,
    UnimplementedError,
    UpstreamUnavailableError,
)
from .schema import Schema, topic_subject
from .types import (
    LATEST,
    Compatibility,
    Mode,
    Reference,
    SchemaType,
    SubjectVersion,
)

__all__ = [
    # Version
    "__version__",
    # Types
    "Schema",
    "SchemaType",
    "Compatibility",
    "Mode",
    "Reference",
    "SubjectVersion",
    "LATEST",
    "topic_subject",
    # Client
    "SchemaRegistryClient",
    "ClientSettings",
    "SchemaCache",
    # Catalog
    "SchemaCatalog",
    # Errors
    "SchemaRegistryError",
    "NotFoundError",
    "InvalidRequestError",
    "ConflictError",
    "UpstreamUnavailableError",
    "UnimplementedError",
]
