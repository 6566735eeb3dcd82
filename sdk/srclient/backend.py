"""
Upstream protocol the client facade resolves cache misses against.

Implementations:
- HttpRegistryBackend (_http_client.py): a registry reached over HTTP
- CatalogRegistryBackend (_catalog_client.py): an in-process SchemaCatalog

Invariants:
    - Every method is one logical upstream operation
    - Errors are SchemaRegistryError subclasses; asyncio cancellation
      propagates unchanged

How to change safely:
    - Protocol changes require updating both implementations
"""

from __future__ import annotations

from typing import Optional, Protocol, Sequence, runtime_checkable

from .schema import Schema
from .types import Compatibility, Mode, Reference, SchemaType, SubjectVersion, VersionSelector


@runtime_checkable
class RegistryBackend(Protocol):
    """Source of truth behind the client facade."""

    async def close(self) -> None: ...

    def set_credentials(self, username: str, password: str) -> None: ...

    async def list_subjects(self) -> list[str]: ...

    async def list_schema_types(self) -> list[str]: ...

    async def get_schema_by_id(self, schema_id: int) -> Schema: ...

    async def get_schema_by_version(self, subject: str, version: VersionSelector) -> Schema: ...

    async def get_versions_by_id(self, schema_id: int) -> list[SubjectVersion]: ...

    async def get_versions_by_subject(self, subject: str) -> list[int]: ...

    async def register_schema(
        self,
        subject: str,
        schema: str,
        schema_type: SchemaType,
        references: Sequence[Reference],
    ) -> Schema: ...

    async def lookup_schema(
        self,
        subject: str,
        schema: str,
        schema_type: SchemaType,
        references: Sequence[Reference],
    ) -> Schema: ...

    async def check_compatibility(
        self,
        subject: str,
        schema: str,
        version: VersionSelector,
        schema_type: SchemaType,
        references: Sequence[Reference],
    ) -> bool: ...

    async def delete_subject(self, subject: str, permanent: bool) -> list[int]: ...

    async def delete_version(
        self, subject: str, version: VersionSelector, permanent: bool
    ) -> int: ...

    async def get_compatibility(self, subject: Optional[str] = None) -> Compatibility: ...

    async def get_mode(self, subject: Optional[str] = None) -> Mode: ...
