"""
Internal in-process backend for the schema registry SDK.

Serves registry calls straight from a SchemaCatalog, with no network in
between. Used for tests and local development through
SchemaRegistryClient.in_memory().

Mode endpoints are not backed by the catalog and raise UnimplementedError.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from .catalog import SchemaCatalog
from .errors import UnimplementedError
from .schema import Schema
from .types import Compatibility, Mode, Reference, SchemaType, SubjectVersion, VersionSelector

logger = logging.getLogger(__name__)


class CatalogRegistryBackend:
    """Registry backend over an in-process catalog."""

    def __init__(self, catalog: Optional[SchemaCatalog] = None) -> None:
        self.catalog = catalog if catalog is not None else SchemaCatalog()

    async def close(self) -> None:
        """Nothing to release."""

    def set_credentials(self, username: str, password: str) -> None:
        logger.debug("In-memory schema registry ignores credentials")

    async def list_subjects(self) -> list[str]:
        return self.catalog.list_subjects()

    async def list_schema_types(self) -> list[str]:
        return self.catalog.schema_types()

    async def get_schema_by_id(self, schema_id: int) -> Schema:
        return self.catalog.get_by_id(schema_id)

    async def get_schema_by_version(self, subject: str, version: VersionSelector) -> Schema:
        return self.catalog.get_by_version(subject, version)

    async def get_versions_by_id(self, schema_id: int) -> list[SubjectVersion]:
        return self.catalog.versions_by_id(schema_id)

    async def get_versions_by_subject(self, subject: str) -> list[int]:
        return self.catalog.list_versions(subject)

    async def register_schema(
        self,
        subject: str,
        schema: str,
        schema_type: SchemaType,
        references: Sequence[Reference],
    ) -> Schema:
        return self.catalog.register(subject, schema_type, schema, references)

    async def lookup_schema(
        self,
        subject: str,
        schema: str,
        schema_type: SchemaType,
        references: Sequence[Reference],
    ) -> Schema:
        return self.catalog.exists(subject, schema_type, schema)

    async def check_compatibility(
        self,
        subject: str,
        schema: str,
        version: VersionSelector,
        schema_type: SchemaType,
        references: Sequence[Reference],
    ) -> bool:
        return self.catalog.check_compatibility(subject, version, schema_type, schema)

    async def delete_subject(self, subject: str, permanent: bool) -> list[int]:
        return self.catalog.delete_subject(subject)

    async def delete_version(self, subject: str, version: VersionSelector, permanent: bool) -> int:
        return self.catalog.delete_version(subject, version)

    async def get_compatibility(self, subject: Optional[str] = None) -> Compatibility:
        if subject is None:
            return self.catalog.get_compatibility()
        return self.catalog.get_subject_compatibility(subject)

    async def get_mode(self, subject: Optional[str] = None) -> Mode:
        raise UnimplementedError("Mode is not supported by the in-memory registry")
