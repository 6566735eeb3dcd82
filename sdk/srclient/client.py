"""
Schema registry client for the Python SDK.

This module provides the main client interface:
- SchemaRegistryClient: resolution, registration and admin calls with a
  client-side resolution cache in front of the registry

Example:
    >>> async with SchemaRegistryClient("http://localhost:8081") as client:
    ...     schema = await client.register_schema("orders-value", '{"type": "string"}')
    ...     same = await client.get_schema_by_id(schema.id)
    ...     payload = same.encode("hello")

Invariants:
    - A cache hit makes no upstream call; a miss makes exactly one
    - The cache is written only after the upstream call succeeded, so a
      cancelled or timed-out call leaves nothing behind
    - Registration and deletion do not invalidate the cache (see
      SchemaCache for the accepted staleness window)
    - Every call accepts timeout=; it bounds the upstream call and the
      resulting TimeoutError/CancelledError propagates unchanged
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Iterable
from typing import Any, Optional, TypeVar, Union

import httpx

from ._catalog_client import CatalogRegistryBackend
from ._http_client import HttpRegistryBackend, redact_url
from .backend import RegistryBackend
from .cache import SchemaCache
from .catalog import SchemaCatalog
from .codec import has_codec_factory
from .config import ClientSettings
from .errors import InvalidRequestError
from .schema import Schema, make_references
from .types import LATEST, Compatibility, Mode, Reference, SchemaType, SubjectVersion, parse_version

logger = logging.getLogger(__name__)

T = TypeVar("T")

SchemaTypeArg = Union[SchemaType, str]
ReferencesArg = Iterable[Union[Reference, dict]]


class SchemaRegistryClient:
    """Client for a schema registry.

    Wraps an upstream RegistryBackend (HTTP by default) with a resolution
    cache and optional eager codec creation.

    Attributes:
        backend: Upstream the client resolves cache misses against

    Example:
        >>> client = SchemaRegistryClient.in_memory()
        >>> schema = await client.register_schema("test1", '{"type": "string"}')
        >>> (schema.id, schema.version)
        (1, 1)
    """

    def __init__(
        self,
        url: Optional[str] = None,
        *,
        backend: Optional[RegistryBackend] = None,
        username: Optional[str] = None,
        password: Optional[str] = None,
        timeout: Optional[float] = 10.0,
        caching_enabled: bool = True,
        codec_creation_enabled: bool = False,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """Initialize the client.

        Args:
            url: Registry base URL (ignored when backend is given)
            backend: Upstream to use instead of HTTP
            username: Basic auth username
            password: Basic auth password
            timeout: Transport timeout in seconds
            caching_enabled: Cache resolved schemas
            codec_creation_enabled: Build codecs as soon as schemas are fetched
            transport: Custom httpx transport for the HTTP backend

        Raises:
            ValueError: If neither url nor backend is given
        """
        if backend is None:
            if not url:
                raise ValueError("Either url or backend is required")
            backend = HttpRegistryBackend(
                url,
                username=username,
                password=password,
                timeout=timeout,
                transport=transport,
            )
        self.backend = backend
        self._cache = SchemaCache(enabled=caching_enabled)
        self._codec_creation_enabled = codec_creation_enabled

    @classmethod
    def from_settings(
        cls,
        settings: Optional[ClientSettings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> SchemaRegistryClient:
        """Create a client from ClientSettings (environment by default)."""
        settings = settings or ClientSettings()
        logger.info(
            "Schema registry client configured",
            extra={
                "url": redact_url(settings.url),
                "caching_enabled": settings.caching_enabled,
                "codec_creation_enabled": settings.codec_creation_enabled,
            },
        )
        return cls(
            settings.url,
            username=settings.username,
            password=settings.password,
            timeout=settings.timeout,
            caching_enabled=settings.caching_enabled,
            codec_creation_enabled=settings.codec_creation_enabled,
            transport=transport,
        )

    @classmethod
    def in_memory(cls, catalog: Optional[SchemaCatalog] = None, **kwargs: Any) -> SchemaRegistryClient:
        """Create a client backed by an in-process catalog."""
        return cls(backend=CatalogRegistryBackend(catalog), **kwargs)

    async def __aenter__(self) -> SchemaRegistryClient:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def close(self) -> None:
        """Release the upstream connection."""
        await self.backend.close()

    # Configuration toggles

    @property
    def caching_enabled(self) -> bool:
        """Whether lookups are answered from cache."""
        return self._cache.enabled

    @property
    def codec_creation_enabled(self) -> bool:
        """Whether codecs are built eagerly on fetch."""
        return self._codec_creation_enabled

    def set_caching_enabled(self, value: bool) -> None:
        """Enable or disable the resolution cache.

        Either way the cache is cleared; calls already in flight are not
        affected.
        """
        self._cache.set_enabled(value)

    def set_codec_creation_enabled(self, value: bool) -> None:
        """Build codecs on fetch (True) or on first use (False)."""
        self._codec_creation_enabled = value

    def set_credentials(self, username: str, password: str) -> None:
        """Authenticate subsequent upstream calls with basic auth."""
        self.backend.set_credentials(username, password)

    # Internals

    async def _call(self, call: Awaitable[T], timeout: Optional[float]) -> T:
        if timeout is None:
            return await call
        return await asyncio.wait_for(call, timeout)

    def _prepare(self, schema: Schema) -> Schema:
        if self._codec_creation_enabled and has_codec_factory(schema.schema_type):
            if schema.codec() is None:
                raise InvalidRequestError(
                    f"Cannot create codec for {schema.schema_type} schema {schema.id}"
                )
        return schema

    # Discovery

    async def list_subjects(self, *, timeout: Optional[float] = None) -> list[str]:
        """Subjects with at least one live version, sorted."""
        return await self._call(self.backend.list_subjects(), timeout)

    async def list_schema_types(self, *, timeout: Optional[float] = None) -> list[str]:
        """Schema types known to the registry."""
        return await self._call(self.backend.list_schema_types(), timeout)

    # Reads

    async def get_schema_by_id(self, schema_id: int, *, timeout: Optional[float] = None) -> Schema:
        """Schema registered under a global ID.

        Raises:
            NotFoundError: If no schema has this ID
        """
        cached = self._cache.by_id.get(schema_id)
        if cached is not None:
            return cached

        schema = self._prepare(
            await self._call(self.backend.get_schema_by_id(schema_id), timeout)
        )
        self._cache.by_id.put(schema_id, schema)
        return schema

    async def get_latest_schema(self, subject: str, *, timeout: Optional[float] = None) -> Schema:
        """Highest live version of a subject.

        A cached result may be older than the registry's latest version.

        Raises:
            NotFoundError: If the subject has no live versions
        """
        cached = self._cache.by_latest.get(subject)
        if cached is not None:
            return cached

        schema = self._prepare(
            await self._call(self.backend.get_schema_by_version(subject, LATEST), timeout)
        )
        self._cache.by_latest.put(subject, schema)
        return schema

    async def get_schema_by_subject_and_version(
        self,
        subject: str,
        version: Union[int, str],
        *,
        timeout: Optional[float] = None,
    ) -> Schema:
        """Exact version of a subject, or "latest".

        Raises:
            NotFoundError: If the subject or version is absent
            InvalidRequestError: If the version selector is malformed
        """
        selector = parse_version(version)
        if selector == LATEST:
            return await self.get_latest_schema(subject, timeout=timeout)

        key = (subject, selector)
        cached = self._cache.by_version.get(key)
        if cached is not None:
            return cached

        schema = self._prepare(
            await self._call(self.backend.get_schema_by_version(subject, selector), timeout)
        )
        self._cache.by_version.put(key, schema)
        return schema

    async def get_versions_by_id(
        self, schema_id: int, *, timeout: Optional[float] = None
    ) -> list[SubjectVersion]:
        """(subject, version) pairs a schema ID is registered under."""
        return await self._call(self.backend.get_versions_by_id(schema_id), timeout)

    async def get_versions_by_subject(
        self, subject: str, *, timeout: Optional[float] = None
    ) -> list[int]:
        """Live versions of a subject, ascending."""
        return await self._call(self.backend.get_versions_by_subject(subject), timeout)

    # Writes

    async def register_schema(
        self,
        subject: str,
        schema: str,
        schema_type: SchemaTypeArg = SchemaType.AVRO,
        references: ReferencesArg = (),
        *,
        timeout: Optional[float] = None,
    ) -> Schema:
        """Register a new schema version under a subject.

        Raises:
            InvalidRequestError: If the schema is malformed
            ConflictError: If the registry rejects it as incompatible
        """
        registered = await self._call(
            self.backend.register_schema(
                subject, schema, SchemaType.parse(schema_type), make_references(references)
            ),
            timeout,
        )
        logger.info(
            "Schema registered",
            extra={"subject": subject, "schema_id": registered.id, "version": registered.version},
        )
        return self._prepare(registered)

    async def check_schema_exists(
        self,
        subject: str,
        schema: str,
        schema_type: SchemaTypeArg = SchemaType.AVRO,
        references: ReferencesArg = (),
        *,
        timeout: Optional[float] = None,
    ) -> Schema:
        """Registered entry structurally equal to the given schema.

        Raises:
            NotFoundError: If no version of the subject matches
            InvalidRequestError: If the schema cannot be parsed
        """
        found = await self._call(
            self.backend.lookup_schema(
                subject, schema, SchemaType.parse(schema_type), make_references(references)
            ),
            timeout,
        )
        return self._prepare(found)

    async def check_compatibility(
        self,
        subject: str,
        schema: str,
        version: Union[int, str] = LATEST,
        schema_type: SchemaTypeArg = SchemaType.AVRO,
        references: ReferencesArg = (),
        *,
        timeout: Optional[float] = None,
    ) -> bool:
        """Whether a schema may be registered after the given version."""
        return await self._call(
            self.backend.check_compatibility(
                subject,
                schema,
                parse_version(version),
                SchemaType.parse(schema_type),
                make_references(references),
            ),
            timeout,
        )

    # Deletes

    async def delete_subject(
        self, subject: str, hard_delete: bool = False, *, timeout: Optional[float] = None
    ) -> list[int]:
        """Delete every version of a subject.

        Returns:
            Removed version numbers (empty if the subject had none)
        """
        removed = await self._call(self.backend.delete_subject(subject, hard_delete), timeout)
        logger.info(
            "Subject deleted",
            extra={"subject": subject, "versions": removed, "permanent": hard_delete},
        )
        return removed

    async def delete_version(
        self,
        subject: str,
        version: Union[int, str],
        hard_delete: bool = False,
        *,
        timeout: Optional[float] = None,
    ) -> int:
        """Delete one version of a subject ("latest" allowed).

        Raises:
            NotFoundError: If the subject or version is absent
        """
        removed = await self._call(
            self.backend.delete_version(subject, parse_version(version), hard_delete), timeout
        )
        logger.info(
            "Schema version deleted",
            extra={"subject": subject, "version": removed, "permanent": hard_delete},
        )
        return removed

    # Admin

    async def get_global_compatibility_config(
        self, *, timeout: Optional[float] = None
    ) -> Compatibility:
        """Registry-wide compatibility level."""
        return await self._call(self.backend.get_compatibility(), timeout)

    async def get_subject_compatibility_config(
        self, subject: str, *, timeout: Optional[float] = None
    ) -> Compatibility:
        """Compatibility level applied to one subject."""
        return await self._call(self.backend.get_compatibility(subject), timeout)

    async def get_global_mode(self, *, timeout: Optional[float] = None) -> Mode:
        """Registry-wide mode.

        Raises:
            UnimplementedError: If the registry does not back mode
        """
        return await self._call(self.backend.get_mode(), timeout)

    async def get_subject_mode(self, subject: str, *, timeout: Optional[float] = None) -> Mode:
        """Mode applied to one subject.

        Raises:
            UnimplementedError: If the registry does not back mode
        """
        return await self._call(self.backend.get_mode(subject), timeout)
