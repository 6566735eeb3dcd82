"""
Internal HTTP backend for the schema registry SDK.

This module provides the low-level HTTP communication layer against a
schema registry REST API (or the emulator). It is internal to the SDK and
should not be used directly by users.

Users should use SchemaRegistryClient instead, which adds caching and
codec handling on top.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional, Sequence
from urllib.parse import quote

import httpx

from .errors import UpstreamUnavailableError, error_from_response
from .schema import Schema
from .types import Compatibility, Mode, Reference, SchemaType, SubjectVersion, VersionSelector

logger = logging.getLogger(__name__)

CONTENT_TYPE = "application/vnd.schemaregistry.v1+json"
ACCEPT = f"{CONTENT_TYPE}, application/vnd.schemaregistry+json, application/json"


def _path(value: Any) -> str:
    return quote(str(value), safe="")


def redact_url(url: str) -> str:
    """URL with any user:password part removed."""
    return str(httpx.URL(url).copy_with(userinfo=b""))


class HttpRegistryBackend:
    """Registry backend speaking the schema registry REST API.

    Example:
        >>> backend = HttpRegistryBackend("http://localhost:8081")
        >>> subjects = await backend.list_subjects()
        >>> await backend.close()
    """

    def __init__(
        self,
        url: str,
        username: Optional[str] = None,
        password: Optional[str] = None,
        timeout: Optional[float] = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """Initialize the backend.

        Args:
            url: Registry base URL
            username: Basic auth username
            password: Basic auth password
            timeout: Transport timeout in seconds for every request
            transport: Custom httpx transport (e.g. ASGITransport in tests)
        """
        self._url = url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self._url,
            timeout=timeout,
            transport=transport,
            headers={"Accept": ACCEPT},
        )
        if username:
            self.set_credentials(username, password or "")

    @property
    def url(self) -> str:
        """Registry base URL."""
        return self._url

    async def close(self) -> None:
        """Close the underlying connection pool."""
        await self._client.aclose()

    def set_credentials(self, username: str, password: str) -> None:
        """Use basic auth for subsequent requests."""
        self._client.auth = httpx.BasicAuth(username, password)

    async def _request(
        self,
        method: str,
        path: str,
        body: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> httpx.Response:
        headers = {}
        content = None
        if body is not None:
            content = json.dumps(body)
            headers["Content-Type"] = CONTENT_TYPE

        logger.debug(f"Registry request {method} {path}")
        try:
            response = await self._client.request(
                method, path, content=content, headers=headers, params=params
            )
        except httpx.TransportError as e:
            raise UpstreamUnavailableError(
                f"Schema registry unreachable: {e}", url=redact_url(self._url)
            ) from e

        if response.status_code >= 400:
            try:
                error_body = response.json()
            except ValueError:
                error_body = None
            raise error_from_response(response.status_code, error_body)
        return response

    async def _json(
        self,
        method: str,
        path: str,
        body: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        response = await self._request(method, path, body=body, params=params)
        try:
            return response.json()
        except ValueError as e:
            raise UpstreamUnavailableError(
                f"Invalid JSON from schema registry: {e}", url=redact_url(self._url)
            ) from e

    @staticmethod
    def _schema_body(
        schema: str, schema_type: SchemaType, references: Sequence[Reference]
    ) -> Dict[str, Any]:
        body: Dict[str, Any] = {"schema": schema, "schemaType": schema_type.value}
        if references:
            body["references"] = [ref.to_dict() for ref in references]
        return body

    # Discovery

    async def list_subjects(self) -> list[str]:
        return await self._json("GET", "/subjects")

    async def list_schema_types(self) -> list[str]:
        return await self._json("GET", "/schemas/types")

    # Reads

    async def get_schema_by_id(self, schema_id: int) -> Schema:
        data = await self._json("GET", f"/schemas/ids/{schema_id}")
        return Schema.from_dict(data, schema_id=schema_id)

    async def get_schema_by_version(self, subject: str, version: VersionSelector) -> Schema:
        data = await self._json("GET", f"/subjects/{_path(subject)}/versions/{_path(version)}")
        return Schema.from_dict(data, subject=subject)

    async def get_versions_by_id(self, schema_id: int) -> list[SubjectVersion]:
        data = await self._json("GET", f"/schemas/ids/{schema_id}/versions")
        return [SubjectVersion(subject=item["subject"], version=item["version"]) for item in data]

    async def get_versions_by_subject(self, subject: str) -> list[int]:
        return await self._json("GET", f"/subjects/{_path(subject)}/versions")

    # Writes

    async def register_schema(
        self,
        subject: str,
        schema: str,
        schema_type: SchemaType,
        references: Sequence[Reference],
    ) -> Schema:
        body = self._schema_body(schema, schema_type, references)
        data = await self._json("POST", f"/subjects/{_path(subject)}/versions", body=body)
        if "version" not in data:
            # Registries that answer with the ID alone: resolve the version
            return await self.lookup_schema(subject, schema, schema_type, references)
        return Schema(
            id=int(data["id"]),
            schema=schema,
            schema_type=schema_type,
            subject=subject,
            version=int(data["version"]),
            references=tuple(references),
        )

    async def lookup_schema(
        self,
        subject: str,
        schema: str,
        schema_type: SchemaType,
        references: Sequence[Reference],
    ) -> Schema:
        body = self._schema_body(schema, schema_type, references)
        data = await self._json("POST", f"/subjects/{_path(subject)}", body=body)
        return Schema.from_dict(data, subject=subject)

    async def check_compatibility(
        self,
        subject: str,
        schema: str,
        version: VersionSelector,
        schema_type: SchemaType,
        references: Sequence[Reference],
    ) -> bool:
        body = self._schema_body(schema, schema_type, references)
        data = await self._json(
            "POST",
            f"/compatibility/subjects/{_path(subject)}/versions/{_path(version)}",
            body=body,
        )
        return bool(data["is_compatible"])

    # Deletes

    async def delete_subject(self, subject: str, permanent: bool) -> list[int]:
        return await self._json(
            "DELETE",
            f"/subjects/{_path(subject)}",
            params={"permanent": str(permanent).lower()},
        )

    async def delete_version(self, subject: str, version: VersionSelector, permanent: bool) -> int:
        data = await self._json(
            "DELETE",
            f"/subjects/{_path(subject)}/versions/{_path(version)}",
            params={"permanent": str(permanent).lower()},
        )
        return int(data)

    # Admin

    async def get_compatibility(self, subject: Optional[str] = None) -> Compatibility:
        path = "/config" if subject is None else f"/config/{_path(subject)}"
        data = await self._json("GET", path)
        return Compatibility(data.get("compatibilityLevel") or data["compatibility"])

    async def get_mode(self, subject: Optional[str] = None) -> Mode:
        path = "/mode" if subject is None else f"/mode/{_path(subject)}"
        data = await self._json("GET", path)
        return Mode(data["mode"])
