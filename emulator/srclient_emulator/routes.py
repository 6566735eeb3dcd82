"""
Schema registry REST routes served by the emulator.

Every route is a thin adapter over the app's SchemaCatalog; storage rules,
ID and version assignment live in the catalog.

Catalog routes are plain functions: FastAPI runs them on its threadpool,
so concurrent requests really do meet on the catalog's lock.

Invariants:
    - Responses use the registry media type
    - Request bodies must be JSON under one of the accepted media types
    - Errors are {"error_code", "message"} bodies (see app.py handlers)
    - Reads never modify the catalog
"""

from __future__ import annotations

import logging
import re
from typing import Any

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from srclient import InvalidRequestError, SchemaCatalog, UnimplementedError
from srclient.errors import INVALID_SCHEMA, UNSUPPORTED_MEDIA_TYPE

logger = logging.getLogger(__name__)

CONTENT_TYPE = "application/vnd.schemaregistry.v1+json"
ACCEPTED_CONTENT_TYPES = re.compile(
    r"application/(vnd\.schemaregistry\.v1\+json|vnd\.schemaregistry\+json|octet-stream|json)"
)

router = APIRouter(tags=["Schema Registry"])


class RegistryJSONResponse(JSONResponse):
    """JSON response with the registry media type."""

    media_type = CONTENT_TYPE


class UnsupportedMediaTypeError(InvalidRequestError):
    """Request body sent with a media type the registry does not accept."""

    status_code = 415
    default_error_code = UNSUPPORTED_MEDIA_TYPE


# =============================================================================
# Request Models
# =============================================================================


class ReferenceModel(BaseModel):
    """Reference to another registered schema."""

    name: str
    subject: str
    version: int


class SchemaRequest(BaseModel):
    """Body of register, lookup and compatibility requests."""

    schema_text: str = Field(..., alias="schema")
    schema_type: str | None = Field(default=None, alias="schemaType")
    references: list[ReferenceModel] = Field(default_factory=list)

    model_config = ConfigDict(populate_by_name=True)


# =============================================================================
# Dependencies
# =============================================================================


def get_catalog(request: Request) -> SchemaCatalog:
    """Get the catalog from app state."""
    return request.app.state.catalog


async def schema_request(request: Request) -> SchemaRequest:
    """Parse a schema request body, enforcing the accepted media types."""
    content_type = request.headers.get("content-type", "")
    if content_type and not ACCEPTED_CONTENT_TYPES.match(content_type):
        raise UnsupportedMediaTypeError(f"Unsupported media type '{content_type}'")

    body = await request.body()
    try:
        return SchemaRequest.model_validate_json(body)
    except ValidationError as e:
        logger.debug(f"Rejected schema request: {e}")
        raise InvalidRequestError("Invalid schema request", error_code=INVALID_SCHEMA) from e


def _references(req: SchemaRequest) -> list[dict[str, Any]]:
    return [ref.model_dump() for ref in req.references]


# =============================================================================
# Discovery
# =============================================================================


@router.get("/subjects")
def list_subjects(catalog: SchemaCatalog = Depends(get_catalog)):
    """Subjects with at least one live version, sorted."""
    return catalog.list_subjects()


@router.get("/schemas/types")
def list_schema_types(catalog: SchemaCatalog = Depends(get_catalog)):
    """Schema types in use by live entries."""
    return catalog.schema_types()


# =============================================================================
# Schemas by ID
# =============================================================================


@router.get("/schemas/ids/{schema_id}")
def get_schema_by_id(schema_id: int, catalog: SchemaCatalog = Depends(get_catalog)):
    """Schema text (and type, references) for a global ID."""
    entry = catalog.get_by_id(schema_id)
    data = entry.to_dict()
    return {key: data[key] for key in ("schema", "schemaType", "references") if key in data}


@router.get("/schemas/ids/{schema_id}/versions")
def get_versions_by_id(schema_id: int, catalog: SchemaCatalog = Depends(get_catalog)):
    """Subject/version pairs for a global ID."""
    return [sv.to_dict() for sv in catalog.versions_by_id(schema_id)]


# =============================================================================
# Subjects
# =============================================================================


@router.post("/subjects/{subject}")
def check_schema_exists(
    subject: str,
    req: SchemaRequest = Depends(schema_request),
    catalog: SchemaCatalog = Depends(get_catalog),
):
    """Entry structurally equal to the posted schema, or 404 40403."""
    entry = catalog.exists(subject, req.schema_type, req.schema_text)
    return entry.to_dict()


@router.delete("/subjects/{subject}")
def delete_subject(
    subject: str,
    permanent: bool = False,
    catalog: SchemaCatalog = Depends(get_catalog),
):
    """Delete every version of a subject; soft and hard delete are the same."""
    removed = catalog.delete_subject(subject)
    logger.info(
        "Subject deleted",
        extra={"subject": subject, "versions": removed, "permanent": permanent},
    )
    return removed


@router.get("/subjects/{subject}/versions")
def list_versions(subject: str, catalog: SchemaCatalog = Depends(get_catalog)):
    """Live versions of a subject."""
    return catalog.list_versions(subject)


@router.post("/subjects/{subject}/versions")
def register_schema(
    subject: str,
    req: SchemaRequest = Depends(schema_request),
    catalog: SchemaCatalog = Depends(get_catalog),
):
    """Register a new version; identical content still gets a new entry."""
    entry = catalog.register(subject, req.schema_type, req.schema_text, _references(req))
    logger.info(
        "Schema registered",
        extra={"subject": subject, "schema_id": entry.id, "version": entry.version},
    )
    return entry.to_dict()


@router.delete("/subjects/{subject}/versions/{version}")
def delete_version(
    subject: str,
    version: str,
    permanent: bool = False,
    catalog: SchemaCatalog = Depends(get_catalog),
):
    """Delete one version ("latest" allowed); answers the removed number."""
    removed = catalog.delete_version(subject, version)
    logger.info(
        "Schema version deleted",
        extra={"subject": subject, "version": removed, "permanent": permanent},
    )
    return removed


@router.get("/subjects/{subject}/versions/{version}")
def get_schema_by_version(
    subject: str,
    version: str,
    catalog: SchemaCatalog = Depends(get_catalog),
):
    """Entry for a version of a subject ("latest" allowed)."""
    return catalog.get_by_version(subject, version).to_dict()


@router.get("/subjects/{subject}/versions/{version}/schema")
def get_raw_schema_by_version(
    subject: str,
    version: str,
    catalog: SchemaCatalog = Depends(get_catalog),
):
    """Raw schema text, unescaped."""
    entry = catalog.get_by_version(subject, version)
    return Response(content=entry.schema, media_type=CONTENT_TYPE)


# =============================================================================
# Compatibility, config and mode
# =============================================================================


@router.post("/compatibility/subjects/{subject}/versions/{version}")
def check_compatibility(
    subject: str,
    version: str,
    req: SchemaRequest = Depends(schema_request),
    catalog: SchemaCatalog = Depends(get_catalog),
):
    """Whether the posted schema may follow the given version."""
    compatible = catalog.check_compatibility(subject, version, req.schema_type, req.schema_text)
    return {"is_compatible": compatible}


@router.get("/config")
def get_global_config(catalog: SchemaCatalog = Depends(get_catalog)):
    """Global compatibility level."""
    return {"compatibilityLevel": catalog.get_compatibility().value}


@router.get("/config/{subject}")
def get_subject_config(subject: str, catalog: SchemaCatalog = Depends(get_catalog)):
    """Compatibility level of a subject (the global level)."""
    return {"compatibilityLevel": catalog.get_subject_compatibility(subject).value}


@router.put("/config")
@router.put("/config/{subject}")
def update_config(subject: str | None = None):
    """Changing compatibility is not supported."""
    raise UnimplementedError("Updating compatibility config is not supported")


@router.api_route("/mode", methods=["GET", "PUT"])
@router.api_route("/mode/{subject}", methods=["GET", "PUT"])
def handle_mode(subject: str | None = None):
    """Mode is not backed by the emulator."""
    raise UnimplementedError("Mode is not supported by the emulator")
