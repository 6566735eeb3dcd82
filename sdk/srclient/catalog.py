"""
Reference schema catalog.

The catalog is the authoritative in-process store of schema entries,
mirroring the storage rules of a schema registry. It backs the in-memory
client and the HTTP emulator, and is the unit those two share.

Entries are indexed twice: by global ID and by (subject, version). Both
indexes live in one immutable snapshot; every mutation builds a new
snapshot and swaps it in while holding the write lock, so readers always
see both indexes in agreement.

Invariants:
    - IDs are unique across all subjects and never reused, even after
      deletions: the N-th registration gets ID N
    - A new version under a subject is max(live versions) + 1, starting at 1
    - Plain registration never deduplicates; idempotence is exists()
    - Reads never modify the catalog
    - delete_subject() always succeeds, returning the removed versions

How to change safely:
    - Mutations must replace the snapshot while holding the write lock
    - Keep the catalog free of module-level state; tests build their own
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Optional, Union

from .equivalence import find_equivalent, normalize
from .errors import (
    SCHEMA_NOT_FOUND,
    SUBJECT_NOT_FOUND,
    VERSION_NOT_FOUND,
    InvalidRequestError,
    NotFoundError,
)
from .locks import ReadWriteLock
from .schema import Schema, make_references
from .types import (
    LATEST,
    Compatibility,
    Reference,
    SchemaType,
    SubjectVersion,
    VersionSelector,
    parse_version,
)

logger = logging.getLogger(__name__)

_EMPTY: Mapping[Any, Any] = MappingProxyType({})


@dataclass(frozen=True)
class _Snapshot:
    """Immutable view of all live entries."""

    by_id: Mapping[int, Schema] = field(default_factory=dict)
    by_subject: Mapping[str, Mapping[int, Schema]] = field(default_factory=dict)

    def versions(self, subject: str) -> Mapping[int, Schema]:
        return self.by_subject.get(subject, _EMPTY)

    def without(self, entries: Iterable[Schema]) -> _Snapshot:
        """New snapshot with the given entries removed from both indexes."""
        by_id = dict(self.by_id)
        by_subject = {s: dict(v) for s, v in self.by_subject.items()}
        for entry in entries:
            del by_id[entry.id]
            versions = by_subject[entry.subject]
            del versions[entry.version]
            if not versions:
                del by_subject[entry.subject]
        return _Snapshot(by_id=by_id, by_subject=by_subject)

    def with_entry(self, entry: Schema) -> _Snapshot:
        """New snapshot with one entry added to both indexes."""
        by_id = dict(self.by_id)
        by_id[entry.id] = entry
        by_subject = dict(self.by_subject)
        versions = dict(by_subject.get(entry.subject, {}))
        versions[entry.version] = entry
        by_subject[entry.subject] = versions
        return _Snapshot(by_id=by_id, by_subject=by_subject)


class SchemaCatalog:
    """Thread-safe store of schema entries.

    Attributes:
        compatibility: Global compatibility level reported by the catalog

    Example:
        >>> catalog = SchemaCatalog()
        >>> entry = catalog.register("test1", SchemaType.AVRO, '{"type": "string"}')
        >>> (entry.id, entry.version)
        (1, 1)
        >>> catalog.get_latest("test1") == entry
        True
    """

    def __init__(self, compatibility: Compatibility = Compatibility.BACKWARD) -> None:
        self.compatibility = compatibility
        self._snapshot = _Snapshot()
        self._last_id = 0
        self._lock = ReadWriteLock()

    @classmethod
    def seeded(cls, compatibility: Compatibility = Compatibility.BACKWARD) -> SchemaCatalog:
        """Catalog pre-loaded with two small fixture schemas.

        test1 v1 (ID 1) is the Avro string schema; test2 v1 (ID 2) is the
        Avro int primitive.
        """
        catalog = cls(compatibility=compatibility)
        catalog.register("test1", SchemaType.AVRO, '{"type":"string"}')
        catalog.register("test2", SchemaType.AVRO, '"int"')
        return catalog

    def __len__(self) -> int:
        with self._lock.read():
            return len(self._snapshot.by_id)

    # Mutations

    def register(
        self,
        subject: str,
        schema_type: Union[SchemaType, str, None],
        schema: str,
        references: Iterable[Union[Reference, dict]] = (),
    ) -> Schema:
        """Append a new schema version under a subject.

        Identical content registered twice yields two entries.

        Args:
            subject: Subject to register under
            schema_type: Schema definition language (empty means AVRO)
            schema: Raw schema text
            references: Schemas this one depends on

        Returns:
            The new entry with its assigned ID and version

        Raises:
            InvalidRequestError: If subject, type or text is malformed
        """
        if not subject:
            raise InvalidRequestError("Subject must not be empty")
        if "/" in subject:
            raise InvalidRequestError(f"Subject must not contain '/': {subject}")
        schema_type = SchemaType.parse(schema_type)
        if not schema:
            raise InvalidRequestError("Schema must not be empty")
        normalize(schema_type, schema)
        refs = make_references(references)

        with self._lock.write():
            current = self._snapshot
            versions = current.versions(subject)
            entry = Schema(
                id=self._last_id + 1,
                schema=schema,
                schema_type=schema_type,
                subject=subject,
                version=max(versions, default=0) + 1,
                references=refs,
            )
            self._snapshot = current.with_entry(entry)
            self._last_id = entry.id

        logger.debug(
            "Schema registered",
            extra={"subject": subject, "schema_id": entry.id, "version": entry.version},
        )
        return entry

    def delete_version(self, subject: str, version: Union[int, str]) -> int:
        """Remove one version of a subject.

        Args:
            subject: Subject name
            version: Version number or "latest"

        Returns:
            The removed version number

        Raises:
            NotFoundError: If the subject has no entries or lacks the version
            InvalidRequestError: If the version selector is malformed
        """
        selector = parse_version(version)
        with self._lock.write():
            current = self._snapshot
            entry = self._resolve(current, subject, selector)
            self._snapshot = current.without([entry])

        logger.debug("Schema version deleted", extra={"subject": subject, "version": entry.version})
        return entry.version

    def delete_subject(self, subject: str) -> list[int]:
        """Remove every version of a subject.

        Returns:
            Removed version numbers, ascending; empty if the subject had none
        """
        with self._lock.write():
            current = self._snapshot
            entries = [current.versions(subject)[v] for v in sorted(current.versions(subject))]
            if entries:
                self._snapshot = current.without(entries)

        removed = [entry.version for entry in entries]
        logger.debug("Subject deleted", extra={"subject": subject, "versions": removed})
        return removed

    # Reads

    def get_by_id(self, schema_id: int) -> Schema:
        """Entry with the given global ID.

        Raises:
            NotFoundError: If no live entry has this ID
        """
        with self._lock.read():
            entry = self._snapshot.by_id.get(schema_id)
        if entry is None:
            raise NotFoundError(
                f"Schema {schema_id} not found", error_code=SCHEMA_NOT_FOUND, schema_id=schema_id
            )
        return entry

    def get_latest(self, subject: str) -> Schema:
        """Entry with the highest live version under a subject.

        Raises:
            NotFoundError: If the subject has no live entries
        """
        return self.get_by_version(subject, LATEST)

    def get_by_version(self, subject: str, version: Union[int, str]) -> Schema:
        """Entry for an exact version, or the latest one.

        Raises:
            NotFoundError: If the subject or version is absent
            InvalidRequestError: If the version selector is malformed
        """
        selector = parse_version(version)
        with self._lock.read():
            return self._resolve(self._snapshot, subject, selector)

    def list_subjects(self) -> list[str]:
        """Sorted names of subjects holding at least one live entry."""
        with self._lock.read():
            return sorted(self._snapshot.by_subject)

    def list_versions(self, subject: str) -> list[int]:
        """Live versions under a subject, ascending (empty if none)."""
        with self._lock.read():
            return sorted(self._snapshot.versions(subject))

    def versions_by_id(self, schema_id: int) -> list[SubjectVersion]:
        """(subject, version) pairs registered under a schema ID.

        Raises:
            NotFoundError: If no live entry has this ID
        """
        entry = self.get_by_id(schema_id)
        return [SubjectVersion(subject=entry.subject, version=entry.version)]

    def schema_types(self) -> list[str]:
        """Distinct schema types among live entries, sorted."""
        with self._lock.read():
            return sorted({entry.schema_type.value for entry in self._snapshot.by_id.values()})

    def exists(
        self,
        subject: str,
        schema_type: Union[SchemaType, str, None],
        schema: str,
    ) -> Schema:
        """Find a live entry structurally equal to the given schema.

        Raises:
            NotFoundError: If nothing under the subject matches
            InvalidRequestError: If the query text cannot be parsed
        """
        schema_type = SchemaType.parse(schema_type)
        with self._lock.read():
            versions = self._snapshot.versions(subject)
            candidates = [versions[v] for v in sorted(versions)]
        return find_equivalent(candidates, schema_type, schema)

    # Compatibility

    def get_compatibility(self) -> Compatibility:
        """Global compatibility level."""
        return self.compatibility

    def get_subject_compatibility(self, subject: str) -> Compatibility:
        """Compatibility level of a subject (inherits the global level).

        Raises:
            NotFoundError: If the subject has no live entries
        """
        with self._lock.read():
            known = subject in self._snapshot.by_subject
        if not known:
            raise NotFoundError(
                f"Subject '{subject}' not found", error_code=SUBJECT_NOT_FOUND, subject=subject
            )
        return self.compatibility

    def check_compatibility(
        self,
        subject: str,
        version: Union[int, str],
        schema_type: Union[SchemaType, str, None],
        schema: str,
    ) -> bool:
        """Whether a candidate schema may follow a registered version.

        The catalog accepts every registration, so the check is permissive:
        a valid candidate is compatible unless its schema type differs from
        the target version's (and the level is not NONE).

        Raises:
            NotFoundError: If the subject or version is absent
            InvalidRequestError: If the candidate text cannot be parsed
        """
        schema_type = SchemaType.parse(schema_type)
        target = self.get_by_version(subject, version)
        normalize(schema_type, schema)
        if self.compatibility == Compatibility.NONE:
            return True
        return target.schema_type == schema_type

    def _resolve(self, snapshot: _Snapshot, subject: str, selector: VersionSelector) -> Schema:
        versions = snapshot.versions(subject)
        if not versions:
            raise NotFoundError(
                f"Subject '{subject}' not found", error_code=SUBJECT_NOT_FOUND, subject=subject
            )
        key: Optional[int] = max(versions) if selector == LATEST else selector
        entry = versions.get(key)
        if entry is None:
            raise NotFoundError(
                f"Version {key} not found",
                error_code=VERSION_NOT_FOUND,
                subject=subject,
                version=key,
            )
        return entry
