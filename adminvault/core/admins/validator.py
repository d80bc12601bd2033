from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Type

from pydantic import ValidationError

from adminvault.core.admins.migrations import run_record_migrations
from adminvault.core.admins.models import CURRENT_SCHEMA_VERSION, AdminRecord, LegacyAdminRecord, _AdminRecordBase
from adminvault.core.admins.providers import backfill_identifiers
from adminvault.core.errors import AdminStoreLoadError, LoadFailure


# newest first; decoding tries each shape in turn
RECORD_SHAPES: List[Tuple[int, Type[_AdminRecordBase]]] = [
    (CURRENT_SCHEMA_VERSION, AdminRecord),
    (0, LegacyAdminRecord),
]


@dataclass
class LoadResult:
    records: List[AdminRecord]
    migrated: bool = False
    migration_logs: List[str] = field(default_factory=list)


def decode_record(raw: Dict[str, Any]) -> Tuple[AdminRecord, List[str]]:
    """
    Decode one raw record into the current shape, upgrading older shapes.

    Raises ValueError when no known shape fits.
    """
    errors: List[str] = []
    for version, shape in RECORD_SHAPES:
        try:
            decoded = shape.model_validate(raw)
        except ValidationError as e:
            errors.append(f"v{version}: {e.error_count()} error(s)")
            continue
        if version == CURRENT_SCHEMA_VERSION:
            return decoded, []  # type: ignore[return-value]
        upgraded, _ver, logs = run_record_migrations(decoded.model_dump(mode="json", by_alias=True, exclude_none=True), current_version=version)
        try:
            return AdminRecord.model_validate(upgraded), logs
        except ValidationError as e:
            raise ValueError(f"record no longer valid after migration: {e}") from e
    raise ValueError("; ".join(errors))


def parse_records(raw_list: List[Any]) -> LoadResult:
    records: List[AdminRecord] = []
    logs: List[str] = []
    migrated = False
    for idx, raw in enumerate(raw_list):
        if not isinstance(raw, dict):
            raise AdminStoreLoadError(LoadFailure.STRUCTURALLY_INVALID, index=idx, detail="record is not an object")
        raw = dict(raw)
        if backfill_identifiers(raw):
            migrated = True
            logs.append(f"record {idx}: backfilled provider identifiers")
        try:
            rec, rec_logs = decode_record(raw)
        except ValueError as e:
            raise AdminStoreLoadError(LoadFailure.STRUCTURALLY_INVALID, index=idx, detail=str(e)) from e
        if rec_logs:
            migrated = True
            logs.extend(f"record {idx}: {line}" for line in rec_logs)
        records.append(rec)

    masters = [r for r in records if r.is_master]
    if len(masters) != 1:
        raise AdminStoreLoadError(LoadFailure.MASTER_COUNT_INVALID, masters=len(masters))
    return LoadResult(records=records, migrated=migrated, migration_logs=logs)


def load_records(text: Optional[str]) -> LoadResult:
    """
    Validate the admins file content and upgrade it to the current schema.

    Raises AdminStoreLoadError with a categorized reason on any failure.
    """
    if text is None:
        raise AdminStoreLoadError(LoadFailure.UNREADABLE)
    if not text:
        raise AdminStoreLoadError(LoadFailure.EMPTY)
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise AdminStoreLoadError(LoadFailure.MALFORMED_JSON, detail=str(e)) from e
    if not isinstance(data, list):
        raise AdminStoreLoadError(LoadFailure.NOT_A_LIST)
    if not data:
        raise AdminStoreLoadError(LoadFailure.EMPTY_LIST)
    return parse_records(data)
