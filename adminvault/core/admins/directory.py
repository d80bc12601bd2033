"""
AdminDirectory: the in-memory admin list and every mutation on it.

Mutations update memory synchronously under a lock, so a read right after a
mutation observes it. Persisting to disk and notifying online admins happen
on background executors; callers get futures for both but are not required
to wait on them. The flush executor has a single worker, so flushes land in
the order the mutations happened.
"""

from __future__ import annotations

import logging
import threading
import time
import uuid
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional

from pydantic import ValidationError

from adminvault.core.admins.io import AdminFile
from adminvault.core.admins.models import CURRENT_SCHEMA_VERSION, AdminRecord, AdminSummary, ProviderLink
from adminvault.core.admins.notifier import OnlineAdminsNotifier
from adminvault.core.admins.providers import is_known_provider
from adminvault.core.errors import (
    AdminFileWriteError,
    AdminNotFoundError,
    AdminValidationError,
    DirectoryClosedError,
    DirectoryUninitializedError,
    InvalidNameError,
    MasterProtectedError,
    NameTakenError,
    ProviderIdTakenError,
)
from adminvault.core.hashing import PasswordHasher
from adminvault.core.logger import get_logger
from adminvault.core.ops_log import OpsLogger


MIN_NAME_LENGTH = 3


class _Unset:
    def __repr__(self) -> str:
        return "UNSET"


UNSET: Any = _Unset()


def _normalize(value: Any) -> str:
    return str(value or "").strip().lower()


def _dedupe(items: Iterable[str]) -> List[str]:
    return list(dict.fromkeys(items))


def _clean_permissions(permissions: Optional[Iterable[Any]]) -> List[str]:
    perms = list(permissions or [])
    if not all(isinstance(p, str) for p in perms):
        raise AdminValidationError("Permissions must be strings.")
    return _dedupe(p.strip() for p in perms if p.strip())


@dataclass(frozen=True)
class MutationResult:
    """
    Outcome of an add/edit/delete.

    `record` reflects memory right after the mutation (None for deletes).
    `flushed` resolves once the file write finished (or carries AdminFileWriteError);
    `notified` resolves once online admins were told about the change.
    """

    record: Optional[AdminRecord]
    flushed: "Future[str]"
    notified: "Future[None]"

    def wait(self, timeout: Optional[float] = None) -> None:
        self.flushed.result(timeout=timeout)
        self.notified.result(timeout=timeout)


class AdminDirectory:
    def __init__(
        self,
        *,
        admin_file: AdminFile,
        hasher: PasswordHasher,
        notifier: Optional[OnlineAdminsNotifier] = None,
        logger: Optional[logging.Logger] = None,
        ops: Optional[OpsLogger] = None,
        edit_notify_delay_seconds: float = 0.25,
    ):
        self.admin_file = admin_file
        self.hasher = hasher
        self.notifier = notifier
        self.logger = logger or get_logger("directory")
        self.ops = ops
        self.edit_notify_delay_seconds = float(edit_notify_delay_seconds)

        self._lock = threading.RLock()
        self._admins: Optional[List[AdminRecord]] = None
        self._closed = False
        self._flush_exec = ThreadPoolExecutor(max_workers=1, thread_name_prefix="admins-flush")
        self._notify_exec = ThreadPoolExecutor(max_workers=1, thread_name_prefix="admins-notify")

    # ---- lifecycle ----
    @property
    def is_initialized(self) -> bool:
        with self._lock:
            return bool(self._admins)

    def replace_all(self, records: Iterable[AdminRecord]) -> None:
        with self._lock:
            self._admins = [r.model_copy(deep=True) for r in records]

    def snapshot(self) -> List[AdminRecord]:
        with self._lock:
            return [r.model_copy(deep=True) for r in (self._admins or [])]

    def save_now(self) -> str:
        """
        Synchronous write of the current in-memory list. Raises AdminFileWriteError.
        """
        return self.admin_file.save(self.snapshot())

    def close(self, *, wait: bool = True) -> None:
        with self._lock:
            self._closed = True
        self._flush_exec.shutdown(wait=wait)
        self._notify_exec.shutdown(wait=wait)

    # ---- lookups ----
    def by_name(self, name: str) -> Optional[AdminRecord]:
        key = _normalize(name)
        if not key:
            return None
        with self._lock:
            idx = self._index_by_name_locked(key)
            return self._admins[idx].model_copy(deep=True) if idx is not None else None  # type: ignore[index]

    def by_provider_uid(self, uid: str, provider: Optional[str] = None) -> Optional[AdminRecord]:
        """
        Admin linked to the given provider user id (any provider unless one is named).
        """
        key = _normalize(uid)
        if not key:
            return None
        with self._lock:
            for admin in self._admins or []:
                for pname, link in admin.providers.items():
                    if provider is not None and pname != provider:
                        continue
                    if link.id.lower() == key:
                        return admin.model_copy(deep=True)
        return None

    def by_identifiers(self, identifiers: Iterable[str]) -> Optional[AdminRecord]:
        wanted = {_normalize(i) for i in identifiers}
        wanted.discard("")
        if not wanted:
            return None
        with self._lock:
            for admin in self._admins or []:
                if any(link.identifier.lower() in wanted for link in admin.providers.values()):
                    return admin.model_copy(deep=True)
        return None

    def list_public(self) -> List[AdminSummary]:
        with self._lock:
            return [a.summary() for a in self._admins or []]

    def list_raw(self) -> List[AdminRecord]:
        return self.snapshot()

    def all_identifiers(self) -> List[str]:
        with self._lock:
            return [link.identifier for a in self._admins or [] for link in a.providers.values()]

    # ---- mutations ----
    def add(
        self,
        name: str,
        password: str,
        *,
        providers: Optional[Mapping[str, Any]] = None,
        permissions: Optional[Iterable[str]] = None,
    ) -> MutationResult:
        self._require_initialized()
        clean_name = str(name or "").strip()
        if len(clean_name) < MIN_NAME_LENGTH:
            raise InvalidNameError(name=name)
        links = self._coerce_links(providers or {})
        password_hash = self.hasher.hash(password)

        with self._lock:
            self._require_initialized()
            if self._index_by_name_locked(clean_name.lower()) is not None:
                raise NameTakenError(name=clean_name)
            for pname, link in links.items():
                if self._provider_id_taken_locked(pname, link.id, skip=None):
                    raise ProviderIdTakenError(pname)
            try:
                record = AdminRecord(
                    schema_version=CURRENT_SCHEMA_VERSION,
                    name=clean_name,
                    is_master=False,
                    password_hash=password_hash,
                    password_temporary=True,
                    providers=links,
                    permissions=_clean_permissions(permissions),
                )
            except ValidationError as e:
                raise AdminValidationError(f"Invalid admin data: {e.errors()[0].get('msg')}", name=clean_name) from e
            self._admins.append(record)  # type: ignore[union-attr]
            snap = [r.model_copy(deep=True) for r in self._admins]  # type: ignore[union-attr]
            out = record.model_copy(deep=True)
            details = {"name": clean_name, "providers": sorted(links.keys()), "permissions": list(record.permissions)}
            return self._schedule(out, snap, event="admin.added", details=details, notify_delay=0.0)

    def edit(
        self,
        name: str,
        *,
        password: Optional[str] = None,
        providers: Any = UNSET,
        permissions: Any = UNSET,
    ) -> MutationResult:
        """
        Edit an admin in place. Omitted fields are left untouched.

        `providers` maps provider name -> link, or a falsy value to unlink that provider.
        A new password clears the temporary-password flag.
        """
        self._require_initialized()
        key = _normalize(name)
        new_links: Dict[str, Optional[ProviderLink]] = {}
        if providers is not UNSET:
            for pname, value in dict(providers or {}).items():
                new_links[pname] = self._coerce_link(pname, value) if value else None
        new_hash = self.hasher.hash(password) if password is not None else None

        with self._lock:
            self._require_initialized()
            idx = self._index_by_name_locked(key) if key else None
            if idx is None:
                raise AdminNotFoundError(name=name)
            current = self._admins[idx]  # type: ignore[index]
            data = current.to_disk()

            if new_hash is not None:
                data["password_hash"] = new_hash
                data.pop("password_temporary", None)
            for pname, link in new_links.items():
                if link is None:
                    data["providers"].pop(pname, None)
                    continue
                if self._provider_id_taken_locked(pname, link.id, skip=idx):
                    raise ProviderIdTakenError(pname)
                data["providers"][pname] = link.model_dump(mode="json")
            if permissions is not UNSET:
                data["permissions"] = _clean_permissions(permissions)

            try:
                updated = AdminRecord.model_validate(data)
            except ValidationError as e:
                raise AdminValidationError(f"Invalid admin data: {e.errors()[0].get('msg')}", name=current.name) from e
            self._admins[idx] = updated  # type: ignore[index]
            snap = [r.model_copy(deep=True) for r in self._admins]  # type: ignore[union-attr]
            out = updated.model_copy(deep=True)
            details = {
                "name": out.name,
                "password_changed": new_hash is not None,
                "providers": {k: ("unlinked" if v is None else "linked") for k, v in new_links.items()},
                "permissions": None if permissions is UNSET else list(out.permissions),
            }
            # delayed so the caller's session is updated before active sessions get re-checked
            return self._schedule(out, snap, event="admin.edited", details=details, notify_delay=self.edit_notify_delay_seconds)

    def delete(self, name: str) -> MutationResult:
        self._require_initialized()
        key = _normalize(name)
        with self._lock:
            self._require_initialized()
            idx = self._index_by_name_locked(key) if key else None
            if idx is None:
                raise AdminNotFoundError(name=name)
            if self._admins[idx].is_master:  # type: ignore[index]
                raise MasterProtectedError(name=name)
            removed = self._admins.pop(idx)  # type: ignore[union-attr]
            snap = [r.model_copy(deep=True) for r in self._admins]  # type: ignore[union-attr]
            return self._schedule(None, snap, event="admin.deleted", details={"name": removed.name}, notify_delay=0.0)

    # ---- internals ----
    def _require_initialized(self) -> None:
        if self._closed:
            raise DirectoryClosedError()
        if not self.is_initialized:
            raise DirectoryUninitializedError()

    def _index_by_name_locked(self, key: str) -> Optional[int]:
        for i, admin in enumerate(self._admins or []):
            if admin.name_key == key:
                return i
        return None

    def _provider_id_taken_locked(self, provider: str, uid: str, *, skip: Optional[int]) -> bool:
        key = uid.lower()
        for i, admin in enumerate(self._admins or []):
            if i == skip:
                continue
            link = admin.providers.get(provider)  # type: ignore[call-overload]
            if link is not None and link.id.lower() == key:
                return True
        return False

    def _coerce_links(self, providers: Mapping[str, Any]) -> Dict[str, ProviderLink]:
        return {pname: self._coerce_link(pname, value) for pname, value in providers.items() if value}

    def _coerce_link(self, provider: str, value: Any) -> ProviderLink:
        if not is_known_provider(provider):
            raise AdminValidationError(f"Unknown provider: {provider}", provider=provider)
        if isinstance(value, ProviderLink):
            return value.model_copy(deep=True)
        if not isinstance(value, Mapping):
            raise AdminValidationError(f"Invalid {provider} link.", provider=provider)
        try:
            return ProviderLink.model_validate({"data": {}, **dict(value)})
        except ValidationError as e:
            raise AdminValidationError(f"Invalid {provider} link: {e.errors()[0].get('msg')}", provider=provider) from e

    def _schedule(self, record: Optional[AdminRecord], snap: List[AdminRecord], *, event: str, details: Dict[str, Any], notify_delay: float) -> MutationResult:
        trace_id = uuid.uuid4().hex
        flushed = self._flush_exec.submit(self._flush, snap, event, trace_id, details)
        notified = self._notify_exec.submit(self._notify, notify_delay)
        return MutationResult(record=record, flushed=flushed, notified=notified)

    def _flush(self, snap: List[AdminRecord], event: str, trace_id: str, details: Dict[str, Any]) -> str:
        try:
            digest = self.admin_file.save(snap)
        except AdminFileWriteError as e:
            self.logger.error(f"Failed to save admins file after {event}: {e}")
            if self.ops:
                self.ops.log(trace_id=trace_id, event=event, outcome="write_failed", details={**details, "error": str(e)})
            raise
        if self.ops:
            self.ops.log(trace_id=trace_id, event=event, outcome="ok", details=details)
        return digest

    def _notify(self, delay: float) -> None:
        if delay > 0:
            time.sleep(delay)
        if self.notifier is None:
            return
        try:
            self.notifier.refresh(self.all_identifiers())
        except Exception as e:  # noqa: BLE001
            self.logger.warning(f"Failed to notify online admins: {e}")
