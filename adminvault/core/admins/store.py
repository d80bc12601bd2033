from __future__ import annotations

import logging
import uuid
from enum import Enum
from typing import Any, List, Mapping, Optional

from pydantic import ValidationError

from adminvault.core.admins.directory import MIN_NAME_LENGTH, AdminDirectory
from adminvault.core.admins.io import AdminFile, fingerprint
from adminvault.core.admins.models import CURRENT_SCHEMA_VERSION, AdminRecord, ProviderLink
from adminvault.core.admins.monitor import IntegrityMonitor
from adminvault.core.admins.notifier import OnlineAdminsNotifier
from adminvault.core.admins.permissions import list_permissions
from adminvault.core.admins.providers import CITIZENFX, DISCORD
from adminvault.core.admins.validator import load_records
from adminvault.core.config.manager import ConfigManager
from adminvault.core.config.models import AdminVaultConfig, DefaultAccountConfig, PublicNamesConfig
from adminvault.core.errors import (
    AdminFileError,
    AdminFileWriteError,
    AdminStoreLoadError,
    AdminValidationError,
    AlreadyInitializedError,
    DirectoryClosedError,
    InvalidNameError,
    LoadFailure,
)
from adminvault.core.hashing import BcryptHasher, PasswordHasher, gen_pin, gen_token
from adminvault.core.logger import get_logger
from adminvault.core.ops_log import OpsLogger


class StoreState(str, Enum):
    NEW = "NEW"
    AWAITING_MASTER = "AWAITING_MASTER"
    READY = "READY"
    SHUT_DOWN = "SHUT_DOWN"


def providers_for_master(username: str, *, fivem_identifier: Optional[str] = None, discord_id: Optional[str] = None) -> dict:
    """
    Provider links for a master account created from bootstrap credentials.
    """
    providers: dict = {}
    if fivem_identifier:
        providers[CITIZENFX] = {"id": username, "identifier": fivem_identifier, "data": {}}
    if discord_id:
        providers[DISCORD] = {"id": discord_id, "identifier": f"discord:{discord_id}", "data": {}}
    return providers


class AdminStore:
    """
    Owns the admins file for the lifetime of the process.

    `init()` loads (and migrates) an existing file, or bootstraps the master
    account: non-interactively from default credentials when configured,
    otherwise by issuing a one-time PIN until `create_master()` is called.
    """

    def __init__(
        self,
        *,
        cfg: AdminVaultConfig,
        admin_file: AdminFile,
        hasher: PasswordHasher,
        notifier: Optional[OnlineAdminsNotifier] = None,
        logger: Optional[logging.Logger] = None,
        ops: Optional[OpsLogger] = None,
        default_account: Optional[DefaultAccountConfig] = None,
    ):
        self.cfg = cfg
        self.admin_file = admin_file
        self.hasher = hasher
        self.logger = logger or get_logger("store")
        self.ops = ops
        self.default_account = default_account if default_account is not None else cfg.default_account
        self.directory = AdminDirectory(
            admin_file=admin_file,
            hasher=hasher,
            notifier=notifier,
            logger=self.logger,
            ops=ops,
            edit_notify_delay_seconds=cfg.edit_notify_delay_ms / 1000.0,
        )
        self.monitor = IntegrityMonitor(
            admin_file=admin_file,
            snapshot=self.directory.snapshot,
            interval_seconds=cfg.integrity_check_interval_seconds,
            logger=self.logger,
            ops=ops,
        )
        self.state = StoreState.NEW
        self._master_pin: Optional[str] = None

    # ---- lifecycle ----
    def init(self) -> StoreState:
        if self.state != StoreState.NEW:
            return self.state
        try:
            exists = self.admin_file.exists()
        except OSError as e:
            raise AdminStoreLoadError(LoadFailure.UNREADABLE, path=self.admin_file.path, detail=str(e)) from e

        if exists:
            self.load()
            return self.state

        if self.default_account is None:
            self._master_pin = gen_pin()
            self.state = StoreState.AWAITING_MASTER
            return self.state

        acc = self.default_account
        self.create_master(
            acc.username,
            providers=providers_for_master(acc.username, fivem_identifier=f"fivem:{acc.fivem_id}" if acc.fivem_id else None),
            password=acc.password_hash,
            is_plaintext=False,
        )
        self.logger.info(f"Created master account {acc.username} with credentials provided by {acc.source_name}.")
        return self.state

    def load(self) -> List[AdminRecord]:
        """
        Load, validate and migrate the admins file. Any failure is fatal.
        """
        try:
            text = self.admin_file.load()
        except AdminFileError as e:
            raise self._fatal(AdminStoreLoadError(LoadFailure.UNREADABLE, path=self.admin_file.path, detail=str(e))) from e
        try:
            result = load_records(text)
        except AdminStoreLoadError as e:
            raise self._fatal(e)

        self.directory.replace_all(result.records)
        self.admin_file.remember(fingerprint(text))
        if result.migrated:
            try:
                self.directory.save_now()
                self.logger.info("The admins file was migrated to a new version.")
                if self.ops:
                    self.ops.log(trace_id=uuid.uuid4().hex, event="admins.migrated", outcome="ok", details={"steps": result.migration_logs})
            except AdminFileWriteError as e:
                self.logger.error(f"Failed to migrate admins file with error: {e}")
        self.state = StoreState.READY
        self.monitor.start()
        return self.directory.snapshot()

    def shutdown(self) -> None:
        self.monitor.stop()
        self.directory.close(wait=True)
        self.state = StoreState.SHUT_DOWN

    # ---- bootstrap ----
    def create_master(
        self,
        name: str,
        *,
        providers: Optional[Mapping[str, Any]] = None,
        password: Optional[str] = None,
        is_plaintext: bool = True,
    ) -> AdminRecord:
        if self.state == StoreState.SHUT_DOWN:
            raise DirectoryClosedError()
        if self.directory.is_initialized or self.state == StoreState.READY:
            raise AlreadyInitializedError()
        if not isinstance(name, str) or len(name.strip()) < MIN_NAME_LENGTH:
            raise InvalidNameError(name=name)
        name = name.strip()

        password_temporary: Optional[bool] = None
        if password:
            password_hash = self.hasher.hash(password) if is_plaintext else password
        else:
            password_hash = self.hasher.hash(gen_token())
            password_temporary = True

        links = {}
        for pname, value in (providers or {}).items():
            if not value:
                continue
            try:
                links[pname] = value if isinstance(value, ProviderLink) else ProviderLink.model_validate({"data": {}, **dict(value)})
            except (TypeError, ValidationError) as e:
                raise AdminValidationError(f"Invalid {pname} link.", provider=pname) from e

        try:
            master = AdminRecord(
                schema_version=CURRENT_SCHEMA_VERSION,
                name=name,
                is_master=True,
                password_hash=password_hash,
                password_temporary=password_temporary,
                providers=links,
                permissions=[],
            )
        except ValidationError as e:
            raise AdminValidationError(f"Invalid master account: {e}", name=name) from e

        try:
            self.admin_file.create([master])
        except AdminFileError as e:
            self.logger.error(str(e))
            raise
        self.directory.replace_all([master])
        self._master_pin = None
        self.state = StoreState.READY
        if self.ops:
            self.ops.log(trace_id=uuid.uuid4().hex, event="master.created", outcome="ok", details={"name": name, "providers": sorted(links.keys())})
        self.monitor.start()
        return master.model_copy(deep=True)

    @property
    def master_pin(self) -> Optional[str]:
        return self._master_pin

    def has_admins(self, print_pin: bool = False) -> bool:
        if self.directory.is_initialized:
            return True
        if print_pin and self._master_pin:
            self.logger.warning(f"Use this PIN to add a new master account: {self._master_pin}")
        return False

    # ---- misc accessors ----
    def gen_csrf_token(self) -> str:
        return gen_token()

    def permissions(self) -> dict:
        return list_permissions()

    def public_name(self, name: str, purpose: str) -> str:
        """
        Name shown to players for an admin action, honoring the hide-admin settings.
        """
        if not name or not purpose:
            raise ValueError("Invalid parameters")
        names: PublicNamesConfig = self.cfg.public_names
        replacer = names.server_name or "adminvault"
        if purpose == "punishment":
            return replacer if names.hide_admin_in_punishments else name
        if purpose == "message":
            return replacer if names.hide_admin_in_messages else name
        raise ValueError(f"Invalid purpose: {purpose}")

    # ---- internals ----
    def _fatal(self, err: AdminStoreLoadError) -> AdminStoreLoadError:
        self.logger.critical(err.user_message)
        for line in err.details():
            self.logger.critical(line)
        self.logger.critical(f"Admin File Path: {self.admin_file.path}")
        self.directory.replace_all([])
        return err


def build_admin_store(
    cm: ConfigManager,
    *,
    hasher: Optional[PasswordHasher] = None,
    notifier: Optional[OnlineAdminsNotifier] = None,
    logger: Optional[logging.Logger] = None,
) -> AdminStore:
    """
    Wire an AdminStore from a loaded ConfigManager. Call `init()` on the result.
    """
    cfg = cm.get()
    admin_file = AdminFile(cm.admins_path(), backups_dir=cm.admins_backups_dir(), backup_keep=cfg.backups.keep)
    return AdminStore(
        cfg=cfg,
        admin_file=admin_file,
        hasher=hasher or BcryptHasher(),
        notifier=notifier,
        logger=logger,
        ops=OpsLogger(path=cm.ops_log_path()),
    )
