from __future__ import annotations

import os
from typing import Any, Dict, Mapping, Optional

from pydantic import ValidationError

from adminvault.core.config.io import (
    atomic_write_json,
    read_json_file,
    recover_from_corrupt,
    snapshot_last_known_good,
)
from adminvault.core.config.models import AdminVaultConfig, DefaultAccountConfig
from adminvault.core.config.paths import ConfigFsPaths
from adminvault.core.errors import ConfigError


DEFAULT_ACCOUNT_ENV = "ADMINVAULT_DEFAULT_ACCOUNT"


def parse_default_account(value: str, *, source_name: str = "environment") -> DefaultAccountConfig:
    """
    Parse `username:fivem_id:password_hash`; the last two segments may be empty.

    The hash itself contains `$` but never `:`, so splitting on the first two
    colons is unambiguous.
    """
    parts = value.split(":", 2)
    while len(parts) < 3:
        parts.append("")
    username, fivem_id, password_hash = (p.strip() for p in parts)
    try:
        return DefaultAccountConfig(username=username, fivem_id=fivem_id, password_hash=password_hash, source_name=source_name)
    except ValidationError as e:
        raise ConfigError(f"Invalid default account in {source_name}: {e.errors()[0].get('msg')}", source=source_name) from e


class ConfigManager:
    def __init__(
        self,
        *,
        fs: Optional[ConfigFsPaths] = None,
        logger=None,
        read_only: bool = False,
        environ: Optional[Mapping[str, str]] = None,
    ):
        self.fs = fs or ConfigFsPaths(".")
        self.logger = logger
        self.read_only = read_only
        self._environ = environ if environ is not None else os.environ
        self._cfg: Optional[AdminVaultConfig] = None

    # ---------- public API ----------
    def load_all(self) -> AdminVaultConfig:
        if not self.read_only:
            os.makedirs(self.fs.config_dir, exist_ok=True)
            os.makedirs(self.fs.backups_dir, exist_ok=True)

        raw = self._load_raw()
        try:
            cfg = AdminVaultConfig.model_validate(raw)
        except ValidationError as e:
            raise ConfigError(f"Invalid {os.path.basename(self.fs.app)}: {e}", path=self.fs.app) from e

        env_account = str(self._environ.get(DEFAULT_ACCOUNT_ENV) or "").strip()
        if env_account:
            cfg = cfg.model_copy(update={"default_account": parse_default_account(env_account, source_name="environment")})

        self._cfg = cfg
        if not self.read_only:
            snapshot_last_known_good(self.fs.app, self.fs.last_known_good_dir)
        return cfg

    def get(self) -> AdminVaultConfig:
        if self._cfg is None:
            raise ConfigError("Config not loaded.")
        return self._cfg

    def save(self, data: Dict[str, Any]) -> AdminVaultConfig:
        """
        Validate then atomically write the config file (with backup).
        """
        if self.read_only:
            raise ConfigError("Config manager is read-only.")
        try:
            AdminVaultConfig.model_validate(data)
        except ValidationError as e:
            raise ConfigError(f"Refusing to save invalid config: {e}", path=self.fs.app) from e
        keep = int(((data.get("backups") or {}).get("keep")) or 10)
        atomic_write_json(self.fs.app, data, self.fs.backups_dir, max_backups=keep)
        return self.load_all()

    def admins_path(self) -> str:
        cfg = self.get()
        return os.path.join(self.fs.resolve(cfg.data_dir), cfg.admins_file)

    def admins_backups_dir(self) -> Optional[str]:
        cfg = self.get()
        if not cfg.backups.enabled:
            return None
        return os.path.join(self.fs.resolve(cfg.data_dir), "backups")

    def ops_log_path(self) -> str:
        return self.fs.resolve(self.get().logging.ops_log)

    def log_dir(self) -> str:
        return self.fs.resolve(self.get().logging.log_dir)

    # ---------- internals ----------
    def _load_raw(self) -> Dict[str, Any]:
        rr = read_json_file(self.fs.app)
        if rr.ok:
            return rr.data
        if rr.error == "missing":
            defaults = AdminVaultConfig().model_dump(exclude_none=True)
            if not self.read_only:
                atomic_write_json(self.fs.app, defaults, self.fs.backups_dir)
                if self.logger:
                    self.logger.info(f"Created default config at {self.fs.app}")
            return defaults
        if self.read_only:
            raise ConfigError(f"Cannot read {self.fs.app}: {rr.error}", path=self.fs.app)
        data, recovered = recover_from_corrupt(self.fs.app, self.fs.backups_dir, self.fs.last_known_good_dir)
        if self.logger:
            if recovered:
                self.logger.warning(f"Config file was unreadable ({rr.error}); restored last known good.")
            else:
                self.logger.warning(f"Config file was unreadable ({rr.error}); using defaults.")
        return data
