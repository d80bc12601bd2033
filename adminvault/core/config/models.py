from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from adminvault.core.hashing import looks_like_password_hash


class BackupsConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")
    enabled: bool = True
    keep: int = Field(default=10, ge=1, le=200)


class PublicNamesConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")
    server_name: Optional[str] = None
    hide_admin_in_punishments: bool = False
    hide_admin_in_messages: bool = False


class LoggingConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")
    log_dir: str = "logs"
    ops_log: str = "logs/ops.jsonl"
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    console: bool = True


class DefaultAccountConfig(BaseModel):
    """
    Credentials used to create the master account on first run, non-interactively.
    """

    model_config = ConfigDict(extra="forbid")
    username: str = Field(min_length=3)
    fivem_id: Optional[str] = None
    password_hash: Optional[str] = None
    source_name: str = "config file"

    @field_validator("fivem_id", "password_hash", mode="before")
    @classmethod
    def _blank_is_none(cls, v):  # noqa: ANN001
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("password_hash")
    @classmethod
    def _must_be_hash(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not looks_like_password_hash(v):
            raise ValueError("default account password must be a bcrypt hash")
        return v


class AdminVaultConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    config_version: int = Field(default=1, ge=1)
    data_dir: str = "data"
    admins_file: str = "admins.json"
    integrity_check_interval_seconds: int = Field(default=15, ge=1, le=3600)
    edit_notify_delay_ms: int = Field(default=250, ge=0, le=60_000)
    backups: BackupsConfig = Field(default_factory=BackupsConfig)
    public_names: PublicNamesConfig = Field(default_factory=PublicNamesConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    default_account: Optional[DefaultAccountConfig] = None
