from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictStr, field_validator, model_validator

from adminvault.core.hashing import looks_like_password_hash


CURRENT_SCHEMA_VERSION = 1

ProviderName = Literal["discord", "citizenfx"]


class ProviderLink(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: StrictStr = Field(min_length=3)
    identifier: StrictStr = Field(min_length=3)
    data: Dict[str, Any]


class _AdminRecordBase(BaseModel):
    # unknown keys written by other tools survive a load/save cycle
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    name: StrictStr = Field(min_length=3)
    is_master: StrictBool = Field(alias="master")
    password_hash: StrictStr
    password_temporary: Optional[StrictBool] = None
    providers: Dict[ProviderName, ProviderLink]
    # entries are not type-checked on load; add/edit only write strings
    permissions: List[Any]

    @field_validator("password_hash")
    @classmethod
    def _hash_marker(cls, v: str) -> str:
        if not looks_like_password_hash(v):
            raise ValueError("password_hash is not a recognized hash")
        return v


class AdminRecord(_AdminRecordBase):
    """
    Current on-disk admin shape.
    """

    schema_version: Literal[1] = Field(alias="$schema")

    @property
    def name_key(self) -> str:
        return self.name.strip().lower()

    @property
    def is_password_temporary(self) -> bool:
        return bool(self.password_temporary)

    def to_disk(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    def summary(self) -> "AdminSummary":
        return AdminSummary(
            name=self.name,
            master=self.is_master,
            providers=list(self.providers.keys()),
            permissions=list(self.permissions),
        )


class LegacyAdminRecord(_AdminRecordBase):
    """
    Pre-versioning shape: identical fields, no `$schema` tag.
    """

    @model_validator(mode="before")
    @classmethod
    def _untagged(cls, data: Any) -> Any:
        if isinstance(data, dict) and "$schema" in data:
            raise ValueError("legacy records carry no schema tag")
        return data


class AdminSummary(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str
    master: bool
    providers: List[str] = Field(default_factory=list)
    permissions: List[Any] = Field(default_factory=list)
