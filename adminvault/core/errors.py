from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List

from adminvault.core.redaction import redact


class Severity(str, Enum):
    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


@dataclass(eq=False)
class AdminVaultError(Exception):
    code: str
    user_message: str
    severity: Severity = Severity.ERROR
    recoverable: bool = True
    context: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        super().__init__(self.code)

    def __str__(self) -> str:
        return self.user_message

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "user_message": self.user_message,
            "severity": self.severity.value,
            "recoverable": bool(self.recoverable),
            "context": redact(self.context or {}),
        }


class LoadFailure(str, Enum):
    UNREADABLE = "unreadable"
    EMPTY = "empty"
    MALFORMED_JSON = "malformed_json"
    NOT_A_LIST = "not_a_list"
    EMPTY_LIST = "empty_list"
    STRUCTURALLY_INVALID = "structurally_invalid"
    MASTER_COUNT_INVALID = "master_count_invalid"


_LOAD_FAILURE_MESSAGES: Dict[LoadFailure, str] = {
    LoadFailure.UNREADABLE: "cannot read file",
    LoadFailure.EMPTY: "empty file",
    LoadFailure.MALFORMED_JSON: "json parse error",
    LoadFailure.NOT_A_LIST: "not an array",
    LoadFailure.EMPTY_LIST: "no admins",
    LoadFailure.STRUCTURALLY_INVALID: "invalid data in the admins file",
    LoadFailure.MASTER_COUNT_INVALID: "must have exactly 1 master account",
}


# ---- Fatal (startup) ----
class ConfigError(AdminVaultError):
    def __init__(self, user_message: str = "Configuration error.", **ctx: Any):
        super().__init__("config_error", user_message, severity=Severity.CRITICAL, recoverable=False, context=ctx)


class AdminStoreLoadError(AdminVaultError):
    def __init__(self, reason: LoadFailure, **ctx: Any):
        self.reason = reason
        super().__init__(
            "admin_store_load_failed",
            f"Unable to load admins file: {_LOAD_FAILURE_MESSAGES[reason]}",
            severity=Severity.CRITICAL,
            recoverable=False,
            context={"reason": reason.value, **ctx},
        )

    def details(self) -> List[str]:
        if self.reason == LoadFailure.UNREADABLE:
            return ["This means the file doesn't exist or the process doesn't have permission to read it."]
        return [
            "This likely means the file got somehow corrupted.",
            "You can try restoring it or you can delete it and let a new one be created.",
        ]


# ---- Persistence ----
class AdminFileError(AdminVaultError):
    def __init__(self, code: str, user_message: str, **ctx: Any):
        super().__init__(code, user_message, severity=Severity.ERROR, recoverable=True, context=ctx)


class AdminFileNotFoundError(AdminFileError):
    def __init__(self, user_message: str = "Admins file not found.", **ctx: Any):
        super().__init__("admin_file_not_found", user_message, **ctx)


class AdminFilePermissionError(AdminFileError):
    def __init__(self, user_message: str = "Permission denied reading admins file.", **ctx: Any):
        super().__init__("admin_file_permission_denied", user_message, **ctx)


class AdminFileIOError(AdminFileError):
    def __init__(self, user_message: str = "Failed to read admins file.", **ctx: Any):
        super().__init__("admin_file_io_error", user_message, **ctx)


class AdminFileWriteError(AdminFileError):
    def __init__(self, user_message: str = "Failed to save admins file.", **ctx: Any):
        super().__init__("admin_file_write_error", user_message, **ctx)


class AdminFileExistsError(AdminFileError):
    def __init__(self, user_message: str = "Admins file already exists.", **ctx: Any):
        super().__init__("admin_file_exists", user_message, **ctx)


# ---- Directory (runtime, recoverable) ----
class DirectoryUninitializedError(AdminVaultError):
    def __init__(self, user_message: str = "Admins not set.", **ctx: Any):
        super().__init__("directory_uninitialized", user_message, severity=Severity.WARN, recoverable=True, context=ctx)


class AlreadyInitializedError(AdminVaultError):
    def __init__(self, user_message: str = "Admins file already exists.", **ctx: Any):
        super().__init__("already_initialized", user_message, severity=Severity.WARN, recoverable=False, context=ctx)


class InvalidNameError(AdminVaultError):
    def __init__(self, user_message: str = "Invalid username parameter.", **ctx: Any):
        super().__init__("invalid_name", user_message, severity=Severity.WARN, recoverable=False, context=ctx)


class NameTakenError(AdminVaultError):
    def __init__(self, user_message: str = "Username already taken.", **ctx: Any):
        super().__init__("name_taken", user_message, severity=Severity.WARN, recoverable=False, context=ctx)


class ProviderIdTakenError(AdminVaultError):
    def __init__(self, provider: str, **ctx: Any):
        self.provider = provider
        super().__init__("provider_id_taken", f"{provider} ID already taken.", severity=Severity.WARN, recoverable=False, context={"provider": provider, **ctx})


class AdminNotFoundError(AdminVaultError):
    def __init__(self, user_message: str = "Admin not found.", **ctx: Any):
        super().__init__("admin_not_found", user_message, severity=Severity.WARN, recoverable=False, context=ctx)


class MasterProtectedError(AdminVaultError):
    def __init__(self, user_message: str = "The master account cannot be deleted.", **ctx: Any):
        super().__init__("master_protected", user_message, severity=Severity.WARN, recoverable=False, context=ctx)


class AdminValidationError(AdminVaultError):
    def __init__(self, user_message: str = "Invalid admin data.", **ctx: Any):
        super().__init__("validation_error", user_message, severity=Severity.WARN, recoverable=False, context=ctx)


class DirectoryClosedError(AdminVaultError):
    def __init__(self, user_message: str = "Admin directory is shut down.", **ctx: Any):
        super().__init__("directory_closed", user_message, severity=Severity.WARN, recoverable=False, context=ctx)
