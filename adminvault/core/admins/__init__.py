"""
Admin accounts: models, the on-disk admins file, the in-memory directory,
the integrity monitor and the bootstrap service that ties them together.
"""

from adminvault.core.admins.directory import UNSET, AdminDirectory, MutationResult
from adminvault.core.admins.io import AdminFile
from adminvault.core.admins.models import AdminRecord, AdminSummary, ProviderLink
from adminvault.core.admins.monitor import CheckOutcome, IntegrityMonitor
from adminvault.core.admins.notifier import OnlineAdminsNotifier
from adminvault.core.admins.store import AdminStore, StoreState, build_admin_store

__all__ = [
    "UNSET",
    "AdminDirectory",
    "AdminFile",
    "AdminRecord",
    "AdminStore",
    "AdminSummary",
    "CheckOutcome",
    "IntegrityMonitor",
    "MutationResult",
    "OnlineAdminsNotifier",
    "ProviderLink",
    "StoreState",
    "build_admin_store",
]
