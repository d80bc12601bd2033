"""
Forward-only schema migrations for admin records.
"""

from adminvault.core.admins.migrations.runner import MIGRATIONS, latest_version, run_record_migrations

__all__ = ["MIGRATIONS", "latest_version", "run_record_migrations"]
