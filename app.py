from __future__ import annotations

import argparse
import getpass
import sys
import threading

from adminvault.core.admins.store import AdminStore, StoreState, build_admin_store
from adminvault.core.config import ConfigFsPaths, ConfigManager
from adminvault.core.errors import AdminFileError, AdminStoreLoadError, AdminVaultError, ConfigError
from adminvault.core.logger import setup_logging


def _bootstrap_master(store: AdminStore, logger) -> bool:
    store.has_admins(print_pin=True)
    try:
        pin = input("Enter the PIN shown above: ").strip()
        if pin != store.master_pin:
            logger.warning("Wrong PIN; master account not created.")
            return False
        name = input("Master account username: ").strip()
        p1 = getpass.getpass("Password (blank for a temporary one): ")
        p2 = getpass.getpass("Confirm password: ") if p1 else ""
    except (EOFError, KeyboardInterrupt):
        logger.warning("Master account not created (interactive input unavailable).")
        return False
    if p1 != p2:
        logger.warning("Passwords do not match; master account not created.")
        return False
    try:
        store.create_master(name, password=p1 or None)
    except AdminVaultError as e:
        logger.error(f"Failed to create master account: {e}")
        return False
    logger.info(f"Master account {name} created.")
    return True


def main() -> int:
    ap = argparse.ArgumentParser(description="adminvault: admin account store")
    ap.add_argument("--root", default=".", help="Directory holding config/, data/ and logs/.")
    ap.add_argument("--check", action="store_true", help="Load the admins file and exit.")
    args = ap.parse_args()

    cm = ConfigManager(fs=ConfigFsPaths(str(args.root)))
    try:
        cm.load_all()
    except ConfigError as e:
        print(f"Config error: {e}", file=sys.stderr)
        return 2
    log_cfg = cm.get().logging
    logger = setup_logging(cm.log_dir(), level=log_cfg.level, console=log_cfg.console)
    cm.logger = logger

    store = build_admin_store(cm, logger=logger)
    try:
        state = store.init()
    except (AdminStoreLoadError, AdminFileError):
        # already reported by the store
        return 1

    try:
        if state == StoreState.AWAITING_MASTER and not args.check:
            if not _bootstrap_master(store, logger):
                return 1
        if args.check:
            logger.info(f"{len(store.directory.list_raw())} admin(s) loaded from {store.admin_file.path}")
            return 0

        logger.info("adminvault running; press Ctrl+C to stop.")
        stop = threading.Event()
        try:
            while not stop.wait(1.0):
                pass
        except KeyboardInterrupt:
            logger.info("Shutting down.")
        return 0
    finally:
        store.shutdown()


if __name__ == "__main__":
    raise SystemExit(main())
