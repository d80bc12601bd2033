from __future__ import annotations

import argparse
import getpass
import sys

from adminvault.core.hashing import BcryptHasher


def main() -> int:
    ap = argparse.ArgumentParser(description="Print a bcrypt hash for the ADMINVAULT_DEFAULT_ACCOUNT setting.")
    ap.add_argument("--rounds", type=int, default=12)
    args = ap.parse_args()

    pw = getpass.getpass("Password: ")
    if len(pw) < 6:
        print("Password too short.", file=sys.stderr)
        return 2
    if getpass.getpass("Repeat: ") != pw:
        print("Passwords do not match.", file=sys.stderr)
        return 2
    print(BcryptHasher(rounds=args.rounds).hash(pw))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
