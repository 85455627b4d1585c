#!/usr/bin/env python3
from __future__ import annotations

import argparse
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.append(str(ROOT))

from adminauth.core.config import DEV_BOOTSTRAP_ALLOW, load_auth_settings  # noqa: E402
from adminauth.core.database import SessionLocal, engine  # noqa: E402
from adminauth.core.errors import ConflictError, LimitError  # noqa: E402
from adminauth.core.startup_checks import ensure_auth_tables_exist  # noqa: E402
from adminauth.services.admin_store import AdminCredentialStore  # noqa: E402


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Create an admin account.")
    parser.add_argument("--email", required=True, help="Admin email")
    parser.add_argument("--password", required=True, help="Admin password")
    parser.add_argument("--role", default="admin", help="Admin role")
    parser.add_argument(
        "--force",
        action="store_true",
        help="Run without DEV_BOOTSTRAP_ALLOW=1",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)

    if not DEV_BOOTSTRAP_ALLOW and not args.force:
        print("Admin bootstrap disabled. Set DEV_BOOTSTRAP_ALLOW=1 or pass --force.")
        return 1

    try:
        ensure_auth_tables_exist(engine)
    except RuntimeError as exc:
        print(str(exc))
        return 1

    settings = load_auth_settings()
    db = SessionLocal()
    try:
        store = AdminCredentialStore(
            db,
            max_admins=settings.max_admin_accounts,
            bcrypt_rounds=settings.bcrypt_rounds,
        )
        admin = store.create(args.email, args.password, role=args.role)
        print(f"Admin created: id={admin.id} email={admin.email} role={admin.role}")
    except (ConflictError, LimitError) as exc:
        print(exc.message)
        return 1
    finally:
        db.close()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
