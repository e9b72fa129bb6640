# backend/contractor_hub/cli/__main__.py
from __future__ import annotations

import argparse
import json

from contractor_hub.cli.seed_demo import seed_demo
from contractor_hub.db import init_db, session_scope
from contractor_hub.services.portal_lock import lock_expired_portals


def main() -> None:
    p = argparse.ArgumentParser(prog="contractor_hub")
    sub = p.add_subparsers(dest="command", required=True)

    seed = sub.add_parser("seed-demo", help="seed a demo tenant with one job per pricing shape")
    seed.add_argument("--tenant-slug", default="demo-painting")
    seed.add_argument("--company-name", default="Demo Painting Co")
    seed.add_argument("--user-email", default="owner@demo-painting.local")
    seed.add_argument("--user-name", default="Demo Owner")
    seed.add_argument("--password", default="demo-password")

    lock = sub.add_parser("lock-portals", help="close expired customer portals now")
    lock.add_argument("--dry-run", action="store_true")

    args = p.parse_args()

    if args.command == "seed-demo":
        out = seed_demo(
            tenant_slug=args.tenant_slug,
            company_name=args.company_name,
            user_email=args.user_email,
            user_name=args.user_name,
            password=args.password,
        )
        print(json.dumps({"ok": True, "tenant_slug": out.tenant_slug, "user_email": out.user_email, "job_ids": out.job_ids}))
        return

    init_db()
    with session_scope() as db:
        print(json.dumps(lock_expired_portals(db, dry_run=args.dry_run).as_dict()))


if __name__ == "__main__":
    main()
