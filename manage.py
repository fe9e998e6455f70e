#!/usr/bin/env python3
"""
Stock ledger management CLI.

Usage:
    python manage.py migrate            Apply pending schema migrations
    python manage.py migrate --status   Show applied/pending migrations
    python manage.py serve              Start the API server (uvicorn)
    python manage.py verify             Replay every balance; exit 1 on drift
    python manage.py repair --product P --warehouse W
                                        Reset one balance to its replayed value
    python manage.py grant --actor A    Let actor A auto-approve check-outs
"""

import argparse
import asyncio
import subprocess
import sys
from pathlib import Path

ROOT_DIR = Path(__file__).resolve().parent


async def _migrate(args: argparse.Namespace) -> int:
    from stockledger.core.exceptions import DatabaseError
    from stockledger.infrastructure.storage.sqlite.migrations import (
        get_migration_status,
        run_migrations,
        verify_schema_integrity,
    )

    if args.status:
        status = await get_migration_status()
        print(f"Database exists: {status['exists']}")
        print(f"Current version: {status.get('current_version') or 'N/A'}")
        print(f"Applied migrations: {status.get('applied_migrations', [])}")
        print(f"Pending migrations: {status.get('pending_migrations', [])}")
        if not status["exists"]:
            return 0
        checks = await verify_schema_integrity()
        for check in checks:
            missing = check.get("missing")
            suffix = f" missing={missing}" if missing else ""
            print(f"[{check['status']}] {check['check']}{suffix}")
        return 0 if all(c["status"] == "PASS" for c in checks) else 1

    try:
        results = await run_migrations(create_backup_before=not args.no_backup)
    except DatabaseError as e:
        print(f"Migration refused: {e.message}")
        return 1
    if not results:
        print("Schema is up to date.")
    for result in results:
        label = "SUCCESS" if result.success else "FAILED"
        print(f"[{label}] v{result.version}: {result.name} ({result.execution_time_ms}ms)")
        if result.error:
            print(f"         Error: {result.error}")
    return 0 if all(r.success for r in results) else 1


async def _verify(args: argparse.Namespace) -> int:
    from stockledger.application.use_cases import VerifyBalancesUseCase
    from stockledger.infrastructure.storage.sqlite import close_pool

    try:
        report = await VerifyBalancesUseCase().verify_all()
    finally:
        await close_pool()

    print(f"Checked {report.checked} balances, {report.drifted} drifted.")
    for check in report.mismatches:
        print(
            f"  {check.product_id} @ {check.warehouse_id}: "
            f"live={check.live_quantity} replayed={check.replayed_quantity} "
            f"drift={check.drift:+d}"
        )
    return 1 if report.drifted else 0


async def _repair(args: argparse.Namespace) -> int:
    from stockledger.application.use_cases import VerifyBalancesUseCase
    from stockledger.infrastructure.storage.sqlite import close_pool

    try:
        result = await VerifyBalancesUseCase().repair(
            args.product, args.warehouse, actor_id=args.actor
        )
    finally:
        await close_pool()

    if result.repaired:
        print(
            f"Repaired {args.product} @ {args.warehouse}: "
            f"{result.before.live_quantity} -> {result.quantity}"
        )
    else:
        print(f"{args.product} @ {args.warehouse} is consistent ({result.quantity}).")
    return 0


async def _grant(args: argparse.Namespace) -> int:
    from stockledger.infrastructure.storage.sqlite import close_pool, get_actor_directory

    try:
        directory = await get_actor_directory()
        if args.revoke:
            await directory.revoke(args.actor)
        else:
            await directory.grant(args.actor)
    finally:
        await close_pool()

    action = "Revoked" if args.revoke else "Granted"
    print(f"{action} check-out auto-approval for {args.actor}.")
    return 0


def cmd_migrate(args: argparse.Namespace) -> None:
    """Apply pending schema migrations."""
    sys.exit(asyncio.run(_migrate(args)))


def cmd_serve(args: argparse.Namespace) -> None:
    """Run the API server in the foreground."""
    uvicorn_cmd = [
        sys.executable, "-m", "uvicorn",
        "stockledger.api.main:app",
        "--host", args.host,
        "--port", str(args.port),
    ]
    if args.reload:
        uvicorn_cmd.append("--reload")

    print(f"Starting server on {args.host}:{args.port}...")
    try:
        result = subprocess.run(uvicorn_cmd, cwd=str(ROOT_DIR))
    except KeyboardInterrupt:
        print("Server stopped.")
        return
    sys.exit(result.returncode)


def cmd_verify(args: argparse.Namespace) -> None:
    """Replay every balance and report drift."""
    sys.exit(asyncio.run(_verify(args)))


def cmd_repair(args: argparse.Namespace) -> None:
    """Reset one balance to its replayed value."""
    sys.exit(asyncio.run(_repair(args)))


def cmd_grant(args: argparse.Namespace) -> None:
    """Grant or revoke check-out auto-approval."""
    sys.exit(asyncio.run(_grant(args)))


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Stock ledger management CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    sub = parser.add_subparsers(dest="command", required=True)

    # migrate
    p_migrate = sub.add_parser("migrate", help="Apply pending schema migrations")
    p_migrate.add_argument("--status", action="store_true", help="Only show migration status")
    p_migrate.add_argument("--no-backup", action="store_true", help="Skip backup before migrating")
    p_migrate.set_defaults(func=cmd_migrate)

    # serve
    p_serve = sub.add_parser("serve", help="Start the API server")
    p_serve.add_argument("--host", default="0.0.0.0", help="Bind host (default: 0.0.0.0)")
    p_serve.add_argument("--port", type=int, default=8000, help="Bind port (default: 8000)")
    p_serve.add_argument("--reload", action="store_true", help="Reload on code changes")
    p_serve.set_defaults(func=cmd_serve)

    # verify
    p_verify = sub.add_parser("verify", help="Replay every balance; non-zero exit on drift")
    p_verify.set_defaults(func=cmd_verify)

    # repair
    p_repair = sub.add_parser("repair", help="Reset a balance to its replayed value")
    p_repair.add_argument("--product", required=True, help="Product ID")
    p_repair.add_argument("--warehouse", required=True, help="Warehouse ID")
    p_repair.add_argument("--actor", default=None, help="Actor recorded in the audit log")
    p_repair.set_defaults(func=cmd_repair)

    # grant
    p_grant = sub.add_parser("grant", help="Grant check-out auto-approval to an actor")
    p_grant.add_argument("--actor", required=True, help="Actor ID")
    p_grant.add_argument("--revoke", action="store_true", help="Revoke instead of grant")
    p_grant.set_defaults(func=cmd_grant)

    args = parser.parse_args()

    from stockledger.config import configure_logging

    configure_logging()
    args.func(args)


if __name__ == "__main__":
    main()
