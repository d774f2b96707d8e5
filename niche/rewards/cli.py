"""CLI entry point for the rewards service."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys

from dotenv import load_dotenv

from .config import load_config
from .errors import RewardsError
from .models import ReceiptStatus, ReceiptSubmission


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="niche-rewards",
        description="Receipt intake and loyalty points",
    )
    parser.add_argument(
        "--config",
        "-c",
        type=str,
        default=None,
        help="Path to the config file (TOML)",
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Enable debug logging"
    )

    sub = parser.add_subparsers(dest="command")

    # submit
    submit_parser = sub.add_parser("submit", help="Upload a receipt image and score it")
    who = submit_parser.add_mutually_exclusive_group(required=True)
    who.add_argument("--user", help="Submitting user id")
    who.add_argument("--token", help="Supabase access token of the submitting user")
    submit_parser.add_argument("--image", help="Local image file to upload first")
    submit_parser.add_argument("--key", help="Existing storage key (skips upload)")
    submit_parser.add_argument("--json", action="store_true", help="Output as JSON")

    # receipts
    receipts_parser = sub.add_parser("receipts", help="List a user's receipts")
    receipts_parser.add_argument("--user", required=True)
    receipts_parser.add_argument("--json", action="store_true", help="Output as JSON")

    # ledger
    ledger_parser = sub.add_parser("ledger", help="Show a user's points ledger")
    ledger_parser.add_argument("--user", required=True)
    ledger_parser.add_argument("--json", action="store_true", help="Output as JSON")

    # reconcile
    sub.add_parser("reconcile", help="Credit approved receipts missing an award")

    # schedule
    sub.add_parser("schedule", help="Run award reconciliation on its cron schedule")

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    load_dotenv()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s  %(name)-30s  %(levelname)-5s  %(message)s",
    )

    config = load_config(args.config)

    try:
        match args.command:
            case "submit":
                asyncio.run(_cmd_submit(config, args))
            case "receipts":
                _cmd_receipts(config, args)
            case "ledger":
                _cmd_ledger(config, args)
            case "reconcile":
                _cmd_reconcile(config)
            case "schedule":
                asyncio.run(_cmd_schedule(config))
    except (RewardsError, ValueError, ImportError, FileNotFoundError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


async def _cmd_submit(config, args) -> None:
    from .pipeline import build_pipeline
    from .storage import make_image_key

    if not args.image and not args.key:
        print("Either --image or --key is required.", file=sys.stderr)
        sys.exit(2)

    user_id = args.user or _resolve_token(config, args.token)

    pipeline = build_pipeline(config)
    try:
        key = args.key
        if args.image:
            key = make_image_key(user_id)
            pipeline.object_store.upload(args.image, key)
            print(f"Uploaded: {key}")
        result = await pipeline.submit(ReceiptSubmission(user_id=user_id, image_key=key))
    finally:
        pipeline.store.close()

    if args.json:
        print(json.dumps(result.to_dict(), ensure_ascii=False, indent=2))
        return

    print(result.message)
    print(f"  Status:   {result.status.value}")
    print(f"  Retailer: {result.retailer}")
    print(f"  Total:    {result.total:.2f}")
    if result.status is ReceiptStatus.APPROVED:
        print(f"  Points:   {result.points_awarded}")
    if result.receipt_id:
        print(f"  Receipt:  {result.receipt_id}")


def _resolve_token(config, token: str) -> str:
    from .auth import SupabaseAuthenticator
    from .supabase_client import create_supabase_client

    client = create_supabase_client(config.supabase.url, config.supabase.key)
    return SupabaseAuthenticator(client).resolve_user(token)


def _cmd_receipts(config, args) -> None:
    from .db import create_store

    store = create_store(config)
    try:
        receipts = store.list_receipts(args.user)
    finally:
        store.close()

    if args.json:
        data = [
            {
                "id": r.id,
                "retailer": r.retailer,
                "purchase_date": r.purchase_date,
                "total": r.total_cents / 100,
                "points_awarded": r.points,
                "ocr_confidence": r.confidence,
                "status": r.status.value,
                "created_at": r.created_at,
            }
            for r in receipts
        ]
        print(json.dumps(data, ensure_ascii=False, indent=2))
        return

    if not receipts:
        print("No receipts yet.")
        return
    print(f"Receipts ({len(receipts)}):")
    for r in receipts:
        print(
            f"  {r.purchase_date:<10}  {r.retailer:<20} "
            f"{r.total_cents / 100:>10.2f} {r.currency}  "
            f"{r.status.value:<8} {r.points:>5} pts"
        )


def _cmd_ledger(config, args) -> None:
    from .db import create_store

    store = create_store(config)
    try:
        entries = store.get_ledger(args.user)
        balance = store.get_balance(args.user)
    finally:
        store.close()

    if args.json:
        data = {
            "balance": balance,
            "transactions": [
                {
                    "id": e.id,
                    "type": e.type,
                    "amount": e.amount,
                    "reason": e.reason,
                    "balance_after": e.balance_after,
                    "receipt_id": e.receipt_id,
                    "created_at": e.created_at,
                }
                for e in entries
            ],
        }
        print(json.dumps(data, ensure_ascii=False, indent=2))
        return

    print(f"Balance: {balance} pts")
    for e in entries:
        sign = "+" if e.delta >= 0 else "-"
        print(f"  {e.created_at:<26} {sign}{e.amount:>6}  {e.reason}")


def _cmd_reconcile(config) -> None:
    from .db import create_store
    from .reconcile import AwardReconciler

    store = create_store(config)
    try:
        report = AwardReconciler(store, config.reconcile.batch_size).run_once()
    finally:
        store.close()

    print(
        f"Checked {report.checked} receipts, credited {report.credited} "
        f"({report.points} pts)"
    )
    for receipt_id in report.failed:
        print(f"  failed: {receipt_id}", file=sys.stderr)


async def _cmd_schedule(config) -> None:
    from .reconcile import ReconcileScheduler

    scheduler = ReconcileScheduler(config)
    scheduler.start()
    print(f"Award reconciliation scheduled: {config.reconcile.schedule}")
    try:
        await asyncio.Event().wait()
    finally:
        scheduler.stop()
