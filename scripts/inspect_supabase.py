#!/usr/bin/env python3
"""Inspect what the Supabase tables currently hold for this month."""

import json
import sys
from datetime import datetime, timezone
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "src"))

from class_finance.reconciliation import malformed_schedule_payments
from class_finance.supabase_client import SupabaseClient


def main():
    # Load config
    config_path = Path(__file__).resolve().parent.parent / "config" / "config.json"
    with open(config_path) as f:
        config = json.load(f)

    client = SupabaseClient(url=config["supabase_url"], api_key=config["supabase_key"])

    month = datetime.now(timezone.utc).strftime("%Y-%m")
    print(f"Fetching transactions for {month}\n")
    print("=" * 80)

    transactions = client.transactions_for_month(month)
    if not transactions:
        print("No transactions found")
    else:
        print(f"\nFound {len(transactions)} transactions")
        print("\nMost recent 10 transactions:")
        print("-" * 80)
        for i, txn in enumerate(transactions[:10], 1):
            print(f"\n{i}. ID: {txn.id}")
            print(f"   Created: {txn.created_at}")
            print(f"   Name: {txn.name}")
            print(f"   Source/Kind: {txn.source}/{txn.kind}")
            print(f"   Amount: {txn.amount:.2f} ({txn.method or '-'})")

    # Count by source and method
    counts = {}
    for txn in transactions:
        key = f"{txn.source}/{txn.method or 'none'}"
        counts[key] = counts.get(key, 0) + 1

    print("\n" + "=" * 80)
    print("Summary by source/method:")
    print("-" * 80)
    for key, count in sorted(counts.items()):
        print(f"{key}: {count}")

    malformed = malformed_schedule_payments(transactions)
    if malformed:
        print(f"\n{len(malformed)} schedule payment(s) missing schedule or student id:")
        for txn in malformed:
            print(f"  {txn.id} {txn.name}")

    active = client.active_schedules()
    print(f"\nActive schedules: {len(active)}")
    for schedule in active:
        print(f"  {schedule.name} ({schedule.start_date} - {schedule.end_date or 'open'})")


if __name__ == "__main__":
    main()
