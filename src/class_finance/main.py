"""Entrypoint for the classroom finance dashboard tools."""
from __future__ import annotations

import argparse
import json
import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Sequence

from class_finance.hydration import hydrate
from class_finance.models import DataBundle
from class_finance.report import format_dashboard, payment_status_rows, transaction_rows
from class_finance.sheets_client import SheetsClient
from class_finance.state_manager import SnapshotCache
from class_finance.storage_client import StorageClient
from class_finance.student_import import parse_student_csv, student_template_csv
from class_finance.supabase_client import SupabaseClient

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
LOGGER = logging.getLogger(__name__)

# Get project root (2 levels up from this file: src/class_finance/main.py -> root)
PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent


def load_config(path: str | Path) -> Dict:
    with open(path, "r", encoding="utf-8") as config_file:
        return json.load(config_file)


def resolve_config() -> Dict:
    """Read the JSON config, letting environment variables override secrets."""

    config_env = os.environ.get("CLASS_FINANCE_CONFIG")
    config_path = Path(config_env) if config_env else PROJECT_ROOT / "config" / "config.json"
    config = load_config(config_path) if config_path.exists() else {}
    for key, env_name in (("supabase_url", "SUPABASE_URL"), ("supabase_key", "SUPABASE_KEY")):
        if os.environ.get(env_name):
            config[key] = os.environ[env_name]
    return config


def build_client(config: Dict) -> SupabaseClient:
    url = config.get("supabase_url")
    key = config.get("supabase_key")
    if not url or not key:
        raise RuntimeError("Either SUPABASE_URL/SUPABASE_KEY environment variables or config entries must be set")
    return SupabaseClient(url=url, api_key=key, timeout=int(config.get("timeout_seconds", 30)))


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--month",
        default=datetime.now(timezone.utc).strftime("%Y-%m"),
        help="Month (YYYY-MM) used for the category breakdown",
    )
    parser.add_argument(
        "--offline",
        action="store_true",
        help="Use the cached snapshot instead of fetching from Supabase",
    )
    parser.add_argument(
        "--export-sheet",
        action="store_true",
        help="Write transactions and payment status to the configured Google Sheet",
    )
    parser.add_argument(
        "--import-students",
        type=str,
        metavar="CSV_FILE",
        help="Create students from a local CSV file",
    )
    parser.add_argument(
        "--student-template",
        type=str,
        metavar="CSV_FILE",
        help="Write an example student CSV file",
    )
    parser.add_argument(
        "--ping",
        action="store_true",
        help="Check connectivity to the Supabase tables and storage bucket",
    )
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    if args.student_template:
        Path(args.student_template).write_text(student_template_csv(), encoding="utf-8")
        LOGGER.info("Wrote student template to %s", args.student_template)
        return 0

    config = resolve_config()
    if args.ping:
        return run_ping(config)
    if args.import_students:
        import_students(config, args.import_students)
        return 0
    run_dashboard(config, month=args.month, offline=args.offline, export_sheet=args.export_sheet)
    return 0


def run_ping(config: Dict) -> int:
    client = build_client(config)
    result = client.ping(StorageClient(client, bucket=config.get("storage_bucket", "avatars")))
    if result.ok:
        LOGGER.info("Supabase reachable: %s students, storage ok", result.students_count)
        return 0
    LOGGER.error("Supabase check failed: %s", result.error)
    return 1


def import_students(config: Dict, csv_path: str) -> None:
    csv_file = Path(csv_path)
    if not csv_file.exists():
        raise FileNotFoundError(f"CSV file not found: {csv_path}")
    client = build_client(config)
    existing = client.students.list()
    parsed = parse_student_csv(csv_file.read_text(encoding="utf-8-sig"), (s.number for s in existing))
    LOGGER.info("Parsed %s: %s", csv_path, parsed.describe())
    created = client.students.create_many(parsed.students)
    LOGGER.info("Successfully created %d students", len(created))


def run_dashboard(config: Dict, *, month: str, offline: bool = False, export_sheet: bool = False) -> None:
    cache_path = Path(config.get("cache_file", PROJECT_ROOT / "data" / "snapshot.json"))
    bundle = load_bundle(config, cache_path, offline=offline)

    for line in format_dashboard(bundle, month):
        LOGGER.info("Dashboard: %s", line)

    if export_sheet:
        credentials_path = os.environ.get("GOOGLE_APPLICATION_CREDENTIALS") or config.get("google_service_file")
        if not credentials_path:
            raise RuntimeError(
                "Either GOOGLE_APPLICATION_CREDENTIALS environment variable or 'google_service_file' in config must be set"
            )
        sheets_client = SheetsClient(
            spreadsheet_id=config["spreadsheet_id"],
            credentials_path=credentials_path,
            transactions_tab=config.get("transactions_tab", "Transactions"),
            status_tab=config.get("status_tab", "PaymentStatus"),
        )
        sheets_client.write_transactions(transaction_rows(bundle))
        sheets_client.write_payment_status(payment_status_rows(bundle))


def load_bundle(config: Dict, cache_path: Path, *, offline: bool) -> DataBundle:
    if offline:
        cache = SnapshotCache.load(cache_path)
        if cache.bundle is None:
            raise RuntimeError(f"No cached snapshot at {cache_path}; run once without --offline")
        LOGGER.info("Using snapshot cached at %s", cache.hydrated_at)
        return cache.bundle
    bundle = hydrate(build_client(config))
    SnapshotCache(hydrated_at=datetime.now(timezone.utc), bundle=bundle).save(cache_path)
    return bundle


if __name__ == "__main__":
    raise SystemExit(main())
