"""Loading a complete snapshot of the four collections from Supabase."""
from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Dict

from class_finance.models import DataBundle
from class_finance.reconciliation import malformed_schedule_payments
from class_finance.state_manager import AppState
from class_finance.supabase_client import StoreError, SupabaseClient

LOGGER = logging.getLogger(__name__)

COLLECTIONS = ("students", "schedules", "transactions", "categories")


class HydrationError(RuntimeError):
    """Raised when any collection fails to load; no partial bundle is kept."""


def hydrate(client: SupabaseClient) -> DataBundle:
    """Fetch every collection in parallel and assemble one :class:`DataBundle`."""

    with ThreadPoolExecutor(max_workers=len(COLLECTIONS)) as pool:
        futures = {name: pool.submit(getattr(client, name).list) for name in COLLECTIONS}
        results: Dict[str, list] = {}
        failures = []
        for name, future in futures.items():
            try:
                results[name] = future.result()
            except StoreError as exc:
                failures.append(f"{name}: {exc}")
            except (KeyError, TypeError, ValueError) as exc:
                failures.append(f"{name}: malformed row ({exc!r})")

    if failures:
        message = "Hydration from Supabase failed (" + "; ".join(failures) + ")"
        LOGGER.error(message)
        raise HydrationError(message)

    bundle = DataBundle(**{name: tuple(results[name]) for name in COLLECTIONS})
    LOGGER.info(
        "Hydrated %d students, %d schedules, %d transactions, %d categories",
        len(bundle.students),
        len(bundle.schedules),
        len(bundle.transactions),
        len(bundle.categories),
    )
    malformed = malformed_schedule_payments(bundle.transactions)
    if malformed:
        LOGGER.warning(
            "%d schedule transaction(s) lack a schedule or student id and are excluded from payment totals: %s",
            len(malformed),
            ", ".join(txn.id for txn in malformed),
        )
    return bundle


def hydrate_state(client: SupabaseClient, state: AppState | None = None) -> AppState:
    """Return a hydrated state, or the previous data with the error recorded."""

    state = state or AppState()
    try:
        bundle = hydrate(client)
    except HydrationError as exc:
        return state.with_error(str(exc)).mark_hydrated()
    return state.with_data(bundle).mark_hydrated()
