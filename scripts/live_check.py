"""Manual live check against a hosted reservation store.

Run from the repository root with:
  PYTHONPATH=src PARKCHARGE_BASE_URL=... PARKCHARGE_API_KEY=... \
  PARKCHARGE_RENTER_EMAIL=... python scripts/live_check.py

Optional environment variables:
  PARKCHARGE_API_URI
  PARKCHARGE_DEBUG (set to enable debug logging)

The script is read-only and avoids printing full email addresses.
"""

from __future__ import annotations

import asyncio
import logging
import os
import sys

from pyparkcharge import Client
from pyparkcharge.models import ReservationSummary, ResourceType
from pyparkcharge.util import mask_email


def _require_env(name: str) -> str:
    value = os.getenv(name)
    if not value:
        print(f"Missing required environment variable: {name}", file=sys.stderr)
        raise SystemExit(2)
    return value


def _format_summary(summary: ReservationSummary) -> str:
    reservation = summary.reservation
    return (
        f"{summary.canonical_id} | {reservation.resource_type} | {summary.address} | "
        f"{reservation.date} {reservation.from_time:%H:%M} -> {reservation.to_time:%H:%M} | "
        f"{reservation.computed_fee} | {summary.status}"
    )


async def main() -> int:
    base_url = _require_env("PARKCHARGE_BASE_URL")
    api_key = _require_env("PARKCHARGE_API_KEY")
    renter_email = _require_env("PARKCHARGE_RENTER_EMAIL")
    api_uri = os.getenv("PARKCHARGE_API_URI") or "rest/v1"
    if os.getenv("PARKCHARGE_DEBUG"):
        logging.basicConfig(level=logging.DEBUG)

    try:
        async with Client(base_url=base_url, api_key=api_key, api_uri=api_uri) as client:
            parking = await client.list_resources(ResourceType.PARKING)
            charging = await client.list_resources(ResourceType.CHARGING)
            summaries = await client.list_reservations(renter_email=renter_email)
    except Exception as exc:
        print(f"Error: {exc.__class__.__name__}: {exc}", file=sys.stderr)
        return 1

    print(f"Parking spots: {len(parking)}")
    print(f"Charging stations: {len(charging)}")
    print(f"Reservations for {mask_email(renter_email)}: {len(summaries)}")
    for summary in summaries:
        print(f"- {_format_summary(summary)}")
    return 0


if __name__ == "__main__":
    raise SystemExit(asyncio.run(main()))
