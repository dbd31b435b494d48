"""Orchestrator: resolve town → fetch sheets → parse → write JSON snapshots.

    python -m pipeline.build --town lephalale
    python -m pipeline.build --business-csv export.csv   # offline, from a local export
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
import time
from collections import Counter
from pathlib import Path

from api import queries
from api.settings import get_settings
from api.tenants import resolve_tenant, with_sources
from pipeline.ingest_sheets import FileCsvSource, HttpCsvSource, SourceUnavailable
from pipeline.sector_map import sector_name

OUT_DIR = Path(__file__).resolve().parent.parent / "data" / "processed"


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Build directory snapshots for one town")
    parser.add_argument("--town", help="town override (defaults to TOWN_NAME)")
    parser.add_argument("--hostname", help="resolve the town as if serving this host")
    parser.add_argument("--business-csv", type=Path, help="local business CSV instead of the published sheet")
    parser.add_argument("--emergency-csv", type=Path, help="local emergency-services CSV")
    parser.add_argument("--out", type=Path, default=OUT_DIR, help="output directory")
    return parser.parse_args(argv)


async def build(args: argparse.Namespace) -> dict[str, Path]:
    settings = get_settings()
    tenant = resolve_tenant(args.town or settings.town, args.hostname)
    tenant = with_sources(tenant, settings.business_csv_url, settings.emergency_csv_url)
    print(f"  [town] {tenant.town.name} ({tenant.slug})")

    if args.business_csv:
        paths = {tenant.sources.businesses: args.business_csv}
        if args.emergency_csv:
            paths[tenant.sources.emergency] = args.emergency_csv
        else:
            tenant = with_sources(tenant, tenant.sources.businesses, None)
        source = FileCsvSource(paths)
    else:
        source = HttpCsvSource(timeout=settings.http_timeout)

    businesses = await queries.load_businesses(tenant, source)
    emergency = await queries.load_emergency_services(tenant, source)

    args.out.mkdir(parents=True, exist_ok=True)
    written = {}
    for name, items in (("businesses", businesses), ("emergency", emergency)):
        dest = args.out / f"{tenant.slug}_{name}.json"
        dest.write_text(json.dumps([i.model_dump() for i in items], indent=2, ensure_ascii=False))
        print(f"  [write] {dest.name} ({len(items)} rows)")
        written[name] = dest

    counts = Counter(b.sector_id for b in businesses)
    for sector_id, n in counts.most_common():
        print(f"    {sector_name(sector_id):<28} {n:>4}")
    return written


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    t0 = time.time()

    print("=" * 60)
    print("Town Connect directory build")
    print("=" * 60)

    try:
        asyncio.run(build(args))
    except SourceUnavailable as e:
        print(f"  [error] {e}")
        return 1

    print(f"\nBuild complete in {time.time() - t0:.1f}s")
    return 0


if __name__ == "__main__":
    sys.exit(main())
