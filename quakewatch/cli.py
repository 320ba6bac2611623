"""Command-line entry point: load earthquakes, detect swarms, print a report.

Examples:
  quakewatch --data-dir data/              Report from static snapshot files
  quakewatch --feed all_week               Report from the live USGS feed
  quakewatch --data-dir data/ --json       Summary as JSON
  quakewatch --data-dir data/ --region san-ramon --json
"""

import argparse
import dataclasses
import json
import logging
import os
import sys

from quakewatch.cache import DEFAULT_TTL, ResponseCache
from quakewatch.client import FEED_URLS, USGSFeedClient
from quakewatch.feed import load_snapshot_dir
from quakewatch.models import SwarmParams
from quakewatch.regions import region_ids
from quakewatch.report import generate_report
from quakewatch.stats import magnitude_histogram, region_stats, time_series
from quakewatch.summary import historical_summary, swarms_by_year

logger = logging.getLogger(__name__)

DEFAULT_CACHE = os.environ.get("QUAKEWATCH_CACHE", "data/feed-cache.db")


def _to_jsonable(obj):
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return dataclasses.asdict(obj)
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def build_parser():
    parser = argparse.ArgumentParser(
        prog="quakewatch",
        description="Bay Area earthquake swarm detection and statistics",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__.split("\n", 1)[1],
    )

    source = parser.add_argument_group("Data source")
    source.add_argument("--data-dir", help="Directory of GeoJSON snapshot files")
    source.add_argument("--feed", choices=sorted(FEED_URLS), help="Live USGS summary feed")
    source.add_argument("--cache", default=DEFAULT_CACHE, help=f"Feed cache path (default: {DEFAULT_CACHE})")
    source.add_argument("--cache-ttl", type=float, default=DEFAULT_TTL, help="Feed cache TTL in seconds")

    swarm = parser.add_argument_group("Swarm detection")
    defaults = SwarmParams()
    swarm.add_argument("--time-window-hours", type=float, default=defaults.time_window_hours)
    swarm.add_argument("--distance-km", type=float, default=defaults.distance_threshold_km)
    swarm.add_argument("--min-size", type=int, default=defaults.min_cluster_size)

    out = parser.add_argument_group("Output")
    out.add_argument("--region", choices=region_ids(), help="Region statistics and yearly swarms only")
    out.add_argument("--interval-days", type=float, default=1.0, help="Time series bucket width")
    out.add_argument("--json", action="store_true", help="Print JSON instead of Markdown")
    out.add_argument("--quiet", "-q", action="store_true", help="Minimal output")
    out.add_argument("--verbose", "-v", action="store_true", help="Verbose logging")
    return parser


def load_records(args):
    if args.data_dir:
        return load_snapshot_dir(args.data_dir)
    cache = ResponseCache(db_path=args.cache, ttl=args.cache_ttl)
    with USGSFeedClient(cache=cache) as client:
        return client.fetch_records(args.feed)


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s: %(message)s")
    elif not args.quiet:
        logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
    else:
        logging.basicConfig(level=logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)

    if not args.data_dir and not args.feed:
        parser.print_help()
        print("\nError: choose --data-dir or --feed.", file=sys.stderr)
        return 1

    try:
        params = SwarmParams(
            time_window_hours=args.time_window_hours,
            distance_threshold_km=args.distance_km,
            min_cluster_size=args.min_size,
        )
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    records = load_records(args)

    if args.region:
        result = {
            "stats": region_stats(records, args.region, params),
            "years": [
                {k: v for k, v in year.items() if k != "swarms"}
                for year in swarms_by_year(records, args.region, params)
            ],
        }
        print(json.dumps(result, default=_to_jsonable, indent=2))
        return 0

    summary = historical_summary(records, params)
    histogram = magnitude_histogram(records)

    if args.json:
        try:
            summary["time_series"] = time_series(records, args.interval_days)
        except ValueError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1
        summary["magnitude_histogram"] = histogram
        print(json.dumps(summary, default=_to_jsonable, indent=2))
    else:
        print(generate_report(summary, histogram, params))
    return 0


if __name__ == "__main__":
    sys.exit(main())
