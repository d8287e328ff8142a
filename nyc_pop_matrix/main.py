"""
NYC population matrix: classify IPUMS ACS person records by sex, age,
race/ethnicity and disability, and publish weighted population shares.

Writes two wide CSV tables and prints marginal fact checks for comparison
with Census Reporter and published disability statistics.
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import List, Optional

import pandas as pd

from .config import DEFAULT_SEP, DEFAULT_SOURCE, NYC_CITY_CODE
from .data_manager import write_matrices
from .pipeline import DataUnavailable, run_pipeline
from .plotting import create_matrix_plot

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="nyc-pop-matrix",
        description=(
            "Build sex x age x race (x disability) population share matrices "
            "from IPUMS ACS microdata for one city."
        ),
    )
    parser.add_argument(
        "--source",
        default=DEFAULT_SOURCE,
        help=f"Path to the IPUMS extract (default: {DEFAULT_SOURCE}).",
    )
    parser.add_argument(
        "--sep",
        default=DEFAULT_SEP,
        help=f"Delimiter used in the source file (default: '{DEFAULT_SEP}').",
    )
    parser.add_argument(
        "--city",
        type=int,
        default=NYC_CITY_CODE,
        help=f"IPUMS CITY code to keep (default: {NYC_CITY_CODE}, New York).",
    )
    parser.add_argument(
        "--output-dir",
        default=".",
        help="Directory for the output CSV files (default: current directory).",
    )
    parser.add_argument(
        "--include-unclassified",
        action="store_true",
        help="Add an 'Unclassified' race/ethnicity column to both tables.",
    )
    parser.add_argument(
        "--plot",
        default=None,
        metavar="PATH",
        help="Also write an HTML chart of the sex x age x race shares.",
    )
    parser.add_argument(
        "--verbose", action="store_true", help="Enable debug logging."
    )
    return parser.parse_args(argv)


def print_fact_checks(checks: dict) -> None:
    """Print the marginal aggregates for manual cross-checking."""
    print("\n--- FACT CHECKS ---")
    print(f"Total population estimate: {checks['total_pop_est']:,.0f}")
    for key in ("age_band", "sex", "race_group", "has_disability"):
        print(f"\nShare by {key} (%):")
        print(checks[key].to_string(index=False))


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    try:
        payload = run_pipeline(
            source=args.source,
            sep=args.sep,
            city_code=args.city,
            include_unclassified=args.include_unclassified,
        )
    except DataUnavailable as exc:
        logger.error("Aborting, no outputs written: %s", exc)
        return 1

    paths = write_matrices(payload, args.output_dir)

    if args.plot:
        plot_path = Path(args.plot)
        plot_path.parent.mkdir(parents=True, exist_ok=True)
        create_matrix_plot(payload["sex_age_race_long"]).write_html(plot_path)
        logger.info("Wrote %s", plot_path)

    print("\n--- POPULATION MATRICES COMPLETE ---")
    print(
        f"CITY {payload['city_code']} | Records: {len(payload['records'])} | "
        f"Table A rows: {len(payload['sex_age_race_wide'])} | "
        f"Table B rows: {len(payload['sex_age_race_dis_wide'])}"
    )
    print(f"\nSaved outputs to {Path(args.output_dir)}/:")
    for path in paths.values():
        print(f"  - {path.name}")

    with pd.option_context("display.precision", 4):
        print_fact_checks(payload["fact_checks"])
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
