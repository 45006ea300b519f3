#!/usr/bin/env python3
"""Print the recovery-adjusted default-rate report for a loan CSV.

Usage:
    python scripts/default_rate_report.py loans.csv
    python scripts/default_rate_report.py loans.csv --recovery 0.05 0.08 0.11
    python scripts/default_rate_report.py loans.csv --out report.xlsx
    python scripts/default_rate_report.py loans.csv --out report_dir/

An ``.xlsx`` output gets one sheet per table; any other ``--out`` path is
treated as a directory of CSVs.
"""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

import pandas as pd

from p2p_risk.config import settings
from p2p_risk.errors import ValidationError
from p2p_risk.models.report import LoanReport
from p2p_risk.services.record_loader import load_loan_csv
from p2p_risk.services.report_service import build_report

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(message)s", datefmt="%H:%M:%S")
logger = logging.getLogger(__name__)


def report_tables(report: LoanReport) -> dict[str, pd.DataFrame]:
    """Flat tables keyed by sheet name, rating as the row key."""
    def frame(rows) -> pd.DataFrame:
        df = pd.DataFrame([row.model_dump(mode="json") for row in rows])
        return df.set_index("rating") if "rating" in df.columns else df

    return {
        "status_counts": frame(report.status_counts),
        "frequencies": frame(report.segment_frequencies),
        "adjusted_rates": frame(report.adjusted_rates),
        "rate_comparison": frame(report.rate_comparison),
        "numeric_summary": frame(report.numeric_summary).set_index("field"),
        "default_reasons": pd.Series(report.default_reasons, name="count").to_frame(),
    }


def write_tables(tables: dict[str, pd.DataFrame], out: Path) -> None:
    if out.suffix.lower() == ".xlsx":
        with pd.ExcelWriter(out, engine="openpyxl") as writer:
            for name, df in tables.items():
                df.to_excel(writer, sheet_name=name)
    else:
        out.mkdir(parents=True, exist_ok=True)
        for name, df in tables.items():
            df.to_csv(out / f"{name}.csv")
    logger.info("Wrote %s", out)


def print_report(report: LoanReport, tables: dict[str, pd.DataFrame]) -> None:
    load = report.load
    if load is not None:
        print(f"{'='*60}")
        print(f" LOAD ({load.n_loaded} of {load.n_rows} rows)")
        print(f"{'='*60}")
        print(f"  Rejected:   {load.n_rejected}")
        print(f"  Duplicates: {load.n_duplicates}")
        for err in load.errors:
            print(f"  row {err.row}: {err.message}")
        print()

    low, mid, high = report.recovery_rate_bounds.as_tuple()
    titles = {
        "status_counts": "STATUS COUNTS",
        "frequencies": "TERMINAL OUTCOME FREQUENCIES",
        "adjusted_rates": f"ADJUSTED RATES (recovery {low:.1%} / {mid:.1%} / {high:.1%})",
        "rate_comparison": f"REWARD vs RISK (threshold {report.mismatch_threshold})",
        "numeric_summary": "NUMERIC FIELDS",
        "default_reasons": "DEFAULT REASONS",
    }
    for name, title in titles.items():
        print(f"{'='*60}")
        print(f" {title}")
        print(f"{'='*60}")
        print(tables[name].to_string())
        print()

    if report.insufficient_data:
        print("Insufficient data: " + ", ".join(r.value for r in report.insufficient_data))
    if report.mismatches:
        print("Mismatch candidates: " + ", ".join(r.value for r in report.mismatches))


def main():
    parser = argparse.ArgumentParser(description="Recovery-adjusted default-rate report")
    parser.add_argument("csv", help="Path to the loan CSV")
    parser.add_argument(
        "--recovery", nargs=3, type=float, metavar=("LOW", "MID", "HIGH"),
        help="Recovery rate bounds (default: from settings)",
    )
    parser.add_argument(
        "--mismatch-threshold", type=int, default=None,
        help=f"Rank gap needed to flag a mismatch (default: {settings.MISMATCH_THRESHOLD})",
    )
    parser.add_argument("--out", help="Write tables to an .xlsx workbook or a CSV directory")
    args = parser.parse_args()

    path = Path(args.csv)
    if not path.is_file():
        logger.error("CSV not found: %s", path)
        sys.exit(1)

    logger.info("Loading %s", path)
    try:
        with path.open("rb") as fh:
            load_result = load_loan_csv(fh, path.name)
    except ValueError as e:
        logger.error("Cannot load %s: %s", path, e)
        sys.exit(1)

    try:
        report = build_report(load_result, args.recovery, args.mismatch_threshold)
    except ValidationError as e:
        logger.error("Invalid configuration: %s", e)
        sys.exit(2)

    tables = report_tables(report)
    print_report(report, tables)
    if args.out:
        write_tables(tables, Path(args.out))


if __name__ == "__main__":
    main()
