"""
Report commit and pull request activity across every installation of a GitHub App.

Prints the summary and the detailed results, and writes both into the report
directory.
"""
import argparse
import json
import logging
import os
import sys
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from .config import ActivityConfig
from .models import ActivityReport
from .orchestrator import generate_github_report

# Load environment variables from .env
load_dotenv(override=True)


# -----------------------------
# Logging
# -----------------------------

def setup_logging(verbosity: int = 1, quiet: bool = False, level_name: Optional[str] = None):
    if quiet:
        verbosity = 0
    level = logging.INFO
    if level_name:
        level = getattr(logging, str(level_name).upper(), logging.INFO)
    else:
        if verbosity > 1:
            level = logging.DEBUG
        elif verbosity == 0:
            level = logging.WARNING
    for h in logging.root.handlers[:]:
        logging.root.removeHandler(h)
    handlers = [logging.StreamHandler(sys.stderr)]
    try:
        os.makedirs('logs', exist_ok=True)
        handlers.append(logging.FileHandler('logs/activity_report.log'))
    except OSError as e:
        print(f"Could not open logs/activity_report.log: {e}", file=sys.stderr)
    logging.basicConfig(
        level=level,
        format='%(asctime)s | %(levelname)-8s | %(message)s',
        handlers=handlers,
    )


# -----------------------------
# Output
# -----------------------------

def write_report(report: ActivityReport, output_dir: Path) -> None:
    output_dir.mkdir(parents=True, exist_ok=True)
    summary_path = output_dir / "activity_summary.txt"
    details_path = output_dir / "activity_details.json"
    summary_path.write_text(report.summary + "\n", encoding="utf-8")
    with open(details_path, "w", encoding="utf-8") as f:
        json.dump(report.to_dict()["detailed_results"], f, indent=2, ensure_ascii=False)
    logging.info(f"Summary written: {summary_path}")
    logging.info(f"Details written: {details_path}")


def print_report(report: ActivityReport) -> None:
    print("\n--- SUMMARY ---\n")
    print(report.summary)
    print("\n--- DETAILS ---\n")
    print(json.dumps(report.to_dict()["detailed_results"], indent=2, ensure_ascii=False))


# -----------------------------
# CLI
# -----------------------------

def parse_args(argv=None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Report contributor activity across GitHub App installations")
    p.add_argument("--app-id", type=str, help="GitHub App id (or set GITHUB_APP_ID)")
    p.add_argument("--private-key-path", type=str, help="Path to the GitHub App private key (or set GITHUB_PRIVATE_KEY_PATH)")
    p.add_argument("--days", type=int, help="Lookback window in days (default: DAYS_TO_LOOK_BACK or 7)")
    p.add_argument("--api-base", type=str, help="GitHub API base (default: GITHUB_API or https://api.github.com)")
    p.add_argument("--output-dir", type=str, help="Output directory (default: REPORT_DIR or activity_reports)")
    p.add_argument("--no-write", action="store_true", help="Only print the report, do not write files")
    # logging
    p.add_argument("-v", "--verbose", action="count", default=1, help="Increase verbosity (repeatable)")
    p.add_argument("-q", "--quiet", action="store_true", help="Suppress output")
    p.add_argument("--loglevel", choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], help="Explicit log level")
    return p.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    setup_logging(verbosity=args.verbose, quiet=args.quiet, level_name=args.loglevel)

    try:
        config = ActivityConfig(
            app_id=args.app_id,
            private_key_path=args.private_key_path,
            days_to_look_back=args.days,
            api_base=args.api_base,
            report_dir=args.output_dir,
        )
        private_key = config.load_private_key()
    except (ValueError, OSError) as e:
        logging.error(str(e))
        return 1

    report = generate_github_report(
        config.APP_ID,
        private_key,
        config.DAYS_TO_LOOK_BACK,
        api_base=config.GITHUB_API,
    )

    print_report(report)
    if not args.no_write:
        write_report(report, Path(config.REPORT_DIR))

    logging.info("Report completed!")
    return 0


def run() -> None:
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        logging.info("Report interrupted by user")
        sys.exit(1)
    except Exception as e:
        logging.error(f"Unexpected error: {e}")
        if logging.getLogger().getEffectiveLevel() <= logging.DEBUG:
            import traceback
            traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    run()
