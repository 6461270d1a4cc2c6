"""
Run the trend alert check once.

Intended for cron or any scheduler that can run a command:

    python scripts/check_trend_alerts.py
    python scripts/check_trend_alerts.py --all   # ignore alert frequency

Exits 1 if any favorite failed to check.
"""

import argparse
import sys
from pathlib import Path

# Add backend to path
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

from services.alert_service import AlertService, get_alert_service


def main():
    parser = argparse.ArgumentParser(
        description="Check favorites with alerts enabled and email owners about big changes."
    )
    parser.add_argument(
        "--all",
        action="store_true",
        help="Check every monitored favorite, even if checked within its alert frequency",
    )
    args = parser.parse_args()

    service = AlertService(honor_frequency=False) if args.all else get_alert_service()
    summary = service.check_alerts()

    print(
        f"Checked {summary.checked} favorites: "
        f"{summary.alerts_sent} alerts, {summary.failed} failed, {summary.skipped} skipped"
    )
    for result in summary.results:
        if result.error:
            print(f"  FAILED {result.term} ({result.geo or 'worldwide'}): {result.error}")

    sys.exit(1 if summary.failed else 0)


if __name__ == "__main__":
    main()
