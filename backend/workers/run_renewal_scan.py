"""
Daily renewal scan entry point. Meant to be run once a day by cron or a
scheduler; re-running it is safe.

    python -m workers.run_renewal_scan [--now 2026-01-01T00:00:00+00:00]
"""

import argparse
import sys
from datetime import datetime

from common.workers.launcher import WorkerLauncher
from packages.entitlements.services.renewal_scan_service import RenewalScanService


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the daily renewal scan")
    parser.add_argument(
        "--now",
        type=datetime.fromisoformat,
        default=None,
        help="Treat this ISO-8601 timestamp as the current time",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
    )
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)

    async def job():
        service = RenewalScanService()
        await service.lock_provider.connect()
        try:
            return await service.run_daily_renewal_scan(args.now)
        finally:
            await service.lock_provider.disconnect()

    result = WorkerLauncher().run_once(job, "Renewal Scan", log_level=args.log_level)
    return 1 if result.failed_invoice_ids else 0


if __name__ == "__main__":
    sys.exit(main())
