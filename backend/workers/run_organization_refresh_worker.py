import argparse

from common.workers.launcher import WorkerLauncher
from packages.organizations.workers.organization_refresh_worker import (
    OrganizationRefreshWorker,
)


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Organization refresh worker")
    parser.add_argument(
        "--concurrency",
        type=int,
        default=4,
        help="Messages processed concurrently (prefetch count)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
    )
    return parser.parse_args(argv)


if __name__ == "__main__":
    args = parse_args()
    WorkerLauncher().run(
        worker_factory=OrganizationRefreshWorker,
        worker_name="Organization Refresh Worker",
        log_level=args.log_level,
        factory_kwargs={"max_concurrent_messages": args.concurrency},
    )
