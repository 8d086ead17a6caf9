"""
Poll the API until an uploaded file is visible in the bucket.
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from schoolfund.client import FileStatusPoller, SchoolFundClient
from shared.constants import DEFAULT_POLL_INTERVAL_SECONDS

logger = logging.getLogger(__name__)


def main() -> int:
    parser = argparse.ArgumentParser(description="Wait for an uploaded file")
    parser.add_argument("file_url", help="Public URL (or key) of the uploaded file")
    parser.add_argument(
        "--api-url",
        type=str,
        default=os.environ.get("SCHOOLFUND_API_URL", "http://localhost:5000/api"),
        help="Base URL of the API, including the /api prefix",
    )
    parser.add_argument(
        "--token",
        type=str,
        default=os.environ.get("SCHOOLFUND_TOKEN"),
        help="Bearer token (optional for status checks)",
    )
    parser.add_argument(
        "--interval-seconds",
        type=float,
        default=DEFAULT_POLL_INTERVAL_SECONDS,
        help="Seconds between status checks",
    )
    parser.add_argument(
        "--timeout-seconds",
        type=float,
        default=300.0,
        help="Give up after this many seconds (0 waits forever)",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(name)s %(levelname)s %(asctime)s %(message)s",
        datefmt="%m/%d/%Y %I:%M:%S %p",
    )

    client = SchoolFundClient(args.api_url, token=args.token)
    poller = FileStatusPoller(
        client,
        args.file_url,
        interval=args.interval_seconds,
        on_status=lambda status: logger.info("exists=%s", status.get("exists")),
    )
    try:
        found = poller.wait_until_exists(args.timeout_seconds or None)
    except KeyboardInterrupt:
        logger.info("Interrupted")
        found = False
    finally:
        poller.stop()

    if not found:
        logger.error("File not available: %s", poller.error or args.file_url)
        return 1
    print(json.dumps(poller.status, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
