#!/usr/bin/env python3
"""
Run one AWS What's New check from the command line.

Usage: python check_feed.py

Reads the same environment as the Lambda function (DISCORD_WEBHOOK_URL,
THREAD_ID, FRESHNESS_WINDOW_MINUTES, ...) and performs the same run the
scheduler triggers.
"""

import json
import sys

from src.lambda_handler import lambda_handler


def main() -> int:
    result = lambda_handler({"source": "manual"}, None)
    print(json.dumps(json.loads(result["body"]), indent=2, ensure_ascii=False))
    return 0 if result["statusCode"] == 200 else 1


if __name__ == "__main__":
    sys.exit(main())
