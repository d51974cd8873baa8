#!/usr/bin/env python3
"""Run the LetBabyTalk server locally.

Usage:
    python server/run.py                 # settings from LETBABYTALK_* / .env
    python server/run.py --port 8000 --reload
"""

import argparse
import sys
from pathlib import Path

# Ensure project root is on path
project_root = str(Path(__file__).resolve().parent.parent)
if project_root not in sys.path:
    sys.path.insert(0, project_root)

import uvicorn  # noqa: E402

from server.app import config  # noqa: E402


def main():
    parser = argparse.ArgumentParser(description="LetBabyTalk API server")
    parser.add_argument("--host", default=config.HOST)
    parser.add_argument("--port", type=int, default=config.PORT)
    parser.add_argument("--workers", type=int, default=config.WORKERS)
    parser.add_argument("--reload", action="store_true", default=config.DEBUG,
                        help="Auto-reload on code changes (single worker)")
    args = parser.parse_args()

    uvicorn.run(
        "server.app.main:app",
        host=args.host,
        port=args.port,
        workers=1 if args.reload else args.workers,
        reload=args.reload,
    )


if __name__ == "__main__":
    main()
