#!/usr/bin/env python3
"""Print the current score and display state from a running pose mirror server."""
from __future__ import annotations

import argparse
import json

import requests


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Fetch score and display state")
    parser.add_argument("--base-url", default="http://127.0.0.1:8000", help="Backend URL (default: %(default)s)")
    parser.add_argument("--capture", action="store_true", help="Trigger a reference capture before reading")
    return parser.parse_args()


def _get_data(resp: requests.Response) -> dict:
    resp.raise_for_status()
    body = resp.json()
    if not body.get("success", False):
        raise SystemExit(f"Backend error: {body}")
    return body["data"]


def main() -> None:
    args = parse_args()
    base = args.base_url.rstrip("/")
    if args.capture:
        print(json.dumps(_get_data(requests.post(f"{base}/controls/capture", timeout=10)), indent=2))
    out = {
        "score": _get_data(requests.get(f"{base}/score", timeout=10)).get("score"),
        "state": _get_data(requests.get(f"{base}/state", timeout=10)),
    }
    print(json.dumps(out, indent=2, ensure_ascii=False))


if __name__ == "__main__":
    main()
