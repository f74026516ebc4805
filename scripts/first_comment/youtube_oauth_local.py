#!/usr/bin/env python3
# ASCII-only. No ellipses.

from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path
from typing import List, Optional

from .youtube_auth import AuthError, acquire, token_cache_path


def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(description="Authorize yfc once and cache the token.")
    ap.add_argument("--client-id", default=os.environ.get("YOUTUBE_CLIENT_ID", ""))
    ap.add_argument("--client-secret", default=os.environ.get("YOUTUBE_CLIENT_SECRET", ""))
    ap.add_argument("--token-path", default="")
    ap.add_argument("--no-browser", action="store_true")
    args = ap.parse_args(argv)

    client_id = str(args.client_id or "").strip()
    client_secret = str(args.client_secret or "").strip()
    if not client_id or not client_secret:
        print("--client-id and --client-secret are required", file=sys.stderr)
        return 2

    tp = str(args.token_path or "").strip()
    token_path = Path(tp).expanduser() if tp else token_cache_path()

    try:
        creds = acquire(client_id, client_secret, token_path, open_browser=not args.no_browser)
    except AuthError as e:
        print(str(e), file=sys.stderr)
        return 1

    if not creds.refresh_token:
        print("No refresh token returned. Revoke access and run again so the consent prompt is shown.", file=sys.stderr)
    print("Token cached at %s" % token_path)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
