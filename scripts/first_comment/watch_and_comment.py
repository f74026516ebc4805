#!/usr/bin/env python3
# ASCII-only. No ellipses.

"""Wait for a channel's next upload and post one comment on it.

Usage:
  python -m scripts.first_comment.watch_and_comment \
      --client-id ID --client-secret SECRET \
      --channel-id UC... --comment "First!"
"""

from __future__ import annotations

import argparse
import os
import sys
import time
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, List, Optional

from .model import DEFAULT_POLL_INTERVAL, PollConfig, RunState, Video
from .util import format_duration, utc_now
from .youtube_auth import AuthError, acquire, build_service, token_cache_path
from .youtube_helpers import (
    ChannelNotFound,
    get_latest_upload,
    get_uploads_playlist_id,
    insert_comment,
    is_transient,
    youtube_err_text,
    youtube_url,
)


class ConfigError(ValueError):
    pass


class PollError(RuntimeError):
    pass


class CommentError(RuntimeError):
    pass


def _one_line(exc: BaseException) -> str:
    return youtube_err_text(exc).replace("\n", " ")


def _latest(service: Any, config: PollConfig, state: RunState) -> Optional[Video]:
    """One poll: resolve the uploads playlist (once per run) and fetch its newest item.

    Transient failures return None; anything else raises PollError.
    """
    try:
        if not state.uploads_playlist_id:
            state.uploads_playlist_id = get_uploads_playlist_id(service, config.channel_id)
            print("[poll] channel=%s uploads_playlist=%s" % (config.channel_id, state.uploads_playlist_id))
        return get_latest_upload(service, state.uploads_playlist_id)
    except ChannelNotFound:
        raise
    except Exception as e:
        if is_transient(e):
            print("[poll][warn] tick=%d transient_error=%s err=%s" % (state.ticks, type(e).__name__, _one_line(e)), file=sys.stderr)
            return None
        raise PollError("listing uploads failed: %s" % _one_line(e)) from e


def _wait_limit_reached(config: PollConfig, state: RunState, now: Callable[[], datetime]) -> bool:
    if config.wait_limit_min is None:
        return False
    elapsed_min = (now() - state.started_at).total_seconds() / 60.0
    return elapsed_min >= config.wait_limit_min


def run(
    service: Any,
    config: PollConfig,
    *,
    now: Callable[[], datetime] = utc_now,
    sleep: Callable[[float], Any] = time.sleep,
) -> int:
    """Poll until a video newer than the start of this call appears, then comment once.

    Returns 0 after the comment is posted, or 1 when the optional wait limit
    runs out. Raises CommentError if the insert fails (never retried), and
    PollError or ChannelNotFound for failures that polling cannot recover from.
    """
    state = RunState(started_at=now())
    print("[poll] start channel=%s interval=%ds started_at=%s" % (
        config.channel_id, config.poll_interval, state.started_at.isoformat()
    ))

    while True:
        state.ticks += 1
        video = _latest(service, config, state)

        if video is not None:
            eligible = state.is_new(video)
            if video.video_id != state.last_seen_video_id:
                print("[poll] tick=%d latest=%s published_at=%s eligible=%s" % (
                    state.ticks, video.video_id, video.published_at.isoformat(), "true" if eligible else "false"
                ))
                state.last_seen_video_id = video.video_id

            if eligible and config.skip_shorts and video.is_short():
                print("[poll] tick=%d skip=short video_id=%s" % (state.ticks, video.video_id))
            elif eligible:
                print("[comment] posting video_id=%s title=%s" % (video.video_id, video.title))
                try:
                    thread_id = insert_comment(service, video.video_id, config.comment)
                except Exception as e:
                    raise CommentError("failed to post comment on %s: %s" % (video.video_id, _one_line(e))) from e
                print("[comment] ok video_id=%s thread_id=%s url=%s" % (video.video_id, thread_id, youtube_url(video.video_id)))
                print("[poll] elapsed=%s ticks=%d" % (
                    format_duration(int((now() - state.started_at).total_seconds())), state.ticks
                ))
                return 0

        sleep(config.poll_interval)

        if _wait_limit_reached(config, state, now):
            print("[poll] wait_limit_reached minutes=%s ticks=%d" % (config.wait_limit_min, state.ticks), file=sys.stderr)
            print("[poll] elapsed=%s" % format_duration(int((now() - state.started_at).total_seconds())))
            return 1


def _env(name: str) -> str:
    return os.environ.get(name, "").strip()


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="yfc",
        description="Post a comment on the next video a YouTube channel publishes.",
    )
    ap.add_argument("--client-id", "--google-client-id", dest="client_id", default=_env("YOUTUBE_CLIENT_ID"),
                    help="Google OAuth client id (env YOUTUBE_CLIENT_ID).")
    ap.add_argument("--client-secret", "--google-client-secret", dest="client_secret",
                    default=_env("YOUTUBE_CLIENT_SECRET"),
                    help="Google OAuth client secret (env YOUTUBE_CLIENT_SECRET).")
    ap.add_argument("--comment", default=_env("YFC_COMMENT"), help="The comment body (env YFC_COMMENT).")
    ap.add_argument("--channel-id", default=_env("YFC_CHANNEL_ID"), help="YouTube channel id (env YFC_CHANNEL_ID).")
    ap.add_argument("--poll-interval", "--pool-interval", dest="poll_interval",
                    default=_env("YFC_POLL_INTERVAL") or str(DEFAULT_POLL_INTERVAL),
                    help="Seconds between polls (default 60).")
    ap.add_argument("--wait-limit", default=_env("YFC_WAIT_LIMIT"),
                    help="Give up after this many minutes (default: wait forever).")
    ap.add_argument("--skip-shorts", action="store_true", help="Ignore uploads tagged #shorts.")
    ap.add_argument("--token-path", default="", help="Token cache file (default: user config dir/yfc/token.json).")
    ap.add_argument("--no-browser", action="store_true", help="Print the authorization URL instead of opening a browser.")
    return ap


def config_from_args(args: argparse.Namespace) -> PollConfig:
    missing: List[str] = []
    for flag, value in (
        ("--client-id", args.client_id),
        ("--client-secret", args.client_secret),
        ("--comment", args.comment),
        ("--channel-id", args.channel_id),
    ):
        if not str(value or "").strip():
            missing.append(flag)
    if missing:
        raise ConfigError("missing required arguments: %s" % ", ".join(missing))

    try:
        interval = int(str(args.poll_interval).strip())
    except ValueError:
        raise ConfigError("poll-interval must be an integer number of seconds")
    if interval <= 0:
        raise ConfigError("poll-interval must be > 0")

    wait_limit: Optional[float] = None
    wl = str(args.wait_limit or "").strip()
    if wl:
        try:
            wait_limit = float(wl)
        except ValueError:
            raise ConfigError("wait-limit must be a number of minutes")
        if wait_limit <= 0:
            raise ConfigError("wait-limit must be > 0")

    tp = str(args.token_path or "").strip()
    return PollConfig(
        client_id=str(args.client_id).strip(),
        client_secret=str(args.client_secret).strip(),
        channel_id=str(args.channel_id).strip(),
        comment=str(args.comment),
        token_path=Path(tp).expanduser() if tp else token_cache_path(),
        poll_interval=interval,
        wait_limit_min=wait_limit,
        skip_shorts=bool(args.skip_shorts),
        open_browser=not args.no_browser,
    )


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        config = config_from_args(args)
    except ConfigError as e:
        print("yfc: %s" % e, file=sys.stderr)
        return 2

    try:
        creds = acquire(config.client_id, config.client_secret, config.token_path, open_browser=config.open_browser)
        service = build_service(creds)
        return run(service, config)
    except AuthError as e:
        print("[auth][error] %s" % e, file=sys.stderr)
        return 1
    except CommentError as e:
        print("[comment][error] %s" % e, file=sys.stderr)
        return 1
    except (PollError, ChannelNotFound) as e:
        print("[poll][error] %s" % e, file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("[poll] interrupted", file=sys.stderr)
        return 130


if __name__ == "__main__":
    raise SystemExit(main())
