# ASCII-only. No ellipses.

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

import httplib2
from google.auth.exceptions import TransportError
from googleapiclient.errors import HttpError

from .model import Video
from .util import parse_rfc3339


# 403 reasons that mean "slow down", not "you may not".
RATE_LIMIT_REASONS = {
    "rateLimitExceeded",
    "userRateLimitExceeded",
    "quotaExceeded",
    "dailyLimitExceeded",
}


class ChannelNotFound(RuntimeError):
    pass


def youtube_err_text(exc: Exception) -> str:
    try:
        content = getattr(exc, "content", None)
        if content:
            if isinstance(content, (bytes, bytearray)):
                return content.decode("utf-8", errors="replace")
            return str(content)
    except Exception:
        pass
    return str(exc)


def http_error_reasons(exc: HttpError) -> List[str]:
    try:
        j = json.loads(youtube_err_text(exc))
    except ValueError:
        return []
    err = j.get("error") if isinstance(j, dict) else None
    if not isinstance(err, dict):
        return []
    out: List[str] = []
    for e in err.get("errors") or []:
        if isinstance(e, dict) and e.get("reason"):
            out.append(str(e["reason"]))
    return out


def is_transient(exc: BaseException) -> bool:
    """True for failures worth waiting out: network trouble, 5xx, rate limits."""
    if isinstance(exc, HttpError):
        status = int(getattr(exc.resp, "status", 0) or 0)
        if status == 429 or status >= 500:
            return True
        if status == 403:
            return bool(RATE_LIMIT_REASONS.intersection(http_error_reasons(exc)))
        return False
    return isinstance(exc, (httplib2.HttpLib2Error, TransportError, OSError))


def youtube_url(video_id: str) -> str:
    return "https://www.youtube.com/watch?v=%s" % video_id


def get_uploads_playlist_id(service: Any, channel_id: str) -> str:
    resp = service.channels().list(part="contentDetails", id=channel_id).execute()
    items = resp.get("items") or []
    if not items:
        raise ChannelNotFound("channel not found: %s" % channel_id)
    details = items[0].get("contentDetails") or {}
    pid = str((details.get("relatedPlaylists") or {}).get("uploads") or "").strip()
    if not pid:
        raise ChannelNotFound("channel has no uploads playlist: %s" % channel_id)
    return pid


def _video_from_item(item: Dict[str, Any]) -> Optional[Video]:
    snippet = item.get("snippet") or {}
    details = item.get("contentDetails") or {}
    vid = str(details.get("videoId") or (snippet.get("resourceId") or {}).get("videoId") or "").strip()
    if not vid:
        return None
    # publishedAt on a playlist item is when it was added; prefer the video's own time.
    published = str(details.get("videoPublishedAt") or snippet.get("publishedAt") or "").strip()
    if not published:
        return None
    return Video(
        video_id=vid,
        published_at=parse_rfc3339(published),
        title=str(snippet.get("title") or ""),
        description=str(snippet.get("description") or ""),
    )


def get_latest_upload(service: Any, playlist_id: str) -> Optional[Video]:
    resp = service.playlistItems().list(
        part="snippet,contentDetails",
        playlistId=playlist_id,
        maxResults=1,
    ).execute()
    items = resp.get("items") or []
    if not items:
        return None
    return _video_from_item(items[0])


def insert_comment(service: Any, video_id: str, text: str) -> str:
    body = {
        "snippet": {
            "videoId": video_id,
            "topLevelComment": {
                "snippet": {
                    "textOriginal": text,
                }
            },
        }
    }
    resp = service.commentThreads().insert(part="snippet", body=body).execute()
    return str(resp.get("id") or "")
