from __future__ import annotations

import json
import socket
from datetime import datetime, timezone
from unittest.mock import MagicMock

import httplib2
import pytest
from googleapiclient.errors import HttpError

from scripts.first_comment.youtube_helpers import (
    ChannelNotFound,
    get_latest_upload,
    get_uploads_playlist_id,
    insert_comment,
    is_transient,
    youtube_err_text,
)


def http_error(status: int, reason: str = "") -> HttpError:
    body = {"error": {"code": status, "message": reason or "boom", "errors": [{"reason": reason}] if reason else []}}
    return HttpError(httplib2.Response({"status": str(status)}), json.dumps(body).encode("utf-8"))


def test_transient_classification():
    assert is_transient(http_error(503))
    assert is_transient(http_error(429))
    assert is_transient(http_error(403, "quotaExceeded"))
    assert is_transient(socket.timeout("timed out"))
    assert is_transient(httplib2.ServerNotFoundError("dns"))
    assert not is_transient(http_error(403, "forbidden"))
    assert not is_transient(http_error(401))
    assert not is_transient(ValueError("nope"))


def test_err_text_prefers_response_body():
    assert "quotaExceeded" in youtube_err_text(http_error(403, "quotaExceeded"))
    assert youtube_err_text(RuntimeError("plain")) == "plain"


def test_uploads_playlist_lookup():
    service = MagicMock()
    service.channels.return_value.list.return_value.execute.return_value = {
        "items": [{"contentDetails": {"relatedPlaylists": {"uploads": "UUabc"}}}]
    }
    assert get_uploads_playlist_id(service, "UCabc") == "UUabc"
    service.channels.return_value.list.assert_called_once_with(part="contentDetails", id="UCabc")


def test_unknown_channel_raises():
    service = MagicMock()
    service.channels.return_value.list.return_value.execute.return_value = {"items": []}
    with pytest.raises(ChannelNotFound):
        get_uploads_playlist_id(service, "UCnope")


def test_latest_upload_prefers_video_published_at():
    service = MagicMock()
    service.playlistItems.return_value.list.return_value.execute.return_value = {
        "items": [{
            "snippet": {
                "title": "New one",
                "description": "hello #shorts",
                "publishedAt": "2024-05-01T12:00:10Z",
                "resourceId": {"kind": "youtube#video", "videoId": "vid1"},
            },
            "contentDetails": {"videoId": "vid1", "videoPublishedAt": "2024-05-01T12:00:03Z"},
        }]
    }
    v = get_latest_upload(service, "UUabc")
    assert v is not None
    assert v.video_id == "vid1"
    assert v.published_at == datetime(2024, 5, 1, 12, 0, 3, tzinfo=timezone.utc)
    assert v.is_short()
    kwargs = service.playlistItems.return_value.list.call_args.kwargs
    assert kwargs["playlistId"] == "UUabc"
    assert kwargs["maxResults"] == 1


def test_latest_upload_empty_playlist():
    service = MagicMock()
    service.playlistItems.return_value.list.return_value.execute.return_value = {"items": []}
    assert get_latest_upload(service, "UUabc") is None


def test_insert_comment_body():
    service = MagicMock()
    service.commentThreads.return_value.insert.return_value.execute.return_value = {"id": "thread9"}
    assert insert_comment(service, "vid1", "First!") == "thread9"
    kwargs = service.commentThreads.return_value.insert.call_args.kwargs
    assert kwargs["part"] == "snippet"
    snippet = kwargs["body"]["snippet"]
    assert snippet["videoId"] == "vid1"
    assert snippet["topLevelComment"]["snippet"]["textOriginal"] == "First!"
