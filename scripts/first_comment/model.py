# ASCII-only. No ellipses.

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional


DEFAULT_POLL_INTERVAL = 60


@dataclass(frozen=True)
class PollConfig:
    client_id: str
    client_secret: str
    channel_id: str
    comment: str
    token_path: Path
    poll_interval: int = DEFAULT_POLL_INTERVAL
    wait_limit_min: Optional[float] = None
    skip_shorts: bool = False
    open_browser: bool = True


@dataclass(frozen=True)
class Video:
    video_id: str
    published_at: datetime
    title: str = ""
    description: str = ""

    def is_short(self) -> bool:
        return "#shorts" in (self.description or "")


@dataclass
class RunState:
    started_at: datetime
    uploads_playlist_id: Optional[str] = None
    last_seen_video_id: Optional[str] = None
    ticks: int = 0

    def is_new(self, video: Video) -> bool:
        # Strictly after the run start; equal timestamps are not new.
        return video.published_at > self.started_at
