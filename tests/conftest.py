from __future__ import annotations

import os
import sys
import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Dict, List, Optional

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# Keep import-time directories out of the working tree.
os.environ.setdefault("TRACKER_DATA_DIR", tempfile.mkdtemp(prefix="tracker-tests-"))

from tracker import config, store, youtube  # noqa: E402

CURSOR_FORMAT = "%Y-%m-%dT%H:%M:%SZ"
BASE_TIME = datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakeResponse:
    def __init__(self, payload, status_code: int = 200, text: Optional[str] = None):
        self._payload = payload
        self.status_code = status_code
        self.reason = "OK" if status_code < 400 else "Error"
        self.text = text if text is not None else ""

    def json(self):
        if self._payload is None:
            raise ValueError("No JSON object could be decoded")
        return self._payload


def quota_error() -> Dict:
    return {
        "error": {
            "code": 403,
            "message": "The request cannot be completed because you have exceeded your quota.",
            "errors": [{"reason": "quotaExceeded", "domain": "youtube.quota", "message": "quota"}],
        }
    }


def api_error(code: int = 400, reason: str = "badRequest") -> Dict:
    return {"error": {"code": code, "message": f"{reason} happened", "errors": [{"reason": reason}]}}


class FakeYouTube:
    """Scripted stand-in for the YouTube Data API, installed over ``requests.get``.

    ``videos`` is the channel's upload list; search.list honours ``publishedBefore``
    and ``maxResults`` the way the real endpoint does. ``exhausted`` holds key codes
    that always get a quota error; ``scripted`` queues raw responses per endpoint
    that are served before the simulated behaviour, and ``fail_at`` replaces the
    response of the n-th call (1-based, across endpoints). The ``timeout`` of every
    call is kept in ``timeouts``.
    """

    def __init__(self):
        self.calls: List[tuple] = []
        self.timeouts: List = []
        self.videos: List[Dict] = []
        self.channel: Optional[Dict] = None
        self.exhausted = set()
        self.scripted: Dict[str, List] = {}
        self.endless_search = False
        self.fail_at: Dict[int, FakeResponse] = {}

    # data builders

    def set_channel(self, youtube_channel_id="UCtest", title="Test Channel", **stats):
        self.channel = {
            "id": youtube_channel_id,
            "snippet": {
                "title": title,
                "description": "About the channel",
                "publishedAt": "2015-01-01T00:00:00Z",
                "thumbnails": {"default": {"url": "https://img.example/ch.jpg"}},
            },
            "statistics": {
                "videoCount": str(stats.get("videoCount", 3)),
                "viewCount": str(stats.get("viewCount", 1000)),
                "commentCount": str(stats.get("commentCount", 0)),
                "subscriberCount": str(stats.get("subscriberCount", 42)),
            },
        }

    def add_videos(self, n: int, prefix: str = "vid", start: int = 0, step_seconds: int = 3600):
        # Newest first, one per step_seconds going back from BASE_TIME.
        for i in range(start, start + n):
            self.videos.append({
                "id": f"{prefix}{i:04d}",
                "title": f"Video number {i}!",
                "published": BASE_TIME - timedelta(seconds=step_seconds * i),
                "duration": "PT4M13S",
            })

    # transport

    def __call__(self, url, params=None, timeout=None):
        endpoint = url.rstrip("/").rsplit("/", 1)[-1]
        params = dict(params or {})
        self.calls.append((endpoint, params))
        self.timeouts.append(timeout)
        if len(self.calls) in self.fail_at:
            return self.fail_at[len(self.calls)]
        queue = self.scripted.get(endpoint)
        if queue:
            item = queue.pop(0)
            return item if isinstance(item, FakeResponse) else FakeResponse(item)
        if params.get("key") in self.exhausted:
            return FakeResponse(quota_error(), 403)
        return FakeResponse(getattr(self, "_" + endpoint)(params))

    def calls_to(self, endpoint: str) -> List[Dict]:
        return [p for e, p in self.calls if e == endpoint]

    def _channels(self, params):
        items = [self.channel] if self.channel and self.channel["id"] == params.get("id") else []
        return {"kind": "youtube#channelListResponse", "items": items}

    def _search(self, params):
        size = int(params.get("maxResults", 5))
        if self.endless_search:
            n = len(self.calls_to("search"))
            return {"items": [self._search_item({
                "id": f"endless{n:03d}{i:02d}",
                "published": BASE_TIME - timedelta(days=n, seconds=i),
            }) for i in range(size)]}
        pool = sorted(self.videos, key=lambda v: v["published"], reverse=True)
        before = params.get("publishedBefore")
        if before:
            cutoff = datetime.strptime(before, CURSOR_FORMAT).replace(tzinfo=timezone.utc)
            pool = [v for v in pool if v["published"] < cutoff]
        return {"items": [self._search_item(v) for v in pool[:size]]}

    @staticmethod
    def _search_item(v):
        return {
            "kind": "youtube#searchResult",
            "id": {"kind": "youtube#video", "videoId": v["id"]},
            "snippet": {"publishedAt": v["published"].strftime(CURSOR_FORMAT), "title": v.get("title", "")},
        }

    def _videos(self, params):
        wanted = params.get("id", "").split(",")
        by_id = {v["id"]: v for v in self.videos}
        items = []
        for vid in wanted:
            v = by_id.get(vid)
            if not v:
                continue
            items.append({
                "id": vid,
                "snippet": {
                    "title": v["title"],
                    "description": "desc",
                    "channelId": self.channel["id"] if self.channel else "UCtest",
                    "publishedAt": v["published"].strftime(CURSOR_FORMAT),
                    "thumbnails": {},
                },
                "statistics": {"viewCount": "10", "likeCount": "2", "commentCount": "1"},
                "contentDetails": {"duration": v["duration"]},
            })
        return {"items": items}


@pytest.fixture(autouse=True)
def db(tmp_path, monkeypatch):
    monkeypatch.setattr(store, "DB_PATH", tmp_path / "tracker.db")
    store.init_db()
    return store


@pytest.fixture
def fake_yt(monkeypatch):
    fake = FakeYouTube()
    monkeypatch.setattr(youtube.requests, "get", fake)
    monkeypatch.setattr(config, "RETRY_BACKOFF", 0.0)
    return fake


@pytest.fixture
def keys_pool(db):
    for code in ("key-a", "key-b", "key-c"):
        db.add_key(code)
    return ["key-a", "key-b", "key-c"]
