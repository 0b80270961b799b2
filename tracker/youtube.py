"""
youtube.py
YouTube Data API utilities:
- Quota-aware GET that rotates API keys when a key runs out of quota
- Channel info, full channel video listing (time-cursor paging), batched video details
- Parsing of API items into the flat channel/video records the store expects
"""

import logging, random, re, requests, time
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Tuple

from pydantic import ValidationError

from . import config, keys
from .errors import DurationParseError, ProviderError, QuotaExceeded
from .models import (
    ChannelItem, ChannelListResponse, ErrorBody, Key, SearchListResponse,
    VideoItem, VideoListResponse,
)
from .utils import mask_key

logger = logging.getLogger(__name__)

CURSOR_FORMAT = "%Y-%m-%dT%H:%M:%SZ"

TRANSIENT_STATUSES = (429, 500, 502, 503, 504)

# API request helpers

def _get(endpoint, params, key: Key):
    # Single GET with the given key; 429/5xx are retried with backoff before the
    # response is handed on. Returns decoded JSON (error envelopes included).
    p = dict(params or {})
    p["key"] = key.code
    backoff = config.RETRY_BACKOFF
    for attempt in range(config.TRANSIENT_RETRIES + 1):
        try:
            r = requests.get(config.YT_API_BASE + endpoint, params=p, timeout=config.REQUEST_TIMEOUT)
        except requests.RequestException as e:
            raise ProviderError(f"Request to YouTube failed on {endpoint}", details=str(e)) from e
        if r.status_code not in TRANSIENT_STATUSES or attempt == config.TRANSIENT_RETRIES:
            break
        logger.info(f"{r.status_code} on {endpoint}, retry {attempt + 1}/{config.TRANSIENT_RETRIES}")
        time.sleep(backoff + random.uniform(0, backoff / 2))
        backoff = min(backoff * 2, 8.0)
    try:
        data = r.json()
    except ValueError as e:
        raise ProviderError(
            f"{r.status_code} {r.reason} on {endpoint}: response is not JSON",
            details=(r.text or "")[:600], code=r.status_code,
        ) from e
    if not isinstance(data, dict):
        raise ProviderError(f"Unexpected response on {endpoint}", details=str(data)[:600])
    return data

def _error_from(data) -> Optional[ProviderError]:
    # Map an "error" envelope to QuotaExceeded / ProviderError; None when the call succeeded.
    err = data.get("error")
    if not err:
        return None
    if isinstance(err, dict):
        try:
            body = ErrorBody.model_validate(err)
        except ValidationError:
            body = ErrorBody(message=str(err))
    else:
        body = ErrorBody(message=str(err))
    cls = QuotaExceeded if body.is_quota() else ProviderError
    return cls(body.message or None, details=body.message, code=body.code, reason=body.reason)

def _request(endpoint, params, key: Key, model):
    # Quota-aware GET: the same request is retried with a rotated key until it succeeds.
    # Returns (validated response, key that served it).
    failures = 0
    while True:
        data = _get(endpoint, params, key)
        err = _error_from(data)
        if err is None:
            try:
                return model.model_validate(data), key
            except ValidationError as e:
                raise ProviderError(f"Unexpected {endpoint} payload", details=str(e)) from e

        if isinstance(err, QuotaExceeded):
            logger.warning(f"Quota exceeded for key {mask_key(key.code)} on {endpoint}")
            key = keys.rotate(key, True)
            failures = 0
            continue

        logger.warning(f"YouTube error on {endpoint}: {err.code} {err.reason} {err.message}")
        if not config.ROTATE_ON_ANY_ERROR:
            raise err
        failures += 1
        if failures > config.MAX_PROVIDER_RETRIES:
            raise err
        key = keys.rotate(key, False)

# Utilities

_DURATION_RE = re.compile(
    r"^P(?:(?P<w>\d+)W)?(?:(?P<d>\d+)D)?"
    r"(?:T(?=\d)(?:(?P<h>\d+)H)?(?:(?P<m>\d+)M)?(?:(?P<s>\d+(?:\.\d+)?)S)?)?$"
)

def iso8601_duration_to_seconds(s):
    # Convert ISO-8601 duration (e.g. PT5M30S, P1DT2H) -> whole seconds.
    if not s:
        return 0
    m = _DURATION_RE.match(s.strip().upper())
    if not m or s.strip().upper() == "P":
        raise DurationParseError(f"Malformed ISO-8601 duration: {s!r}", details=s)
    parts = {k: float(v) if v else 0 for k, v in m.groupdict().items()}
    total = parts["w"] * 604800 + parts["d"] * 86400 + parts["h"] * 3600 + parts["m"] * 60 + parts["s"]
    return int(total)

def format_cursor(dt: datetime) -> str:
    # RFC 3339 timestamp for search.list publishedBefore (UTC, second precision).
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).strftime(CURSOR_FORMAT)

# Fetches

def fetch_channel_info(youtube_channel_id: str, key: Key) -> Tuple[ChannelItem, Key]:
    # Channel snippet + statistics.
    resp, key = _request("channels", {
        "part": "snippet,statistics",
        "id": youtube_channel_id,
        "maxResults": 1,
    }, key, ChannelListResponse)
    if not resp.items:
        raise ProviderError(f"Channel {youtube_channel_id} not found on YouTube", code=404, reason="channelNotFound")
    return resp.items[0], key

def fetch_channel_videos(youtube_channel_id: str, key: Key) -> Tuple[List[str], Key]:
    # All video ids of a channel, newest first, deduplicated.
    # search.list stops paginating after a few hundred results, so each page after the
    # first asks for videos published strictly before the oldest one already seen.
    ids: List[str] = []
    seen = set()
    last_date = None
    pages = 0
    while True:
        params = {
            "channelId": youtube_channel_id,
            "part": "id,snippet",
            "maxResults": config.PAGE_SIZE,
            "type": "video",
            "order": "date",
        }
        if last_date is not None:
            params["publishedBefore"] = format_cursor(last_date - timedelta(seconds=1))

        page, key = _request("search", params, key, SearchListResponse)
        pages += 1

        for item in page.items:
            vid = item.id.video_id
            if vid not in seen:
                seen.add(vid)
                ids.append(vid)
        if page.items:
            last_date = min(item.snippet.published_at for item in page.items)
        logger.debug(f"search page {pages} for {youtube_channel_id}: {len(page.items)} items, cursor={last_date}")

        if len(page.items) < config.PAGE_SIZE:
            break
        if pages >= config.PAGE_LIMIT:
            logger.info(f"Stopped listing {youtube_channel_id} at page limit ({config.PAGE_LIMIT})")
            break

    return ids, key

def fetch_videos_info(video_ids: List[str], key: Key) -> Tuple[List[VideoItem], Key]:
    # Hydrate video ids into full items, BATCH_SIZE ids per call.
    out: List[VideoItem] = []
    for j in range(0, len(video_ids), config.BATCH_SIZE):
        chunk = video_ids[j:j + config.BATCH_SIZE]
        resp, key = _request("videos", {
            "part": "snippet,statistics,contentDetails",
            "id": ",".join(chunk),
        }, key, VideoListResponse)
        out.extend(resp.items)
        logger.debug(f"videos batch {j // config.BATCH_SIZE + 1}: {len(resp.items)} items")
    return out, key

def fetch_channel_data(youtube_channel_id: str, key: Key):
    # Channel info, every video id and every video's details; fails as a whole.
    channel, key = fetch_channel_info(youtube_channel_id, key)
    ids, key = fetch_channel_videos(youtube_channel_id, key)
    videos, key = fetch_videos_info(ids, key)
    return channel, videos, key

# Parsing helpers

def parse_channel(item: ChannelItem, channel_id: int) -> Dict:
    # Flatten a channels.list item into a channel record.
    sn, st = item.snippet, item.statistics
    return {
        "channel_id": channel_id,
        "channel_title": sn.title,
        "channel_description": sn.description,
        "published": sn.published_at,
        "thumbnails": sn.thumbnails,
        "videos": st.video_count,
        "views": st.view_count,
        "comments": st.comment_count,
        "subscribers": st.subscriber_count,
    }

def parse_videos(items: List[VideoItem], channel_id: int) -> List[Dict]:
    # Flatten videos.list items into video records.
    out = []
    for it in items:
        sn, st = it.snippet, it.statistics
        out.append({
            "channel_id": channel_id,
            "youtube_video_id": it.id,
            "youtube_channel_id": sn.channel_id,
            "video_title": sn.title,
            "video_description": sn.description,
            "duration": iso8601_duration_to_seconds(it.content_details.duration),
            "thumbnails": sn.thumbnails,
            "published": sn.published_at,
            "views": st.view_count,
            "comments": st.comment_count,
            "likes": st.like_count,
            "dislikes": st.dislike_count,
        })
    return out
