"""
models.py
Typed views over YouTube Data API v3 responses plus the tracker's own
value types (API key, snapshot diff).

Each endpoint gets its own response model so that a payload missing a
field we rely on fails validation here instead of deep inside the
reconciliation code.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class _ApiModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


# Error envelope

class ErrorItem(_ApiModel):
    reason: str = ""
    message: str = ""
    domain: str = ""


class ErrorBody(_ApiModel):
    code: int = 0
    message: str = ""
    errors: List[ErrorItem] = Field(default_factory=list)

    @property
    def reason(self) -> str:
        return self.errors[0].reason if self.errors else ""

    def is_quota(self) -> bool:
        return self.code == 403 and self.reason == "quotaExceeded"


# channels.list

class ChannelSnippet(_ApiModel):
    title: str = ""
    description: str = ""
    published_at: str = Field("", alias="publishedAt")
    thumbnails: Dict[str, Any] = Field(default_factory=dict)


class ChannelStatistics(_ApiModel):
    video_count: int = Field(0, alias="videoCount")
    view_count: int = Field(0, alias="viewCount")
    comment_count: int = Field(0, alias="commentCount")
    subscriber_count: int = Field(0, alias="subscriberCount")


class ChannelItem(_ApiModel):
    id: str
    snippet: ChannelSnippet
    statistics: ChannelStatistics = Field(default_factory=ChannelStatistics)


class ChannelListResponse(_ApiModel):
    items: List[ChannelItem] = Field(default_factory=list)


# search.list

class SearchItemId(_ApiModel):
    video_id: str = Field(alias="videoId")


class SearchSnippet(_ApiModel):
    published_at: datetime = Field(alias="publishedAt")
    title: str = ""


class SearchItem(_ApiModel):
    id: SearchItemId
    snippet: SearchSnippet


class SearchListResponse(_ApiModel):
    items: List[SearchItem] = Field(default_factory=list)


# videos.list

class VideoSnippet(_ApiModel):
    title: str = ""
    description: str = ""
    channel_id: str = Field("", alias="channelId")
    published_at: str = Field("", alias="publishedAt")
    thumbnails: Dict[str, Any] = Field(default_factory=dict)


class VideoStatistics(_ApiModel):
    view_count: int = Field(0, alias="viewCount")
    comment_count: int = Field(0, alias="commentCount")
    like_count: int = Field(0, alias="likeCount")
    dislike_count: int = Field(0, alias="dislikeCount")


class VideoContentDetails(_ApiModel):
    duration: Optional[str] = None


class VideoItem(_ApiModel):
    id: str
    snippet: VideoSnippet
    statistics: VideoStatistics = Field(default_factory=VideoStatistics)
    content_details: VideoContentDetails = Field(default_factory=VideoContentDetails, alias="contentDetails")


class VideoListResponse(_ApiModel):
    items: List[VideoItem] = Field(default_factory=list)


# Tracker value types

@dataclass(frozen=True)
class Key:
    # One API key as held during a single reconciliation run.
    code: str
    is_worker: bool = False


@dataclass
class Diff:
    delete: List[str] = field(default_factory=list)
    update: List[str] = field(default_factory=list)
    insert: List[str] = field(default_factory=list)

    def summary(self) -> Dict[str, int]:
        return {"new": len(self.insert), "updated": len(self.update), "deleted": len(self.delete)}
