"""
schemas.py
Pydantic request/response models for the Channel Tracker API.
Defines typed schemas for channel intake, reconciliation results,
channel details and API key management.
"""

from pydantic import BaseModel
from typing import Any, Dict, Optional

class AddChannelRequest(BaseModel):
    # Either a channel URL or a raw YouTube channel id.
    url: Optional[str] = None
    youtube_channel_id: Optional[str] = None
    user_id: Optional[str] = None
    is_worker: bool = False

class ReloadRequest(BaseModel):
    # Which key pool the reconciliation should draw from.
    is_worker: bool = False

class VideoCounts(BaseModel):
    new: int
    updated: int
    deleted: int

class ReloadResult(BaseModel):
    videos: VideoCounts

class AddChannelResult(BaseModel):
    channel_id: int
    youtube_channel_id: str
    videos: VideoCounts

class ErrorResult(BaseModel):
    error: str
    details: Optional[Any] = None

class ChannelOut(BaseModel):
    # Stored channel as shown to clients.
    channelId: int
    title: Optional[str] = None
    description: Optional[str] = None
    youtubeChannelId: str
    thumbnails: Dict[str, Any] = {}
    videos: Optional[int] = None
    views: Optional[int] = None
    subscribers: Optional[int] = None
    comments: Optional[int] = None
    created: Optional[int] = None
    lang: Optional[str] = None
    updated: Optional[int] = None
    growth: Dict[str, int] = {}

class AddKeyRequest(BaseModel):
    code: str
    is_worker: bool = False

class ResetKeysRequest(BaseModel):
    # None resets both pools.
    is_worker: Optional[bool] = None
