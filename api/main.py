from typing import Union

from fastapi import FastAPI
from .schemas import (
    AddChannelRequest, AddChannelResult, AddKeyRequest, ChannelOut,
    ErrorResult, ReloadRequest, ReloadResult, ResetKeysRequest,
)
from . import service
from tracker import store
from tracker.utils import setup_logging

# API layer: thin FastAPI routes that validate inputs, call service, and return clean JSON.
setup_logging()
store.init_db()

app = FastAPI(title="YT Channel Tracker API")

@app.get("/healthz")
def healthz():
    # Liveness/readiness check.
    return {"ok": True}

@app.post("/channels", response_model=Union[AddChannelResult, ErrorResult])
def add_channel(req: AddChannelRequest):
    # Start tracking a channel; returns reconciliation counts or an error payload.
    return service.add_channel(req.url, req.youtube_channel_id, req.user_id, req.is_worker)

@app.get("/channels/{channel_id}", response_model=Union[ChannelOut, ErrorResult])
def get_channel(channel_id: int):
    # Stored channel details.
    return service.get_channel(channel_id)

@app.post("/channels/{channel_id}/reload", response_model=Union[ReloadResult, ErrorResult])
def reload_channel(channel_id: int, req: ReloadRequest = ReloadRequest()):
    # Re-fetch channel + videos from YouTube and reconcile.
    return service.reload_channel(channel_id, req.is_worker)

@app.post("/keys")
def add_key(req: AddKeyRequest):
    # Register an API key in the worker or default pool.
    return service.add_key(req.code, req.is_worker)

@app.post("/keys/reset")
def reset_keys(req: ResetKeysRequest):
    # Clear the expired flag on keys (e.g. after the daily quota reset).
    return service.reset_keys(req.is_worker)
