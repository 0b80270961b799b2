from __future__ import annotations

import random

import pytest

from conftest import FakeResponse, api_error, quota_error
from tracker import reconcile, store
from tracker.errors import NoKeyAvailable, ProviderError
from tracker.reconcile import videos_diff


def _snap(*ids):
    return [{"youtube_video_id": i} for i in ids]


# diff

def test_diff_example():
    diff = videos_diff(_snap("a", "b"), _snap("b", "c"))
    assert diff.delete == ["a"]
    assert diff.update == ["b"]
    assert diff.insert == ["c"]


def test_diff_keeps_input_order():
    diff = videos_diff(_snap("z", "y", "x", "w"), _snap("q", "x", "p", "z"))
    assert diff.delete == ["y", "w"]
    assert diff.update == ["z", "x"]
    assert diff.insert == ["q", "p"]


def test_diff_empty_snapshots():
    assert videos_diff([], []).summary() == {"new": 0, "updated": 0, "deleted": 0}
    assert videos_diff(_snap("a"), []).delete == ["a"]
    assert videos_diff([], _snap("a")).insert == ["a"]


def test_diff_counts_cover_both_snapshots():
    rnd = random.Random(7)
    universe = [f"v{i}" for i in range(40)]
    for _ in range(25):
        current = _snap(*rnd.sample(universe, rnd.randint(0, 30)))
        fresh = _snap(*rnd.sample(universe, rnd.randint(0, 30)))
        diff = videos_diff(current, fresh)
        assert len(diff.delete) + len(diff.update) == len(current)
        assert len(diff.insert) + len(diff.update) == len(fresh)


def test_diff_is_deterministic():
    current, fresh = _snap("a", "b", "c"), _snap("c", "d")
    assert videos_diff(current, fresh) == videos_diff(current, fresh)


def test_diff_against_own_output_is_all_updates():
    fresh = _snap("a", "b", "c")
    diff = videos_diff(fresh, fresh)
    assert diff.insert == [] and diff.delete == []
    assert diff.update == ["a", "b", "c"]


# full run

@pytest.fixture
def channel(db):
    return db.add_channel("UCtest")


def test_reload_channel_data_first_run_inserts_everything(fake_yt, keys_pool, channel):
    fake_yt.set_channel("UCtest", title="Test Channel", subscriberCount=99)
    fake_yt.add_videos(3)

    res = reconcile.reload_channel_data(channel, "UCtest")

    assert res == {"videos": {"new": 3, "updated": 0, "deleted": 0}}
    stored = store.get_videos(channel, ignore_active_flag=True)
    assert [v["youtube_video_id"] for v in stored] == ["vid0000", "vid0001", "vid0002"]
    assert stored[0]["duration"] == 253
    row = store.get_channel_by_id(channel)
    assert row["channel_title"] == "Test Channel"
    assert row["subscribers"] == 99
    assert store.get_video_tags("vid0001") == ["video", "number", "1"]
    assert len(store.get_previous_stats(channel)) == 1


def test_reload_channel_data_second_run_classifies_changes(fake_yt, keys_pool, channel):
    fake_yt.set_channel("UCtest")
    fake_yt.add_videos(3)
    reconcile.reload_channel_data(channel, "UCtest")

    fake_yt.videos = [v for v in fake_yt.videos if v["id"] != "vid0002"]
    fake_yt.add_videos(1, prefix="new")
    fake_yt.calls.clear()

    res = reconcile.reload_channel_data(channel, "UCtest")

    assert res == {"videos": {"new": 1, "updated": 2, "deleted": 1}}
    ids = {v["youtube_video_id"] for v in store.get_videos(channel, ignore_active_flag=True)}
    assert ids == {"vid0000", "vid0001", "new0000"}
    assert store.get_video_tags("vid0002") == []
    assert len(store.get_previous_stats(channel)) == 2


def test_reload_channel_data_is_idempotent(fake_yt, keys_pool, channel):
    fake_yt.set_channel("UCtest")
    fake_yt.add_videos(4)
    reconcile.reload_channel_data(channel, "UCtest")
    res = reconcile.reload_channel_data(channel, "UCtest")
    assert res == {"videos": {"new": 0, "updated": 4, "deleted": 0}}


def test_reload_without_keys_fails_before_any_request(fake_yt, channel):
    with pytest.raises(NoKeyAvailable):
        reconcile.reload_channel_data(channel, "UCtest")
    assert fake_yt.calls == []


def test_worker_pool_is_separate(fake_yt, db, channel):
    db.add_key("plain")
    with pytest.raises(NoKeyAvailable):
        reconcile.reload_channel_data(channel, "UCtest", is_worker=True)
    db.add_key("worker", is_worker=True)
    fake_yt.set_channel("UCtest")
    reconcile.reload_channel_data(channel, "UCtest", is_worker=True)
    assert {c["key"] for _, c in fake_yt.calls} == {"worker"}


def test_failed_fetch_leaves_store_untouched(fake_yt, keys_pool, channel):
    fake_yt.set_channel("UCtest")
    fake_yt.add_videos(3)
    reconcile.reload_channel_data(channel, "UCtest")
    before = store.get_videos(channel, ignore_active_flag=True)

    fake_yt.videos = fake_yt.videos[:1]
    fake_yt.scripted["videos"] = [FakeResponse(api_error(400, "badRequest"), 400)]
    with pytest.raises(ProviderError) as exc:
        reconcile.reload_channel_data(channel, "UCtest")

    assert exc.value.message == reconcile.FETCH_ERROR
    assert "badRequest" in exc.value.details
    assert store.get_videos(channel, ignore_active_flag=True) == before
    assert len(store.get_previous_stats(channel)) == 1


def test_pool_exhaustion_mid_run_aborts_whole_run(fake_yt, keys_pool, channel):
    fake_yt.set_channel("UCtest")
    fake_yt.add_videos(3)
    fake_yt.scripted["videos"] = [FakeResponse(quota_error(), 403) for _ in keys_pool]
    with pytest.raises(NoKeyAvailable):
        reconcile.reload_channel_data(channel, "UCtest")
    assert store.get_videos(channel, ignore_active_flag=True) == []
    assert store.get_previous_stats(channel) == []
