from __future__ import annotations

import asyncio

import pytest
from httpx import ASGITransport, AsyncClient

from posemirror.api.main import app
from posemirror.api.routers.pose import session
from posemirror.vision.estimator import mock_keypoints


def _client() -> AsyncClient:
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")


@pytest.mark.asyncio
async def test_health():
    async with _client() as ac:
        r = await ac.get("/health")
    assert r.status_code == 200
    assert r.json()["status"] == "ok"


@pytest.mark.asyncio
async def test_state():
    async with _client() as ac:
        r = await ac.get("/state")
    assert r.status_code == 200
    body = r.json()
    assert body["success"] is True
    assert "grade" in body["data"] and "skeleton" in body["data"]


@pytest.mark.asyncio
async def test_skeleton_toggle_round_trip():
    async with _client() as ac:
        first = (await ac.post("/controls/skeleton")).json()["data"]
        second = (await ac.post("/controls/skeleton")).json()["data"]
    assert first["control"] == "skeleton"
    assert second["value"] is (not first["value"])


@pytest.mark.asyncio
async def test_mirror_toggle_reaches_overlay():
    async with _client() as ac:
        mirror = (await ac.post("/controls/mirror")).json()["data"]["value"]
        overlay = (await ac.get("/overlay")).json()["data"]
        state = (await ac.get("/state")).json()["data"]
    assert overlay["mirrored"] is mirror
    assert state["mirror"] is mirror


@pytest.mark.asyncio
async def test_recording_placeholder():
    async with _client() as ac:
        on = (await ac.post("/controls/recording")).json()["data"]["value"]
        state = (await ac.get("/state")).json()["data"]
        assert state["recording"] == ("Recording..." if on else "")
        await ac.post("/controls/recording")


@pytest.mark.asyncio
async def test_capture_then_score():
    pose = mock_keypoints()
    session.handle_keypoints(pose)
    async with _client() as ac:
        r = await ac.post("/controls/capture")
        assert r.json()["success"] is True
        again = (await ac.post("/controls/capture")).json()
        assert again["success"] is False
        assert again["error"] == "capture_in_progress"

        for _ in range(100):
            if not session.capture.active:
                break
            await asyncio.sleep(0.02)
        assert session.capture.has_baseline

        session.handle_keypoints(pose)
        score = (await ac.get("/score")).json()["data"]["score"]
        assert score["overall_grade"] == "A"
        assert score["overall_score"] == 100

        cleared = (await ac.delete("/baseline")).json()["data"]
        assert cleared["has_baseline"] is False
        assert (await ac.get("/score")).json()["data"]["score"] is None


@pytest.mark.asyncio
async def test_config():
    async with _client() as ac:
        r = await ac.get("/config")
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["countdown_seconds"] == 5
    assert data["silhouette_weight"] == pytest.approx(0.7)


@pytest.mark.asyncio
async def test_debug_metrics():
    async with _client() as ac:
        r = await ac.get("/debug/metrics")
    assert r.status_code == 200
    body = r.json()
    assert "pacing" in body and "estimator" in body and "mirror" in body
    assert body["pacing"]["target_fps"] == 10
