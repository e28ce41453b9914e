"""HTTP-level tests: routers, dependency wiring and error notifications.

Runs the ASGI app in-process over an in-memory row store.  The websocket
tests use a ``TestClient`` so HTTP calls and the stream share one event loop;
its lifespan runs with ``STORE_BACKEND=memory`` and never touches a database.
"""
import asyncio
import uuid
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from gymbuddy.api.dependencies import get_store
from gymbuddy.api.messages import relay_until_disconnect
from gymbuddy.config import Settings
from gymbuddy.main import app

API = "/api/v1"


@pytest.fixture
async def client(store):
    app.dependency_overrides[get_store] = lambda: store
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as http_client:
        yield http_client
    app.dependency_overrides.clear()


async def _onboard(client, username, **fitness_overrides):
    fitness = {
        "fitness_level": "intermediate",
        "fitness_goal": "cutting",
        "fitness_style": ["strength", "hiit", "strength"],
        "preferred_time_slots": ["morning", "evening"],
        "availability_days": ["mon", "wed", "fri"],
        "location": "Austin, TX",
    }
    fitness.update(fitness_overrides)

    resp = await client.post(f"{API}/profiles/", json={"username": username})
    assert resp.status_code == 201
    user_id = resp.json()["id"]

    resp = await client.put(f"{API}/profiles/{user_id}/fitness", json=fitness)
    assert resp.status_code == 200
    return user_id


class TestHealth:

    @pytest.mark.asyncio
    async def test_liveness(self, client):
        resp = await client.get("/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "healthy"}


class TestProfilesApi:

    @pytest.mark.asyncio
    async def test_fitness_upsert_dedupes_lists(self, client):
        user_id = await _onboard(client, "sam")
        resp = await client.get(f"{API}/profiles/{user_id}/fitness")
        body = resp.json()
        assert body["fitness_style"] == ["strength", "hiit"]
        assert body["is_complete"] is True

    @pytest.mark.asyncio
    async def test_missing_profile_is_notification(self, client):
        resp = await client.get(f"{API}/profiles/{uuid.uuid4()}")
        assert resp.status_code == 404
        detail = resp.json()["detail"]
        assert detail["title"] == "Not Found"
        assert detail["variant"] == "destructive"

    @pytest.mark.asyncio
    async def test_invalid_goal_rejected(self, client):
        resp = await client.post(f"{API}/profiles/", json={"username": "sam"})
        user_id = resp.json()["id"]
        resp = await client.put(f"{API}/profiles/{user_id}/fitness", json={
            "fitness_level": "intermediate",
            "fitness_goal": "world_domination",
            "fitness_style": ["strength"],
            "location": "Austin, TX",
        })
        assert resp.status_code == 422

    @pytest.mark.asyncio
    async def test_labels(self, client):
        resp = await client.get(f"{API}/fitness/labels")
        assert resp.status_code == 200
        assert resp.json()["goals"]["cutting"] == "Fat loss"


class TestMatchingApi:

    @pytest.mark.asyncio
    async def test_potential_and_details(self, client):
        me = await _onboard(client, "me")
        buddy = await _onboard(
            client,
            "buddy",
            fitness_style=["strength", "yoga"],
            preferred_time_slots=["morning"],
            availability_days=["mon", "fri"],
        )

        resp = await client.get(f"{API}/match/potential/{me}")
        assert resp.status_code == 200
        [candidate] = resp.json()
        assert candidate["user_id"] == buddy
        assert candidate["compatibility_score"] == 0.6
        assert candidate["match_reasons"][0] == "You both have the same fitness goal: Fat loss"

        resp = await client.get(f"{API}/match/details/{me}/{buddy}")
        categories = {c["name"]: c["percentage"] for c in resp.json()["categories"]}
        assert categories["Location"] == 60
        assert categories["Availability"] == 28

    @pytest.mark.asyncio
    async def test_incomplete_profile_notification(self, client):
        resp = await client.post(f"{API}/profiles/", json={"username": "newbie"})
        user_id = resp.json()["id"]

        resp = await client.get(f"{API}/match/potential/{user_id}")
        assert resp.status_code == 409
        assert resp.json()["detail"]["title"] == "Complete Your Profile"

    @pytest.mark.asyncio
    async def test_request_accept_then_chat(self, client):
        me = await _onboard(client, "me")
        buddy = await _onboard(client, "buddy")

        resp = await client.post(f"{API}/match/request/{me}/{buddy}")
        assert resp.status_code == 201
        match = resp.json()
        assert match["status"] == "pending"

        resp = await client.post(f"{API}/match/request/{buddy}/{me}")
        assert resp.status_code == 409

        resp = await client.post(
            f"{API}/match/{match['id']}/respond",
            json={"user_id": buddy, "action": "accept"},
        )
        assert resp.json()["status"] == "accepted"

        resp = await client.get(f"{API}/match/potential/{me}")
        assert resp.json() == []

        resp = await client.post(
            f"{API}/messages/{match['id']}",
            json={"sender_id": me, "message": "Leg day tomorrow?"},
        )
        assert resp.status_code == 201

        resp = await client.get(f"{API}/dashboard/{buddy}")
        body = resp.json()
        assert body["matches"]["accepted"] == 1
        assert body["recent_messages"][0]["message"] == "Leg day tomorrow?"


def _onboard_sync(client, username):
    resp = client.post(f"{API}/profiles/", json={"username": username})
    user_id = resp.json()["id"]
    client.put(f"{API}/profiles/{user_id}/fitness", json={
        "fitness_level": "intermediate",
        "fitness_goal": "cutting",
        "fitness_style": ["strength"],
        "location": "Austin, TX",
    })
    return user_id


def _accepted_match(client, requester, recipient):
    match = client.post(f"{API}/match/request/{requester}/{recipient}").json()
    client.post(
        f"{API}/match/{match['id']}/respond",
        json={"user_id": recipient, "action": "accept"},
    )
    return match["id"]


@pytest.fixture
def sync_client(store, monkeypatch):
    """TestClient sharing one event loop between HTTP calls and websockets."""
    monkeypatch.setattr("gymbuddy.main.get_settings", lambda: Settings(STORE_BACKEND="memory"))
    app.dependency_overrides[get_store] = lambda: store
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()


class TestMessageStream:

    def test_forwards_messages_for_the_match(self, sync_client, store):
        me = _onboard_sync(sync_client, "me")
        buddy = _onboard_sync(sync_client, "buddy")
        other = _onboard_sync(sync_client, "other")
        match_id = _accepted_match(sync_client, me, buddy)
        other_match_id = _accepted_match(sync_client, me, other)

        url = f"{API}/messages/{match_id}/stream?user_id={buddy}"
        with sync_client.websocket_connect(url) as ws:
            resp = sync_client.post(
                f"{API}/messages/{other_match_id}",
                json={"sender_id": me, "message": "wrong room"},
            )
            assert resp.status_code == 201
            resp = sync_client.post(
                f"{API}/messages/{match_id}",
                json={"sender_id": me, "message": "Leg day?"},
            )
            assert resp.status_code == 201

            payload = ws.receive_json()
            assert payload["message"] == "Leg day?"
            assert payload["match_id"] == match_id
            assert payload["sender_id"] == me

        assert store.feed.subscriber_count("messages") == 0

    def test_outsider_closed_with_policy_violation(self, sync_client):
        me = _onboard_sync(sync_client, "me")
        buddy = _onboard_sync(sync_client, "buddy")
        outsider = _onboard_sync(sync_client, "outsider")
        match_id = _accepted_match(sync_client, me, buddy)

        url = f"{API}/messages/{match_id}/stream?user_id={outsider}"
        with pytest.raises(WebSocketDisconnect) as exc_info:
            with sync_client.websocket_connect(url):
                pass
        assert exc_info.value.code == 1008


class TestRelayUntilDisconnect:
    """The relay must end when the client leaves, even if the match is quiet."""

    def _websocket(self, disconnected):
        websocket = MagicMock()
        websocket.send_json = AsyncMock()

        async def receive():
            await disconnected.wait()
            return {"type": "websocket.disconnect", "code": 1000}

        websocket.receive = receive
        return websocket

    @pytest.mark.asyncio
    async def test_quiet_match_released_on_disconnect(self, feed):
        disconnected = asyncio.Event()
        websocket = self._websocket(disconnected)

        async with feed.subscribe("messages", {"match_id": "m1"}) as subscription:
            relay = asyncio.create_task(relay_until_disconnect(websocket, subscription))
            await asyncio.sleep(0)
            assert not relay.done()

            disconnected.set()
            await asyncio.wait_for(relay, timeout=1)

        websocket.send_json.assert_not_awaited()
        assert feed.subscriber_count("messages") == 0

    @pytest.mark.asyncio
    async def test_forwards_rows_before_disconnect(self, feed):
        disconnected = asyncio.Event()
        websocket = self._websocket(disconnected)
        row = {
            "id": uuid.uuid4(),
            "match_id": uuid.uuid4(),
            "sender_id": uuid.uuid4(),
            "message": "on my way",
            "read": False,
        }

        async with feed.subscribe("messages") as subscription:
            relay = asyncio.create_task(relay_until_disconnect(websocket, subscription))
            feed.publish("messages", row)
            for _ in range(50):
                if websocket.send_json.await_count:
                    break
                await asyncio.sleep(0)

            disconnected.set()
            await asyncio.wait_for(relay, timeout=1)

        [call] = websocket.send_json.await_args_list
        assert call.args[0]["message"] == "on my way"
        assert call.args[0]["sender_id"] == str(row["sender_id"])
