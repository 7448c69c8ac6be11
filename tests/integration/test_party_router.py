"""Integration tests for watch party endpoints."""

from httpx import AsyncClient


async def _session(client: AsyncClient, username: str) -> str:
    resp = await client.post("/api/session/create", json={"username": username})
    return resp.json()["data"]["token"]


async def _room(client: AsyncClient, token: str, name: str = "Movie night") -> str:
    resp = await client.post(
        "/api/party/create", json={"roomName": name, "userToken": token}
    )
    assert resp.status_code == 200
    return resp.json()["data"]["roomToken"]


class TestCreateRoom:
    """Tests for POST /api/party/create."""

    async def test_create_success(self, async_client: AsyncClient) -> None:
        token = await _session(async_client, "alice")
        resp = await async_client.post(
            "/api/party/create", json={"roomName": "Movie night", "userToken": token}
        )
        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["roomToken"].startswith("party-")
        assert data["roomName"] == "Movie night"
        assert data["hostUsername"] == "alice"

    async def test_create_invalid_token(self, async_client: AsyncClient) -> None:
        resp = await async_client.post(
            "/api/party/create", json={"roomName": "Movie", "userToken": "bogus"}
        )
        assert resp.status_code == 401
        assert resp.json()["code"] == "INVALID_SESSION"

    async def test_create_missing_name(self, async_client: AsyncClient) -> None:
        token = await _session(async_client, "alice")
        resp = await async_client.post("/api/party/create", json={"userToken": token})
        assert resp.status_code == 422


class TestJoinRoom:
    """Tests for POST /api/party/join."""

    async def test_join(self, async_client: AsyncClient) -> None:
        host = await _session(async_client, "alice")
        guest = await _session(async_client, "bob")
        room_token = await _room(async_client, host)

        resp = await async_client.post(
            "/api/party/join", json={"roomToken": room_token, "userToken": guest}
        )
        assert resp.status_code == 200
        assert resp.json()["data"] == {
            "roomToken": room_token,
            "roomName": "Movie night",
            "isHost": False,
        }

    async def test_host_join_flags_host(self, async_client: AsyncClient) -> None:
        host = await _session(async_client, "alice")
        room_token = await _room(async_client, host)
        resp = await async_client.post(
            "/api/party/join", json={"roomToken": room_token, "userToken": host}
        )
        assert resp.json()["data"]["isHost"] is True

    async def test_join_unknown_room(self, async_client: AsyncClient) -> None:
        guest = await _session(async_client, "bob")
        resp = await async_client.post(
            "/api/party/join", json={"roomToken": "party-missing", "userToken": guest}
        )
        assert resp.status_code == 404
        assert resp.json()["code"] == "ROOM_NOT_FOUND"


class TestLeaveRoom:
    """Tests for POST /api/party/leave."""

    async def test_member_leave(self, async_client: AsyncClient) -> None:
        host = await _session(async_client, "alice")
        guest = await _session(async_client, "bob")
        room_token = await _room(async_client, host)
        await async_client.post(
            "/api/party/join", json={"roomToken": room_token, "userToken": guest}
        )

        resp = await async_client.post(
            "/api/party/leave", json={"roomToken": room_token, "userToken": guest}
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["message"] == "Left watch party room"
        assert body["data"] == {"success": True, "roomClosed": False}

        members = await async_client.get(f"/api/party/{room_token}/members")
        assert members.json()["data"] == [{"username": "alice"}]

    async def test_host_leave_closes_room_for_sockets(
        self, async_client: AsyncClient
    ) -> None:
        from watchparty.main import app

        host = await _session(async_client, "alice")
        guest = await _session(async_client, "bob")
        room_token = await _room(async_client, host)

        relay = app.state.relay
        frames: list[dict] = []

        class Socket:
            async def send_json(self, data: dict) -> None:
                frames.append(data)

        cid = await relay.connect(Socket())
        await relay.dispatch(cid, {"event": "authenticate", "data": {"token": guest}})
        await relay.dispatch(
            cid,
            {
                "event": "join_party_room",
                "data": {"roomToken": room_token, "userToken": guest},
            },
        )
        assert relay.hub.get(cid).room_token == room_token

        resp = await async_client.post(
            "/api/party/leave", json={"roomToken": room_token, "userToken": host}
        )

        assert resp.status_code == 200
        assert resp.json()["data"]["roomClosed"] is True
        assert resp.json()["message"] == "Watch party room closed"
        ended = [f["data"] for f in frames if f["event"] == "party_ended"]
        assert ended == [{"message": "The host has left the watch party"}]
        assert relay.hub.get(cid).room_token is None

        members = await async_client.get(f"/api/party/{room_token}/members")
        assert members.status_code == 404

    async def test_member_leave_unbinds_socket(
        self, async_client: AsyncClient, make_socket
    ) -> None:
        from watchparty.main import app

        host = await _session(async_client, "alice")
        guest = await _session(async_client, "bob")
        room_token = await _room(async_client, host)

        relay = app.state.relay
        host_sock, guest_sock = make_socket(), make_socket()
        sockets = ((host_sock, host), (guest_sock, guest))
        ids = []
        for sock, token in sockets:
            cid = await relay.connect(sock)
            await relay.dispatch(cid, {"event": "authenticate", "data": {"token": token}})
            await relay.dispatch(
                cid,
                {
                    "event": "join_party_room",
                    "data": {"roomToken": room_token, "userToken": token},
                },
            )
            ids.append(cid)
        host_sock.clear()

        resp = await async_client.post(
            "/api/party/leave", json={"roomToken": room_token, "userToken": guest}
        )

        assert resp.status_code == 200
        assert resp.json()["data"]["roomClosed"] is False
        assert relay.hub.get(ids[1]).room_token is None
        assert relay.hub.get(ids[0]).room_token == room_token
        notice = host_sock.events("party_message")[-1]
        assert notice["message"] == "bob has left the watch party"
        assert host_sock.events("party_members")[-1] == [{"username": "alice"}]

    async def test_leave_invalid_token(self, async_client: AsyncClient) -> None:
        host = await _session(async_client, "alice")
        room_token = await _room(async_client, host)
        resp = await async_client.post(
            "/api/party/leave", json={"roomToken": room_token, "userToken": "bogus"}
        )
        assert resp.status_code == 401


class TestListMembers:
    """Tests for GET /api/party/{room_token}/members."""

    async def test_members_in_join_order(self, async_client: AsyncClient) -> None:
        host = await _session(async_client, "alice")
        guest = await _session(async_client, "bob")
        room_token = await _room(async_client, host)
        await async_client.post(
            "/api/party/join", json={"roomToken": room_token, "userToken": guest}
        )

        resp = await async_client.get(f"/api/party/{room_token}/members")
        assert resp.status_code == 200
        assert resp.json()["data"] == [{"username": "alice"}, {"username": "bob"}]

    async def test_members_unknown_room(self, async_client: AsyncClient) -> None:
        resp = await async_client.get("/api/party/party-missing/members")
        assert resp.status_code == 404
