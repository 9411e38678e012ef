"""
Socket.IO integration tests for the DJ room
Uses the in-process Flask-SocketIO test client in threading mode
"""

import pytest

from app import create_app


@pytest.fixture
def app(tmp_path, catalog):
    return create_app(
        config_overrides={
            "TESTING": True,
            "SECRET_KEY": "test-secret",
            "DATABASE_URL": f"sqlite:///{tmp_path}/sockets.db",
            "SESSION_FILE_DIR": str(tmp_path / "sessions"),
        },
        catalog=catalog,
    )


def connect(app, user_id=None, role="listener"):
    client = app.test_client()
    if user_id:
        with client.session_transaction() as sess:
            sess["user_id"] = user_id
            sess["role"] = role
    return app.socketio.test_client(app, flask_test_client=client)


def events(socket_client, name):
    return [message["args"][0] for message in socket_client.get_received() if message["name"] == name]


class TestSocketIORealtime:

    def test_connect_reports_identity(self, app):
        sio = connect(app, "alice")
        assert sio.is_connected()
        assert events(sio, "connected") == [{"user_id": "alice", "role": "listener"}]

    def test_anonymous_queue_add_is_rejected(self, app, vid):
        sio = connect(app)
        sio.get_received()

        sio.emit("queue_add", {"room_id": "r1", "url": vid(1)})

        errors = events(sio, "error")
        assert errors[-1]["code"] == "not_authenticated"

    def test_join_receives_room_state(self, app):
        sio = connect(app, "alice")
        sio.get_received()

        sio.emit("join_dj_room", {"room_id": "r1"})

        states = events(sio, "room_state")
        assert states[0]["room_id"] == "r1"
        assert states[0]["status"] == "idle"

    def test_queue_add_broadcasts_to_room(self, app, vid):
        listener = connect(app, "bob")
        listener.emit("join_dj_room", {"room_id": "r1"})
        listener.get_received()

        sender = connect(app, "alice")
        sender.get_received()
        sender.emit("queue_add", {"room_id": "r1", "url": f"https://youtu.be/{vid(1)}"})

        assert events(sender, "queue_add_success")[0]["started_playing"] is True
        now_playing = events(listener, "now_playing")
        assert now_playing[-1]["now_playing"]["external_ref"] == vid(1)

    def test_queue_add_error_comes_back(self, app):
        sio = connect(app, "alice")
        sio.get_received()

        sio.emit("queue_add", {"room_id": "r1", "url": "https://example.com"})

        assert events(sio, "error")[0]["code"] == "invalid_reference"

    def test_react_and_advance(self, app, vid):
        sio = connect(app, "alice")
        sio.emit("join_dj_room", {"room_id": "r1"})
        sio.emit("queue_add", {"room_id": "r1", "url": vid(1)})
        track_id = events(sio, "queue_add_success")[0]["track_id"]

        sio.emit("react", {"room_id": "r1", "track_id": track_id, "kind": "like"})
        assert events(sio, "reaction_updated")[0]["like_count"] == 1

        sio.emit("advance", {"room_id": "r1"})
        assert events(sio, "advance_result")[0] == {"now_playing": None, "source": "none"}

    def test_http_mutations_reach_socket_listeners(self, app, vid):
        listener = connect(app, "bob")
        listener.emit("join_dj_room", {"room_id": "r1"})
        listener.get_received()

        client = app.test_client()
        with client.session_transaction() as sess:
            sess["user_id"] = "alice"
        client.post("/rooms/r1/queue", json={"url": vid(1)})

        assert events(listener, "now_playing")
        assert events(listener, "queue_updated")[-1]["queue"] == []
