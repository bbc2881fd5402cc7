import json
from datetime import datetime, timedelta

import pytest

from livechat.configs import update_config
from livechat.db import Database
from livechat.hub import ChatUser, Hub
from livechat.messages import create_message, find_messages_by_visitor_id
from livechat.presence import (
    add_visitor,
    clean_expired_visitors,
    remove_visitor_connection,
    visitor_auto_reply,
    visitor_message,
    visitor_notice,
    visitor_offline,
    visitor_online,
)
from livechat.replies import create_reply_content, create_reply_group
from livechat.users import User
from livechat.visitors import create_visitor, find_visitor_by_visitor_id


class FakeConn:
    def __init__(self, fail=False):
        self.sent = []
        self.closed = False
        self.fail = fail

    def send(self, text):
        if self.fail:
            raise OSError("broken")
        self.sent.append(text)

    def close(self):
        self.closed = True

    def last(self):
        return json.loads(self.sent[-1])


@pytest.fixture
def session():
    db = Database("sqlite://")
    db.create_all()
    with db.session() as s:
        yield s
    db.close()


@pytest.fixture
def hub():
    h = Hub()
    h.add_kefu(ChatUser(conn=FakeConn(), id="agent"))
    return h


def _kefu():
    return User(name="agent", nickname="Agent A", avator="/a.png")


def test_add_visitor_new_visitor_notice(hub, session):
    user = ChatUser(conn=FakeConn(), id="v1", name="Guest", avator="/g.png", to_id="agent")
    info = add_visitor(hub, session, user)
    assert hub.clients["v1"] is user
    assert info["last_message"] == "new visitor"
    payload = hub.kefus["agent"].conn.last()
    assert payload["type"] == "userOnline"
    assert payload["data"] == info


def test_add_visitor_uses_last_message(hub, session):
    create_message(session, "agent", "v1", "hello there", "visitor")
    user = ChatUser(conn=FakeConn(), id="v1", name="Guest", to_id="agent")
    info = add_visitor(hub, session, user)
    assert info["last_message"] == "hello there"


def test_add_visitor_replaces_broken_old_connection(hub, session):
    stamp = datetime(2020, 5, 1)
    old = ChatUser(conn=FakeConn(fail=True), id="v1", to_id="agent", update_time=stamp)
    hub.clients["v1"] = old
    new = ChatUser(conn=FakeConn(), id="v1", to_id="agent")
    add_visitor(hub, session, new)
    assert old.conn.closed
    assert new.update_time == stamp
    assert hub.clients["v1"] is new


def test_add_visitor_tells_live_old_connection_to_close(hub, session):
    old = ChatUser(conn=FakeConn(), id="v1", to_id="agent")
    hub.clients["v1"] = old
    add_visitor(hub, session, ChatUser(conn=FakeConn(), id="v1", to_id="agent"))
    assert old.conn.last() == {"type": "close", "data": "v1"}
    assert not old.conn.closed


def test_remove_visitor_connection_marks_offline(hub, session):
    create_visitor(session, "Guest", "/g.png", "ip", "agent", "v1", "ref", "", "ip", "")
    conn = FakeConn()
    hub.clients["v1"] = ChatUser(conn=conn, id="v1", name="Guest", to_id="agent")
    removed = remove_visitor_connection(hub, session, conn)
    assert removed == ["v1"]
    assert "v1" not in hub.clients
    assert find_visitor_by_visitor_id(session, "v1").status == 0
    payload = hub.kefus["agent"].conn.last()
    assert payload == {"type": "userOffline", "data": {"uid": "v1", "name": "Guest"}}


def test_visitor_online_and_offline(hub, session):
    visitor = create_visitor(session, "Guest", "/g.png", "ip", "agent", "v2", "ref", "", "ip", "")
    assert visitor_online(hub, session, "agent", visitor)
    assert hub.kefus["agent"].conn.last()["data"]["uid"] == "v2"
    assert visitor_offline(hub, session, "agent", "v2", "Guest")
    assert find_visitor_by_visitor_id(session, "v2").status == 0
    assert not visitor_offline(hub, session, "nobody", "v2", "Guest")


def test_visitor_notice(hub):
    assert not visitor_notice(hub, "missing", "hi")
    conn = FakeConn()
    hub.clients["v1"] = ChatUser(conn=conn, id="v1")
    assert visitor_notice(hub, "v1", "transferred")
    assert conn.last() == {"type": "notice", "data": "transferred"}


def test_visitor_message_payload(hub):
    conn = FakeConn()
    hub.clients["v1"] = ChatUser(conn=conn, id="v1")
    assert visitor_message(hub, "v1", "how can I help", _kefu())
    data = conn.last()["data"]
    assert data["name"] == "Agent A"
    assert data["id"] == "agent"
    assert data["to_id"] == "v1"
    assert data["content"] == "how can I help"
    assert data["is_kefu"] == "no"


def test_auto_reply_with_canned_reply(hub, session):
    group = create_reply_group(session, "greetings", "agent")
    create_reply_content(session, group, "agent", "canned answer", "price")
    visitor_conn = FakeConn()
    hub.clients["v1"] = ChatUser(conn=visitor_conn, id="v1")
    visitor = create_visitor(session, "Guest", "", "ip", "agent", "v1", "ref", "", "ip", "")
    sent = visitor_auto_reply(hub, session, visitor, _kefu(), "price", 0)
    assert sent == ["canned answer"]
    assert visitor_conn.last()["data"]["content"] == "canned answer"
    assert hub.kefus["agent"].conn.last()["data"]["is_kefu"] == "yes"
    stored = find_messages_by_visitor_id(session, "v1")
    assert [(m.content, m.mes_type) for m in stored] == [("canned answer", "kefu")]


def test_auto_reply_offline_message(session):
    hub = Hub()
    update_config(session, "agent", "OfflineMessage", "we are away")
    visitor_conn = FakeConn()
    hub.clients["v1"] = ChatUser(conn=visitor_conn, id="v1")
    visitor = create_visitor(session, "Guest", "", "ip", "agent", "v1", "ref", "", "ip", "")
    sent = visitor_auto_reply(hub, session, visitor, _kefu(), "anything", 0)
    assert sent == ["we are away"]
    assert visitor_conn.last()["data"]["content"] == "we are away"


def test_auto_reply_nothing_when_online_without_reply(hub, session):
    visitor = create_visitor(session, "Guest", "", "ip", "agent", "v1", "ref", "", "ip", "")
    assert visitor_auto_reply(hub, session, visitor, _kefu(), "anything", 0) == []


def test_clean_expired_visitors():
    hub = Hub()
    now = datetime(2024, 1, 1, 12, 0, 0)
    fresh = ChatUser(conn=FakeConn(), id="fresh", update_time=now)
    idle = ChatUser(conn=FakeConn(), id="idle", update_time=now - timedelta(seconds=700))
    dead = ChatUser(conn=FakeConn(fail=True), id="dead", update_time=now - timedelta(seconds=700))
    for user in (fresh, idle, dead):
        hub.clients[user.id] = user
    expired = clean_expired_visitors(hub, 600, now)
    assert sorted(expired) == ["dead", "idle"]
    assert idle.conn.last() == {"type": "auto_close", "data": "idle"}
    assert "idle" in hub.clients
    assert "dead" not in hub.clients and dead.conn.closed
    assert fresh.conn.sent == []