from datetime import datetime

import pytest

from livechat.clients import create_user_client, find_clients
from livechat.db import Database


@pytest.fixture
def session():
    database = Database("sqlite://")
    database.create_all()
    with database.session() as s:
        yield s
    database.close()


def test_create_returns_increasing_ids(session):
    first = create_user_client(session, "alice", "client-a")
    second = create_user_client(session, "alice", "client-b")
    assert first > 0
    assert second > first


def test_find_clients_filters_by_agent(session):
    create_user_client(session, "alice", "client-a")
    create_user_client(session, "bob", "client-b")
    create_user_client(session, "alice", "client-c")
    assert [c.client_id for c in find_clients(session, "alice")] == ["client-a", "client-c"]
    assert find_clients(session, "nobody") == []


def test_created_at_is_formatted_timestamp(session):
    create_user_client(session, "alice", "client-a")
    stamp = find_clients(session, "alice")[0].created_at
    parsed = datetime.strptime(stamp, "%Y-%m-%d %H:%M:%S")
    assert parsed.strftime("%Y-%m-%d %H:%M:%S") == stamp