import pytest

from livechat.db import Database
from livechat.users import (
    Role,
    create_user,
    create_user_role,
    delete_role_by_user_id,
    delete_user_by_id,
    find_role,
    find_role_by_user_id,
    find_roles,
    find_user,
    find_user_by_id,
    find_user_role,
    find_users,
    save_role,
    update_user,
    update_user_avator,
    update_user_pass,
)


@pytest.fixture
def session():
    db = Database("sqlite://")
    db.create_all()
    with db.session() as s:
        yield s
    db.close()


def _role(session, name):
    role = Role(name=name, method="*", path="*")
    session.add(role)
    session.flush()
    return role


def test_create_and_find_user(session):
    uid = create_user(session, "alice", "hash", "/a.png", "Alice")
    user = find_user(session, "alice")
    assert user.id == uid
    assert (user.password, user.avator, user.nickname) == ("hash", "/a.png", "Alice")


def test_find_missing_user(session):
    assert find_user(session, "nobody") is None


def test_update_user_skips_empty_fields(session):
    create_user(session, "alice", "hash", "/a.png", "Alice")
    update_user(session, "alice", "", "", "Ally")
    user = find_user(session, "alice")
    assert user.password == "hash"
    assert user.avator == "/a.png"
    assert user.nickname == "Ally"


def test_update_pass_and_avator(session):
    create_user(session, "alice", "hash", "/a.png", "Alice")
    update_user_pass(session, "alice", "newhash")
    update_user_avator(session, "alice", "/b.png")
    user = find_user(session, "alice")
    assert (user.password, user.avator) == ("newhash", "/b.png")


def test_delete_user_hides_it(session):
    uid = create_user(session, "alice", "hash", "/a.png", "Alice")
    create_user(session, "bob", "hash", "/b.png", "Bob")
    delete_user_by_id(session, str(uid))
    assert find_user(session, "alice") is None
    assert [u.name for u in find_users(session)] == ["bob"]


def test_find_user_by_id_with_role(session):
    uid = create_user(session, "alice", "hash", "/a.png", "Alice")
    role = _role(session, "admin")
    create_user_role(session, uid, role.id)
    user = find_user_by_id(session, str(uid))
    assert user.name == "alice"
    assert user.role_name == "admin"
    assert user.role_id == str(role.id)
    assert find_user_role(session, uid).role_name == "admin"


def test_find_user_by_id_without_role(session):
    uid = create_user(session, "alice", "hash", "/a.png", "Alice")
    assert find_user_by_id(session, uid) is None
    assert find_user_by_id(session, "garbage") is None


def test_find_users_newest_first_with_roles(session):
    first = create_user(session, "alice", "hash", "/a.png", "Alice")
    create_user(session, "bob", "hash", "/b.png", "Bob")
    role = _role(session, "admin")
    create_user_role(session, first, role.id)
    users = find_users(session)
    assert [u.name for u in users] == ["bob", "alice"]
    assert [u.role_name for u in users] == ["", "admin"]


def test_roles(session):
    a = _role(session, "admin")
    b = _role(session, "agent")
    assert [r.id for r in find_roles(session)] == [b.id, a.id]
    save_role(session, str(a.id), "boss", "", "GET:/x")
    role = find_role(session, a.id)
    assert (role.name, role.method, role.path) == ("boss", "*", "GET:/x")
    assert find_role(session, "nope") is None


def test_user_role_links(session):
    create_user_role(session, 7, 3)
    link = find_role_by_user_id(session, 7)
    assert (link.user_id, link.role_id) == ("7", 3)
    delete_role_by_user_id(session, "7")
    assert find_role_by_user_id(session, 7) is None