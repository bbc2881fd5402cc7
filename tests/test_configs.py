import pytest

from livechat.configs import (
    Config,
    find_config,
    find_config_by_user_id,
    find_configs,
    find_configs_by_user_id,
    update_config,
)
from livechat.db import Database


@pytest.fixture
def session():
    db = Database("sqlite://")
    db.create_all()
    with db.session() as s:
        yield s
    db.close()


def test_update_creates_then_changes(session):
    update_config(session, "kefu", "OfflineMessage", "away")
    assert find_config_by_user_id(session, "kefu", "OfflineMessage").conf_value == "away"
    update_config(session, "kefu", "OfflineMessage", "back soon")
    entries = find_configs_by_user_id(session, "kefu")
    assert [(c.conf_key, c.conf_value) for c in entries] == [("OfflineMessage", "back soon")]


def test_lookup_by_user(session):
    update_config(session, "kefu", "WelcomeMessage", "hello")
    update_config(session, "other", "WelcomeMessage", "hi")
    assert find_config_by_user_id(session, "other", "WelcomeMessage").conf_value == "hi"
    assert find_config_by_user_id(session, "kefu", "AllNotice") is None
    assert {c.user_id for c in find_configs(session)} == {"kefu", "other"}


def test_find_config_in_loaded_list():
    loaded = [
        Config(conf_key="JumpLang", conf_value="cn"),
        Config(conf_key="JumpLang", conf_value="en"),
        Config(conf_key="GetuiAppID", conf_value="app"),
    ]
    assert find_config(loaded, "JumpLang") == "cn"
    assert find_config(loaded, "GetuiAppID") == "app"
    assert find_config(loaded, "Missing") == ""
    assert find_config([], "JumpLang") == ""