"""Handlers for agent accounts, transfers and canned replies."""

from __future__ import annotations

from typing import Any

from sqlalchemy.orm import Session

from .api_site import ApiResponse
from .clients import create_user_client
from .hub import Hub
from .presence import visitor_notice, visitor_offline, visitor_online
from .replies import (
    create_reply_content,
    create_reply_group,
    delete_reply_content,
    delete_reply_group,
    find_replies_by_user_id,
    find_reply_titles_by_user_id,
    search_replies,
    update_reply_content,
)
from .textutil import md5_hex
from .users import (
    create_user,
    delete_role_by_user_id,
    delete_user_by_id,
    find_user,
    find_user_by_id,
    find_user_role,
    find_users,
    update_user,
    update_user_avator,
    update_user_pass,
)
from .visitors import find_visitor_by_visitor_id, update_visitor_kefu

__all__ = [
    "DEFAULT_AVATAR",
    "post_kefu_avator",
    "post_kefu_pass",
    "post_kefu_client",
    "get_kefu_info",
    "get_kefu_info_all",
    "get_other_kefu_list",
    "post_trans_kefu",
    "get_kefu_info_setting",
    "post_kefu_register",
    "post_kefu_info",
    "get_kefu_list",
    "delete_kefu_info",
    "get_replys",
    "get_auto_replys",
    "post_reply",
    "post_reply_content",
    "post_reply_content_save",
    "del_reply_content",
    "del_reply_group",
    "post_reply_search",
]

DEFAULT_AVATAR = "/static/images/4.jpg"


def _ok(result: Any = None, msg: str = "ok") -> ApiResponse:
    return ApiResponse(200, msg, result)


def _to_int(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def _missing(**fields: str) -> list[str]:
    return [name for name, value in fields.items() if not value]


def post_kefu_avator(session: Session, kefu_name: str, avator: str) -> ApiResponse:
    """Change the avatar of the signed-in agent."""
    if not avator:
        return ApiResponse(400, "不能为空", "")
    update_user_avator(session, kefu_name, avator)
    return _ok("")


def post_kefu_pass(
    session: Session, kefu_name: str, new_pass: str, confirm_new_pass: str, old_pass: str
) -> ApiResponse:
    """Change the agent's password after checking the old one."""
    if new_pass != confirm_new_pass:
        return ApiResponse(400, "密码不一致", "")
    user = find_user(session, kefu_name)
    stored = user.password if user is not None else ""
    if stored != md5_hex(old_pass):
        return ApiResponse(400, "旧密码不正确", "")
    update_user_pass(session, kefu_name, md5_hex(new_pass))
    return _ok("")


def post_kefu_client(session: Session, kefu_name: str, client_id: str) -> ApiResponse:
    """Register a push client id for the agent."""
    if not client_id:
        return ApiResponse(400, "client_id不能为空")
    create_user_client(session, kefu_name, client_id)
    return _ok("")


def get_kefu_info(session: Session, kefu_name: str) -> ApiResponse:
    """Return the agent's avatar, names and id."""
    user = find_user(session, kefu_name)
    if user is None:
        info = {"avator": "", "username": "", "nickname": "", "uid": 0}
    else:
        info = {
            "avator": user.avator,
            "username": user.name,
            "nickname": user.nickname,
            "uid": user.id,
        }
    return _ok(info)


def get_kefu_info_all(session: Session, kefu_id: Any) -> ApiResponse:
    """Return the agent with its role name."""
    return _ok(find_user_role(session, kefu_id), "验证成功")


def get_other_kefu_list(hub: Hub, session: Session, kefu_id: Any) -> ApiResponse:
    """Return every other agent with its online status."""
    hub.ping_kefus()
    own_id = _to_int(kefu_id)
    result = []
    for kefu in find_users(session):
        if kefu.id == own_id:
            continue
        online = hub.kefus.get(kefu.name) is not None
        result.append(
            {
                "name": kefu.name,
                "nickname": kefu.nickname,
                "avator": kefu.avator,
                "status": "online" if online else "offline",
            }
        )
    return _ok(result)


def post_trans_kefu(
    hub: Hub, session: Session, kefu_id: str, visitor_id: str, current_kefu: str
) -> ApiResponse:
    """Hand a visitor over from ``current_kefu`` to the agent ``kefu_id``."""
    user = find_user(session, kefu_id)
    visitor = find_visitor_by_visitor_id(session, visitor_id)
    if user is None or visitor is None or not user.name or not visitor.name:
        return ApiResponse(400, "访客或客服不存在")
    update_visitor_kefu(session, visitor_id, kefu_id)
    hub.update_visitor_user(visitor_id, kefu_id)
    visitor_online(hub, session, kefu_id, visitor)
    visitor_offline(hub, session, current_kefu, visitor.visitor_id, visitor.name)
    visitor_notice(hub, visitor.visitor_id, "客服转接到" + user.nickname)
    return ApiResponse(200, "转移成功")


def get_kefu_info_setting(session: Session, kefu_id: Any) -> ApiResponse:
    """Return the agent with ``kefu_id`` and its role."""
    return _ok(find_user_by_id(session, kefu_id))


def post_kefu_register(session: Session, username: str, password: str, nickname: str) -> ApiResponse:
    """Create an agent account."""
    if not username or not password:
        return ApiResponse(400, "All fields are required", None)
    if find_user(session, username) is not None:
        return ApiResponse(409, "Username already exists", None)
    user_id = create_user(session, username, md5_hex(password), DEFAULT_AVATAR, nickname)
    if not user_id:
        return ApiResponse(500, "Registration Failed", None, status=500)
    return ApiResponse(200, "Registration successful", {"user_id": user_id})


def post_kefu_info(session: Session, kefu_name: str, password: str, avator: str, nickname: str) -> ApiResponse:
    """Update the agent's non-empty profile fields."""
    if password:
        password = md5_hex(password)
    if not kefu_name:
        return ApiResponse(400, "客服账号不能为空")
    update_user(session, kefu_name, password, avator, nickname)
    return _ok("")


def get_kefu_list(session: Session) -> ApiResponse:
    """Return every agent."""
    return _ok(find_users(session), "获取成功")


def delete_kefu_info(session: Session, kefu_id: Any) -> ApiResponse:
    """Delete an agent and its role links."""
    delete_user_by_id(session, kefu_id)
    delete_role_by_user_id(session, kefu_id)
    return _ok("", "删除成功")


def get_replys(session: Session, kefu_name: str) -> ApiResponse:
    """Return the agent's reply groups with their replies."""
    return _ok(find_replies_by_user_id(session, kefu_name))


def get_auto_replys(session: Session, kefu_id: str) -> ApiResponse:
    """Return the agent's reply groups with reply titles only."""
    return _ok(find_reply_titles_by_user_id(session, kefu_id))


def post_reply(session: Session, kefu_name: str, group_name: str) -> ApiResponse:
    """Create a reply group."""
    missing = _missing(group_name=group_name)
    if missing:
        return ApiResponse(400, "error:" + ", ".join(missing) + " is required")
    create_reply_group(session, group_name, kefu_name)
    return _ok()


def post_reply_content(
    session: Session, kefu_name: str, group_id: str, content: str, item_name: str
) -> ApiResponse:
    """Create a reply in a group."""
    missing = _missing(group_id=group_id, content=content, item_name=item_name)
    if missing:
        return ApiResponse(200, "error:" + ", ".join(missing) + " is required", status=400)
    create_reply_content(session, group_id, kefu_name, content, item_name)
    return _ok()


def post_reply_content_save(
    session: Session, kefu_name: str, reply_id: str, reply_title: str, reply_content: str
) -> ApiResponse:
    """Change the title and content of a reply."""
    if not reply_id or not reply_title or not reply_content:
        return ApiResponse(200, "参数错误!", status=400)
    update_reply_content(session, reply_id, kefu_name, reply_title, reply_content)
    return _ok()


def del_reply_content(session: Session, kefu_name: str, item_id: str) -> ApiResponse:
    """Delete a reply."""
    delete_reply_content(session, item_id, kefu_name)
    return _ok()


def del_reply_group(session: Session, kefu_name: str, group_id: str) -> ApiResponse:
    """Delete a reply group with its replies."""
    delete_reply_group(session, group_id, kefu_name)
    return _ok()


def post_reply_search(session: Session, kefu_name: str, search: str) -> ApiResponse:
    """Return the groups holding replies that contain ``search``."""
    if not search:
        return ApiResponse(400, "参数错误")
    return _ok(search_replies(session, kefu_name, search))