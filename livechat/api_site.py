"""Handlers for site pages, notices, settings, roles, statistics and IP blocking."""

from __future__ import annotations

import hashlib
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any, Optional

from sqlalchemy.orm import Session

from .abouts import find_about_by_page, find_abouts, update_about
from .configs import (
    Config,
    find_config,
    find_config_by_user_id,
    find_configs_by_user_id,
    update_config,
)
from .ipblacks import (
    count_ips,
    create_ipblack,
    delete_ipblack_by_ip,
    find_ips,
    find_ips_by_kefu_id,
)
from .settings import PAGE_SIZE, VISITOR_PAGE_SIZE
from .textutil import int2str
from .users import find_roles, find_user, save_role
from .visitors import count_visitors_every_day

__all__ = [
    "ApiResponse",
    "get_about",
    "get_abouts",
    "post_about",
    "get_notice",
    "get_configs",
    "get_config",
    "post_config",
    "index_redirect",
    "get_role_list",
    "post_role",
    "get_chart_statistic",
    "post_ipblack",
    "del_ipblack",
    "get_ipblacks",
    "get_ipblacks_by_kefu_id",
    "check_weixin_sign",
]

CHART_DAYS = 46


@dataclass
class ApiResponse:
    """The JSON envelope a handler answers with, and its HTTP status."""

    code: int
    msg: str
    result: Any = None
    status: int = 200


def _ok(result: Any = None, msg: str = "ok") -> ApiResponse:
    return ApiResponse(200, msg, result)


def _to_int(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def get_about(session: Session, page: str) -> ApiResponse:
    """Return a page's content; the empty page name means "index"."""
    return _ok(find_about_by_page(session, page or "index"))


def get_abouts(session: Session) -> ApiResponse:
    """Return every page entry."""
    return _ok(find_abouts(session))


def post_about(session: Session, form: Mapping[str, str]) -> ApiResponse:
    """Update the index page from submitted form fields."""
    field = {
        name: form.get(name, "") or ""
        for name in (
            "title_cn", "title_en", "keywords_cn", "keywords_en",
            "desc_cn", "desc_en", "css_js", "html_cn", "html_en",
        )
    }
    if not all(field[name] for name in ("title_cn", "title_en", "html_cn", "html_en")):
        return ApiResponse(400, "error")
    update_about(session, "index", **field)
    return _ok("")


def get_notice(session: Session, kefu_id: str) -> ApiResponse:
    """Return an agent's welcome and offline messages, notice and profile."""
    user = find_user(session, kefu_id)
    if user is None:
        return ApiResponse(400, "user not found")

    def value(key: str) -> str:
        config = find_config_by_user_id(session, user.name, key)
        return config.conf_value if config is not None else ""

    return _ok(
        {
            "welcome": value("WelcomeMessage"),
            "offline": value("OfflineMessage"),
            "avatar": user.avator,
            "nickname": user.nickname,
            "allNotice": value("AllNotice"),
        }
    )


def get_configs(session: Session, kefu_name: str) -> ApiResponse:
    """Return an agent's configuration entries."""
    return _ok(find_configs_by_user_id(session, kefu_name))


def get_config(custom_configs: Iterable[Config], key: str) -> ApiResponse:
    """Return the loaded configuration value of ``key``."""
    return _ok(find_config(custom_configs, key))


def post_config(session: Session, kefu_name: str, key: str, value: str) -> ApiResponse:
    """Set one of an agent's configuration entries."""
    if not key or not value:
        return ApiResponse(400, "error")
    update_config(session, kefu_name, key, value)
    return _ok("")


def index_redirect(custom_configs: Iterable[Config]) -> str:
    """Return the language-specific index path to redirect to."""
    jump = find_config(custom_configs, "JumpLang")
    return "/index_" + ("cn" if jump == "cn" else "en")


def get_role_list(session: Session) -> ApiResponse:
    """Return every role."""
    return _ok(find_roles(session), "获取成功")


def post_role(session: Session, role_id: str, method: str, name: str, path: str) -> ApiResponse:
    """Change a role's name, methods and paths."""
    if not role_id or not method or not name or not path:
        return ApiResponse(400, "参数不能为空")
    save_role(session, role_id, name, method, path)
    return ApiResponse(200, "修改成功")


def get_chart_statistic(session: Session, kefu_name: str, today: date) -> ApiResponse:
    """Return visitor counts for each of the last 46 days, today first."""
    counts = {item.day: int2str(item.num) for item in count_visitors_every_day(session, kefu_name)}
    days = []
    for offset in range(CHART_DAYS):
        day = (today - timedelta(days=offset)).strftime("%y-%m-%d")
        days.append({"day": day, "num": counts.get(day, "")})
    return _ok(days)


def post_ipblack(session: Session, ip: str, kefu_name: str) -> ApiResponse:
    """Block an IP address."""
    if not ip:
        return ApiResponse(400, "请输入IP!")
    create_ipblack(session, ip, kefu_name)
    return ApiResponse(200, "添加黑名单成功!")


def del_ipblack(session: Session, ip: str) -> ApiResponse:
    """Unblock an IP address."""
    if not ip:
        return ApiResponse(400, "请输入IP!")
    delete_ipblack_by_ip(session, ip)
    return ApiResponse(200, "删除黑名单成功!")


def get_ipblacks(session: Session, page: Any) -> ApiResponse:
    """Return one page of blocked addresses with the total count."""
    number = _to_int(page) or 1
    return _ok(
        {
            "list": find_ips(session, number, VISITOR_PAGE_SIZE),
            "count": count_ips(session),
            "pagesize": PAGE_SIZE,
        }
    )


def get_ipblacks_by_kefu_id(session: Session, kefu_name: str) -> ApiResponse:
    """Return the addresses an agent blocked."""
    return _ok(find_ips_by_kefu_id(session, kefu_name))


def check_weixin_sign(
    token: str, signature: str, timestamp: str, nonce: str, echostr: str
) -> Optional[str]:
    """Return ``echostr`` when the SHA-1 of the sorted parameters matches ``signature``."""
    digest = hashlib.sha1("".join(sorted([token, timestamp, nonce])).encode("utf-8")).hexdigest()
    return echostr if digest == signature else None