"""Editable content of the public site pages."""

from typing import Any, Optional

from sqlalchemy import String, Text, select, update
from sqlalchemy.orm import Mapped, Session, mapped_column

from .db import Base

__all__ = [
    "About",
    "find_abouts",
    "find_about_by_page",
    "find_about_by_page_language",
    "update_about",
]

_LOCALISED = ("title", "keywords", "desc", "html")
_TEXT_FIELDS = tuple(f"{name}_{lang}" for name in _LOCALISED for lang in ("cn", "en")) + ("css_js",)


class About(Base):
    """Title, keywords, description and HTML of a page in two languages."""

    __tablename__ = "about"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    title_cn: Mapped[str] = mapped_column(String(255), default="")
    title_en: Mapped[str] = mapped_column(String(255), default="")
    keywords_cn: Mapped[str] = mapped_column(String(1024), default="")
    keywords_en: Mapped[str] = mapped_column(String(1024), default="")
    desc_cn: Mapped[str] = mapped_column(Text, default="")
    desc_en: Mapped[str] = mapped_column(Text, default="")
    css_js: Mapped[str] = mapped_column(Text, default="")
    html_cn: Mapped[str] = mapped_column(Text, default="")
    html_en: Mapped[str] = mapped_column(Text, default="")
    page: Mapped[str] = mapped_column(String(64), default="", index=True)


def find_abouts(session: Session) -> list[About]:
    """Return every page entry, oldest first."""
    return list(session.scalars(select(About).order_by(About.id)).all())


def find_about_by_page(session: Session, page: Any) -> Optional[About]:
    """Return the entry of ``page``, or None."""
    return session.scalars(
        select(About).where(About.page == str(page)).order_by(About.id).limit(1)
    ).first()


def find_about_by_page_language(session: Session, page: Any, lang: str) -> Optional[About]:
    """Return a detached copy of ``page`` holding only the CSS/JS and one language.

    ``lang`` "en" picks English; anything else, the empty string included, picks Chinese.
    """
    about = find_about_by_page(session, page)
    if about is None:
        return None
    suffix = "en" if lang == "en" else "cn"
    values = dict.fromkeys(_TEXT_FIELDS, "")
    values["css_js"] = about.css_js or ""
    for name in _LOCALISED:
        key = f"{name}_{suffix}"
        values[key] = getattr(about, key) or ""
    return About(page=about.page, **values)


def update_about(
    session: Session,
    page: str,
    title_cn: str,
    title_en: str,
    keywords_cn: str,
    keywords_en: str,
    desc_cn: str,
    desc_en: str,
    css_js: str,
    html_cn: str,
    html_en: str,
) -> None:
    """Update the non-empty fields of ``page``."""
    fields = {
        "title_cn": title_cn,
        "title_en": title_en,
        "keywords_cn": keywords_cn,
        "keywords_en": keywords_en,
        "desc_cn": desc_cn,
        "desc_en": desc_en,
        "css_js": css_js,
        "html_cn": html_cn,
        "html_en": html_en,
    }
    values = {key: value for key, value in fields.items() if value}
    if not values:
        return
    session.execute(update(About).where(About.page == page).values(**values))