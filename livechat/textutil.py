"""String, hashing, identifier and file-existence helpers."""

import base64
import hashlib
import os
import string
import uuid
from typing import Any
from urllib.parse import parse_qs, urlsplit

__all__ = [
    "reverse",
    "reverse2",
    "int2str",
    "md5_hex",
    "sha256_hex",
    "base64_decode",
    "new_uuid",
    "is_file_exist",
    "is_file_not_exist",
    "get_url_arg",
]

_B64_ALPHABET = frozenset(string.ascii_letters + string.digits + "+/")


def reverse(s: str) -> str:
    """Return ``s`` with its characters in reverse order."""
    return s[::-1]


def reverse2(s: str) -> str:
    """Return ``s`` with its characters in reverse order."""
    return "".join(reversed(s))


def int2str(value: Any) -> str:
    """Format ``value`` in its default textual form."""
    if value is None:
        return "<nil>"
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def md5_hex(src: str) -> str:
    """Return the hex MD5 digest of ``src``."""
    return hashlib.md5(src.encode("utf-8")).hexdigest()


def sha256_hex(src: str) -> str:
    """Return the hex SHA-256 digest of ``src``."""
    return hashlib.sha256(src.encode("utf-8")).hexdigest()


def base64_decode(text: str) -> str:
    """Decode unpadded standard base64, keeping whatever decodes before an error."""
    text = text.replace("\r", "").replace("\n", "")
    valid_len = next((i for i, ch in enumerate(text) if ch not in _B64_ALPHABET), len(text))
    valid = text[:valid_len]
    if valid_len < len(text) or len(valid) % 4 == 1:
        valid = valid[: len(valid) // 4 * 4]
    if not valid:
        return ""
    raw = base64.b64decode(valid + "=" * (-len(valid) % 4))
    return raw.decode("utf-8", errors="replace")


def new_uuid() -> str:
    """Return a random version 4 UUID string."""
    return str(uuid.uuid4())


def is_file_exist(path: str | os.PathLike) -> bool:
    """Return whether ``path`` exists and is not empty."""
    try:
        info = os.stat(path)
    except FileNotFoundError:
        return False
    return info.st_size != 0


def is_file_not_exist(path: str | os.PathLike) -> bool:
    """Return whether ``path`` does not exist."""
    try:
        os.stat(path)
    except FileNotFoundError:
        return True
    return False


def get_url_arg(url: str, name: str) -> str:
    """Return the first value of query parameter ``name`` in ``url``, or ""."""
    return parse_qs(urlsplit(url).query, keep_blank_values=True).get(name, [""])[0]