"""网络工具: URL 协议校验"""

from __future__ import annotations

from urllib.parse import urlparse

from boxpm.core.exceptions import ValidationError

_ALLOWED_SCHEMES = frozenset(("file", "http", "https"))


def validate_url_scheme(url: str, *, context: str = "") -> str:
    """校验 URL 仅使用 file/http/https，返回小写的 scheme

    Raises:
        ValidationError: URL scheme 不在白名单内
    """
    scheme = urlparse(url).scheme.lower()
    if scheme not in _ALLOWED_SCHEMES:
        label = f" ({context})" if context else ""
        raise ValidationError(
            f"Unsupported URL scheme '{scheme}'{label}, "
            f"expected file/http/https: {url}"
        )
    return scheme
