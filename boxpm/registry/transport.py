"""注册表传输层

支持三种 URL:
- file://   直接读取本地文件（去掉前缀即为路径）
- http(s):// urllib 下载，跟随重定向并校验 TLS 证书（标准库默认行为）

任何失败都返回空字节串，由上层决定如何报告。不重试、不缓存。
"""

from __future__ import annotations

import logging
import urllib.error
import urllib.request
from pathlib import Path

from boxpm.core.exceptions import ValidationError
from boxpm.utils.net import validate_url_scheme

logger = logging.getLogger(__name__)

USER_AGENT = "Box/1.0"
FILE_PREFIX = "file://"


class Transport:
    """file / http / https 下载器"""

    def __init__(self, user_agent: str = USER_AGENT, timeout: float | None = None) -> None:
        self.user_agent = user_agent
        self.timeout = timeout

    def fetch(self, url: str) -> bytes:
        """获取 url 的完整内容，失败返回 b"" """
        try:
            scheme = validate_url_scheme(url, context="registry download")
        except ValidationError as e:
            logger.error("%s", e)
            return b""

        if scheme == "file":
            return self._read_file(url)
        return self._http_get(url)

    def _read_file(self, url: str) -> bytes:
        path = Path(url[len(FILE_PREFIX):])
        try:
            return path.read_bytes()
        except OSError as e:
            logger.warning("读取本地文件失败: %s (%s)", path, e)
            return b""

    def _http_get(self, url: str) -> bytes:
        req = urllib.request.Request(url, headers={"User-Agent": self.user_agent})
        try:
            if self.timeout is None:
                resp = urllib.request.urlopen(req)  # nosec B310 - scheme 已校验
            else:
                resp = urllib.request.urlopen(req, timeout=self.timeout)  # nosec B310
            with resp:
                return resp.read()
        except (urllib.error.HTTPError, urllib.error.URLError, OSError) as e:
            logger.warning("下载失败: %s - %s", url, e)
            return b""
