"""NUR (Neutron User Repository) 注册表客户端

职责:
- 拉取并缓存索引 nur.json（模块名 -> 清单 URL）
- 拉取单个模块清单并解析为 ModuleMetadata
- 名称搜索 / 列表
- 通用下载（预编译二进制也走这里）
"""

from __future__ import annotations

import logging

from boxpm.core.models import ModuleMetadata
from boxpm.registry.parser import parse_index, parse_module_metadata
from boxpm.registry.transport import Transport

logger = logging.getLogger(__name__)

INDEX_FILE = "nur.json"


class Registry:
    """NUR 客户端，所有公开方法都不抛异常"""

    def __init__(self, base_url: str = "", transport: Transport | None = None) -> None:
        if not base_url:
            from boxpm.core.config import get_config
            base_url = get_config().registry_url
        self.base_url = base_url.rstrip("/")
        self.transport = transport or Transport()
        self._index: dict[str, str] = {}
        self._loaded = False

    @property
    def index_url(self) -> str:
        return f"{self.base_url}/{INDEX_FILE}"

    def download(self, url: str) -> bytes:
        """下载 url 内容，任何失败返回 b"" """
        return self.transport.fetch(url)

    def download_text(self, url: str) -> str:
        data = self.download(url)
        return data.decode("utf-8", errors="replace") if data else ""

    def fetch_index(self) -> bool:
        """拉取索引；已成功加载过则直接返回 True"""
        if self._loaded:
            return True

        logger.info("拉取 NUR 索引: %s", self.index_url)
        content = self.download_text(self.index_url)
        if not content:
            logger.error("拉取 NUR 索引失败: %s", self.index_url)
            return False

        index = parse_index(content, self.base_url)
        if not index:
            return False
        self._index = index
        self._loaded = True
        logger.info("已加载 %d 个模块", len(index))
        return True

    def module_url(self, name: str) -> str:
        return self._index.get(name, "")

    def fetch_module_metadata(self, name: str) -> ModuleMetadata:
        """拉取模块清单；未知模块或拉取 / 解析失败时仅 name 有值"""
        url = self.module_url(name)
        if not url:
            logger.warning("模块不在注册表中: %s", name)
            return ModuleMetadata(name=name)

        logger.info("拉取模块清单: %s <- %s", name, url)
        content = self.download_text(url)
        if not content:
            logger.error("拉取模块清单失败: %s", url)
            return ModuleMetadata(name=name)
        return parse_module_metadata(name, content)

    def search(self, query: str) -> list[str]:
        """按名称大小写无关的子串匹配"""
        needle = query.lower()
        return sorted(name for name in self._index if needle in name.lower())

    def list_modules(self) -> list[str]:
        return sorted(self._index)
