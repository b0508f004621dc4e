"""NUR 文档解析

索引 (nur.json):
    {"version": "1.0", "modules": {"base64": "./modules/base64.json", ...}}

模块清单 (module.json):
    {"name": "base64", "latest": "1.0.1",
     "versions": {"1.0.1": {"description": "...", "entry-linux": "...",
                            "git": {"url": "...", "ref": "v1.0.1"},
                            "deps": {"other": "1.0.0"}}}}

解析是宽容的: 缺失字段为空串、未知字段忽略、非字符串值视为缺失。
格式错误返回空结构并记录告警，从不向上抛异常。
"""

from __future__ import annotations

import json
import logging
from typing import Any

from boxpm.core.models import ENTRY_FIELDS, GitRef, ModuleMetadata, VersionMetadata

logger = logging.getLogger(__name__)

_TOP_LEVEL_FIELDS = ("description", "author", "license", "repository", "latest")


def _load_object(text: str, what: str) -> dict[str, Any]:
    try:
        data = json.loads(text)
    except ValueError as e:
        logger.warning("%s 不是合法 JSON: %s", what, e)
        return {}
    if not isinstance(data, dict):
        logger.warning("%s 顶层不是 JSON 对象", what)
        return {}
    return data


def _str(obj: dict[str, Any], key: str) -> str:
    value = obj.get(key, "")
    return value if isinstance(value, str) else ""


def _str_map(value: Any) -> dict[str, str]:
    if not isinstance(value, dict):
        return {}
    return {k: v for k, v in value.items() if isinstance(v, str)}


def resolve_url(url: str, base_url: str) -> str:
    """以 "." 开头的相对地址直接拼接到 base_url（不做路径规范化）"""
    if url.startswith("."):
        return base_url + url[1:]
    return url


def parse_index(text: str, base_url: str) -> dict[str, str]:
    """解析 nur.json，返回 {模块名: 清单 URL}"""
    data = _load_object(text, "NUR index")
    modules = data.get("modules")
    if not isinstance(modules, dict):
        logger.warning("NUR index 格式无效: 缺少 'modules'")
        return {}
    return {
        name: resolve_url(url, base_url)
        for name, url in _str_map(modules).items()
    }


def parse_version(data: dict[str, Any]) -> VersionMetadata:
    meta = VersionMetadata(description=_str(data, "description"))
    for key, attr in ENTRY_FIELDS:
        setattr(meta, attr, _str(data, key))
    git = data.get("git")
    if isinstance(git, dict):
        meta.git = GitRef(url=_str(git, "url"), ref=_str(git, "ref"))
    meta.deps = _str_map(data.get("deps", data.get("dependencies")))
    return meta


def parse_module_metadata(name: str, text: str) -> ModuleMetadata:
    """解析 module.json；name 总是被设置，失败时其余字段为空"""
    metadata = ModuleMetadata(name=name)
    data = _load_object(text, f"manifest of {name}")
    if not data:
        return metadata

    for key in _TOP_LEVEL_FIELDS:
        setattr(metadata, key, _str(data, key))

    versions = data.get("versions")
    if isinstance(versions, dict):
        for version, body in versions.items():
            if isinstance(body, dict):
                metadata.versions[version] = parse_version(body)
    return metadata


def version_to_dict(meta: VersionMetadata) -> dict[str, Any]:
    result: dict[str, Any] = {}
    if meta.description:
        result["description"] = meta.description
    for key, attr in ENTRY_FIELDS:
        value = getattr(meta, attr)
        if value:
            result[key] = value
    if meta.git.url or meta.git.ref:
        result["git"] = {"url": meta.git.url, "ref": meta.git.ref}
    if meta.deps:
        result["deps"] = dict(meta.deps)
    return result


def module_metadata_to_dict(metadata: ModuleMetadata) -> dict[str, Any]:
    """序列化回 module.json 形状（空字段省略），与 parse_module_metadata 互逆"""
    result: dict[str, Any] = {"name": metadata.name}
    for key in _TOP_LEVEL_FIELDS:
        value = getattr(metadata, key)
        if value:
            result[key] = value
    result["versions"] = {
        version: version_to_dict(meta)
        for version, meta in metadata.versions.items()
    }
    return result
