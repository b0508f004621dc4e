"""项目清单 (.quark) 读写

格式为按段划分的 key=value 文本:

    [package]
    name=demo

    [dependencies]
    base64=1.0.1
    crypto64="*"

只解析 / 改写 [dependencies] 段，其他段逐字节保留。
"""

from __future__ import annotations

import logging
from pathlib import Path

from boxpm.utils.yaml_io import atomic_write

logger = logging.getLogger(__name__)

PROJECT_MANIFEST = ".quark"
DEPENDENCIES_HEADER = "[dependencies]"


def _strip_quotes(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] == '"':
        return value[1:-1]
    return value


def _is_header(stripped: str) -> bool:
    return stripped.startswith("[")


def _entry_key(stripped: str) -> str | None:
    """key=value 行的键，非条目行返回 None"""
    if not stripped or stripped.startswith("#") or "=" not in stripped:
        return None
    return _strip_quotes(stripped.split("=", 1)[0].strip())


def _line_ending(line: str) -> str:
    return line[len(line.rstrip("\r\n")):]


def parse_dependencies(text: str) -> dict[str, str]:
    """解析 [dependencies] 段，返回 {name: version}（保持文件顺序）

    值两侧的空白和双引号会被去掉；"*" 或空值原样返回，由调用方决定含义。
    """
    deps: dict[str, str] = {}
    in_deps = False
    for raw in text.splitlines():
        stripped = raw.strip()
        if not stripped or stripped.startswith("#"):
            continue
        if _is_header(stripped):
            in_deps = stripped == DEPENDENCIES_HEADER
            continue
        if not in_deps:
            continue
        key = _entry_key(stripped)
        if key:
            deps[key] = _strip_quotes(stripped.split("=", 1)[1].strip())
    return deps


def update_dependency(text: str, name: str, version: str) -> str:
    """把 name=version 写入 [dependencies] 段，返回新的文件内容

    - 段内已有同名条目: 原位替换（保留该行原有换行符）
    - 没有条目: 插入到段内最后一个非空行之后（仍在下一个段头之前）
    - 没有该段: 文件末尾追加空行 + 段头 + 条目
    重复调用结果不变。
    """
    lines = text.splitlines(keepends=True)
    newline = "\r\n" if lines and lines[0].endswith("\r\n") else "\n"
    entry = f"{name}={version}"

    in_deps = False
    found = False
    out: list[str] = []
    for line in lines:
        stripped = line.strip()
        if _is_header(stripped):
            in_deps = stripped == DEPENDENCIES_HEADER
        elif in_deps and _entry_key(stripped) == name:
            out.append(entry + _line_ending(line))
            found = True
            continue
        out.append(line)

    if found:
        return "".join(out)

    header_idx = next(
        (i for i, line in enumerate(out) if line.strip() == DEPENDENCIES_HEADER),
        None,
    )
    if header_idx is None:
        if out:
            if not _line_ending(out[-1]):
                out[-1] += newline
            out.append(newline)
        out.append(DEPENDENCIES_HEADER + newline)
        out.append(entry + newline)
        return "".join(out)

    section_end = len(out)
    for i in range(header_idx + 1, len(out)):
        if _is_header(out[i].strip()):
            section_end = i
            break

    insert_at = header_idx + 1
    for i in range(header_idx + 1, section_end):
        if out[i].strip():
            insert_at = i + 1

    if not _line_ending(out[insert_at - 1]):
        out[insert_at - 1] += newline
    out.insert(insert_at, entry + newline)
    return "".join(out)


def read_manifest(path: Path) -> str:
    # newline="" 保留原始换行符，写回时不改动其他行
    # surrogateescape: 非 UTF-8 字节不报错，经 atomic_write 原样写回
    with open(path, encoding="utf-8", errors="surrogateescape", newline="") as f:
        return f.read()


def write_dependency(path: Path, name: str, version: str) -> bool:
    """读取 → 更新 → 原子写回；返回文件内容是否发生变化"""
    old = read_manifest(path)
    new = update_dependency(old, name, version)
    if new == old:
        logger.info("%s 中依赖已是最新: %s=%s", path, name, version)
        return False
    atomic_write(path, new)
    logger.info("已更新 %s: %s=%s", path, name, version)
    return True


def find_project_manifest(directory: Path) -> Path | None:
    """在目录中查找项目清单: 优先 .quark，否则取排序后第一个 *.quark 文件"""
    exact = directory / PROJECT_MANIFEST
    if exact.is_file():
        return exact
    if not directory.is_dir():
        return None
    candidates = sorted(
        p for p in directory.iterdir()
        if p.is_file() and p.name.endswith(".quark")
    )
    return candidates[0] if candidates else None
