"""项目清单 .quark 解析与改写测试"""

from __future__ import annotations

import os
import stat
from pathlib import Path

import pytest

from boxpm.core.quark import (
    find_project_manifest,
    parse_dependencies,
    read_manifest,
    update_dependency,
    write_dependency,
)
from boxpm.utils.yaml_io import atomic_write

SAMPLE = (
    "[package]\n"
    "name=demo\n"
    "version=0.1.0\n"
    "\n"
    "[dependencies]\n"
    "base64=1.0.0\n"
    "\n"
    "[build]\n"
    "target=native\n"
)


class TestParseDependencies:
    def test_basic(self) -> None:
        assert parse_dependencies(SAMPLE) == {"base64": "1.0.0"}

    def test_quotes_comments_and_whitespace(self) -> None:
        text = (
            "[dependencies]\n"
            "# comment\n"
            '  crypto64 = "*"\n'
            '"json" = "2.0.0"\n'
            "noequals\n"
        )
        assert parse_dependencies(text) == {"crypto64": "*", "json": "2.0.0"}

    def test_other_sections_ignored(self) -> None:
        text = "[package]\nname=demo\n[dev]\nfoo=1\n"
        assert parse_dependencies(text) == {}

    def test_crlf(self) -> None:
        assert parse_dependencies("[dependencies]\r\nbase64=1.0.1\r\n") == {"base64": "1.0.1"}


class TestUpdateDependency:
    def test_replace_in_place(self) -> None:
        out = update_dependency(SAMPLE, "base64", "1.0.1")
        assert out == SAMPLE.replace("base64=1.0.0", "base64=1.0.1")

    def test_insert_before_next_section(self) -> None:
        out = update_dependency(SAMPLE, "crypto64", "2.0.0")
        assert out == SAMPLE.replace(
            "base64=1.0.0\n", "base64=1.0.0\ncrypto64=2.0.0\n",
        )
        assert parse_dependencies(out) == {"base64": "1.0.0", "crypto64": "2.0.0"}

    def test_idempotent(self) -> None:
        once = update_dependency(SAMPLE, "crypto64", "2.0.0")
        assert update_dependency(once, "crypto64", "2.0.0") == once

    def test_missing_section_appended(self) -> None:
        text = "[package]\nname=demo\n"
        out = update_dependency(text, "base64", "1.0.1")
        assert out == "[package]\nname=demo\n\n[dependencies]\nbase64=1.0.1\n"

    def test_missing_trailing_newline(self) -> None:
        out = update_dependency("[package]\nname=demo", "base64", "1.0.1")
        assert out == "[package]\nname=demo\n\n[dependencies]\nbase64=1.0.1\n"

    def test_empty_file(self) -> None:
        assert update_dependency("", "base64", "1.0.1") == "[dependencies]\nbase64=1.0.1\n"

    def test_empty_section(self) -> None:
        out = update_dependency("[dependencies]\n[build]\n", "base64", "1.0.1")
        assert out == "[dependencies]\nbase64=1.0.1\n[build]\n"

    def test_crlf_preserved(self) -> None:
        text = "[package]\r\nname=demo\r\n\r\n[dependencies]\r\nbase64=1.0.0\r\n"
        out = update_dependency(text, "json", "1.2.0")
        assert out == text + "json=1.2.0\r\n"

    def test_same_key_other_section_untouched(self) -> None:
        text = "[build]\nbase64=keep\n[dependencies]\n"
        out = update_dependency(text, "base64", "1.0.1")
        assert "base64=keep\n" in out
        assert parse_dependencies(out) == {"base64": "1.0.1"}

    def test_other_bytes_preserved(self) -> None:
        text = "# header comment  \n[package]\nname = demo   \n\n[dependencies]\nbase64=1.0.0\n"
        out = update_dependency(text, "base64", "1.0.1")
        assert out == text.replace("base64=1.0.0", "base64=1.0.1")


class TestManifestFile:
    def test_write_dependency(self, tmp_path: Path) -> None:
        path = tmp_path / ".quark"
        path.write_bytes(SAMPLE.encode("utf-8"))

        assert write_dependency(path, "base64", "1.0.1") is True
        assert write_dependency(path, "base64", "1.0.1") is False
        assert parse_dependencies(read_manifest(path))["base64"] == "1.0.1"

    def test_write_dependency_keeps_crlf(self, tmp_path: Path) -> None:
        path = tmp_path / ".quark"
        path.write_bytes(b"[dependencies]\r\nbase64=1.0.0\r\n")
        write_dependency(path, "json", "1.2.0")
        assert path.read_bytes() == b"[dependencies]\r\nbase64=1.0.0\r\njson=1.2.0\r\n"

    def test_no_temp_files_left(self, tmp_path: Path) -> None:
        path = tmp_path / ".quark"
        path.write_text(SAMPLE)
        write_dependency(path, "json", "1.2.0")
        assert sorted(p.name for p in tmp_path.iterdir()) == [".quark"]

    def test_find_exact_first(self, tmp_path: Path) -> None:
        (tmp_path / "app.quark").write_text("")
        (tmp_path / ".quark").write_text("")
        assert find_project_manifest(tmp_path) == tmp_path / ".quark"

    def test_find_first_sorted(self, tmp_path: Path) -> None:
        (tmp_path / "b.quark").write_text("")
        (tmp_path / "a.quark").write_text("")
        assert find_project_manifest(tmp_path) == tmp_path / "a.quark"

    def test_find_none(self, tmp_path: Path) -> None:
        assert find_project_manifest(tmp_path) is None


class TestManifestEncoding:
    def test_non_utf8_bytes_preserved(self, tmp_path: Path) -> None:
        path = tmp_path / ".quark"
        path.write_bytes(b"[package]\nname=caf\xe9\n\n[dependencies]\n")

        assert parse_dependencies(read_manifest(path)) == {}
        assert write_dependency(path, "base64", "1.0.1") is True
        assert path.read_bytes() == b"[package]\nname=caf\xe9\n\n[dependencies]\nbase64=1.0.1\n"
        assert parse_dependencies(read_manifest(path)) == {"base64": "1.0.1"}


@pytest.mark.skipif(os.name != "posix", reason="POSIX 文件权限")
class TestManifestMode:
    @pytest.mark.parametrize("mode", [0o644, 0o664, 0o600])
    def test_mode_preserved(self, tmp_path: Path, mode: int) -> None:
        path = tmp_path / ".quark"
        path.write_text(SAMPLE)
        path.chmod(mode)

        write_dependency(path, "json", "1.2.0")
        assert stat.S_IMODE(path.stat().st_mode) == mode

    def test_new_file_follows_umask(self, tmp_path: Path) -> None:
        mask = os.umask(0o022)
        try:
            target = tmp_path / "m" / "metadata.json"
            atomic_write(target, "{}\n")
        finally:
            os.umask(mask)
        assert stat.S_IMODE(target.stat().st_mode) == 0o644
