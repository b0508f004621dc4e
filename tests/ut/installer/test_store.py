"""模块存储测试"""

from __future__ import annotations

import os
import stat
from pathlib import Path

import pytest

from boxpm.builder.builder import write_module_metadata
from boxpm.core.exceptions import ValidationError
from boxpm.core.models import Scope
from boxpm.core.platform import OS
from boxpm.installer.store import Store, remove_tree, validate_module_name


class TestStore:
    def test_roots(self, tmp_path: Path) -> None:
        store = Store(global_dir=tmp_path / "g", local_dir=tmp_path / "l")
        assert store.root(Scope.GLOBAL) == tmp_path / "g"
        assert store.module_dir("m", Scope.LOCAL) == tmp_path / "l" / "m"

    def test_defaults_from_config(self, tmp_path: Path) -> None:
        store = Store()
        assert store.global_dir == tmp_path / "home" / ".box" / "modules"
        assert store.local_dir == Path(".box/modules")

    def test_list_installed(self, tmp_path: Path) -> None:
        store = Store(global_dir=tmp_path / "g", local_dir=tmp_path / "l")
        assert store.list_installed(Scope.GLOBAL) == []
        for name in ("zlib", "base64", ".tmp0", "not a module"):
            (tmp_path / "g" / name).mkdir(parents=True)
        (tmp_path / "g" / "stray.txt").write_text("")
        assert store.list_installed(Scope.GLOBAL) == ["base64", "zlib"]

    def test_read_metadata(self, tmp_path: Path) -> None:
        store = Store(global_dir=tmp_path / "g", local_dir=tmp_path / "l")
        module_dir = tmp_path / "g" / "base64"
        module_dir.mkdir(parents=True)
        write_module_metadata("base64", "1.0.1", module_dir, host=OS.LINUX)
        record = store.read_metadata("base64", Scope.GLOBAL)
        assert record is not None
        assert record.version == "1.0.1"
        assert record.library == "base64.so"

    def test_read_metadata_invalid(self, tmp_path: Path) -> None:
        store = Store(global_dir=tmp_path / "g", local_dir=tmp_path / "l")
        assert store.read_metadata("none", Scope.GLOBAL) is None
        (tmp_path / "g" / "bad").mkdir(parents=True)
        (tmp_path / "g" / "bad" / "metadata.json").write_text("[1, 2]")
        assert store.read_metadata("bad", Scope.GLOBAL) is None

    def test_remove(self, tmp_path: Path) -> None:
        store = Store(global_dir=tmp_path / "g", local_dir=tmp_path / "l")
        (tmp_path / "g" / "m" / "sub").mkdir(parents=True)
        assert store.remove("m", Scope.GLOBAL) is True
        assert not store.is_installed("m", Scope.GLOBAL)


class TestRemoveTree:
    def test_missing_is_ok(self, tmp_path: Path) -> None:
        assert remove_tree(tmp_path / "absent") is True

    def test_read_only_files(self, tmp_path: Path) -> None:
        target = tmp_path / "repo" / ".git" / "objects"
        target.mkdir(parents=True)
        obj = target / "ab12"
        obj.write_text("blob")
        os.chmod(obj, stat.S_IREAD)
        assert remove_tree(tmp_path / "repo") is True
        assert not (tmp_path / "repo").exists()


class TestValidateModuleName:
    @pytest.mark.parametrize("name", ["base64", "my-mod_1.0", "c++", "..."])
    def test_accepts(self, name: str) -> None:
        assert validate_module_name(name) == name

    @pytest.mark.parametrize("name", ["", ".", "..", "a/b", "a\\b", "../x", "x\n", "a b"])
    def test_rejects(self, name: str) -> None:
        with pytest.raises(ValidationError, match="Invalid module name"):
            validate_module_name(name)

    def test_module_dir_guarded(self, tmp_path: Path) -> None:
        store = Store(global_dir=tmp_path / "g", local_dir=tmp_path / "l")
        with pytest.raises(ValidationError):
            store.module_dir("..", Scope.GLOBAL)
        with pytest.raises(ValidationError):
            store.remove("", Scope.GLOBAL)
