"""测试公共夹具: 隔离配置、本地 file:// 注册表、fake 执行器、伪 Neutron 运行时"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from boxpm.core.config import reset_config
from boxpm.utils.logger import reset_logging
from boxpm.utils.shell import CommandResult


@pytest.fixture(autouse=True)
def _isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    """每个用例使用独立的 HOME，且不受宿主机 Box / Neutron 环境变量影响"""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("USERPROFILE", str(home))
    for var in ("BOX_REGISTRY_URL", "BOX_NATIVE_SHIM", "BOX_CONFIG", "NEUTRON_HOME", "MSYSTEM"):
        monkeypatch.delenv(var, raising=False)
    reset_config()
    yield
    reset_config()
    reset_logging()


class FakeNur:
    """在磁盘上构造一个 file:// 形式的 NUR 注册表"""

    def __init__(self, root: Path) -> None:
        self.root = root
        self.modules: dict[str, str] = {}
        (root / "modules").mkdir(parents=True)
        (root / "bin").mkdir()
        self._write_index()

    @property
    def base_url(self) -> str:
        return f"file://{self.root.as_posix()}"

    def _write_index(self) -> None:
        index = {"version": "1.0", "modules": self.modules}
        (self.root / "nur.json").write_text(json.dumps(index), encoding="utf-8")

    def add_module(self, name: str, manifest: dict) -> None:
        (self.root / "modules" / f"{name}.json").write_text(
            json.dumps({"name": name, **manifest}), encoding="utf-8",
        )
        self.modules[name] = f"./modules/{name}.json"
        self._write_index()

    def add_binary(self, filename: str, data: bytes) -> str:
        path = self.root / "bin" / filename
        path.write_bytes(data)
        return f"file://{path.as_posix()}"


@pytest.fixture()
def nur(tmp_path: Path) -> FakeNur:
    return FakeNur(tmp_path / "nur")


class FakeExecutor:
    """模拟 git 与编译器

    - git clone: 在目标目录生成 native.cpp
    - 编译器: 在 -o / /Fe: 指定的位置写出假共享库
    - fail_on 中列出的步骤 ("clone" / "checkout" / "compile") 返回非零
    """

    LIBRARY_BYTES = b"\x7fELF fake shared object"

    def __init__(self, fail_on: tuple[str, ...] = ()) -> None:
        self.fail_on = fail_on
        self.calls: list[tuple[list[str], str]] = []

    def execute(self, cmd, *, cwd=".", env=None, timeout=None):  # type: ignore[no-untyped-def]
        argv = list(cmd) if isinstance(cmd, list) else cmd.split()
        self.calls.append((argv, cwd))

        if argv[:2] == ["git", "clone"]:
            if "clone" in self.fail_on:
                return CommandResult(128, "", "fatal: repository not found")
            dest = Path(argv[-1])
            dest.mkdir(parents=True)
            (dest / "native.cpp").write_text("// module source\n")
            return CommandResult(0, "", "")

        if argv[:2] == ["git", "checkout"]:
            if "checkout" in self.fail_on:
                return CommandResult(1, "", "error: pathspec did not match")
            return CommandResult(0, "", "")

        if "compile" in self.fail_on:
            return CommandResult(1, "", "error: expected ';'")
        output = self._output_path(argv)
        if output is not None:
            output.parent.mkdir(parents=True, exist_ok=True)
            output.write_bytes(self.LIBRARY_BYTES)
        return CommandResult(0, "", "")

    @staticmethod
    def _output_path(argv: list[str]) -> Path | None:
        if "-o" in argv:
            return Path(argv[argv.index("-o") + 1])
        for arg in argv:
            if arg.startswith("/Fe:"):
                return Path(arg[len("/Fe:"):])
        return None

    def commands(self, tool: str) -> list[list[str]]:
        return [argv for argv, _ in self.calls if argv[0] == tool]


@pytest.fixture()
def fake_executor() -> FakeExecutor:
    return FakeExecutor()


@pytest.fixture()
def neutron_root(tmp_path: Path) -> Path:
    """伪 Neutron 运行时: 头文件哨兵 + build 目录 + native shim"""
    root = tmp_path / "neutron"
    (root / "include" / "core").mkdir(parents=True)
    (root / "include" / "core" / "neutron.h").write_text("// neutron api\n")
    (root / "build").mkdir()
    (root / "src").mkdir()
    (root / "src" / "native_shim.cpp").write_text("// shim\n")
    return root


@pytest.fixture()
def make_executor():
    """按需构造带失败注入的 FakeExecutor"""
    return FakeExecutor
