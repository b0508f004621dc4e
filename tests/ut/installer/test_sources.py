"""git 源与临时目录测试"""

from __future__ import annotations

from pathlib import Path

import pytest

from boxpm.core.exceptions import InstallError, ValidationError
from boxpm.installer.sources import MAX_TEMP_ATTEMPTS, GitSource, allocate_temp_dir


class TestAllocateTempDir:
    def test_first_free_index(self, tmp_path: Path) -> None:
        (tmp_path / ".tmp0").mkdir()
        (tmp_path / ".tmp1").mkdir()
        assert allocate_temp_dir(tmp_path) == tmp_path / ".tmp2"
        assert (tmp_path / ".tmp2").is_dir()

    def test_creates_parent(self, tmp_path: Path) -> None:
        assert allocate_temp_dir(tmp_path / "a" / "b") == tmp_path / "a" / "b" / ".tmp0"

    def test_exhausted(self, tmp_path: Path) -> None:
        for n in range(MAX_TEMP_ATTEMPTS):
            (tmp_path / f".tmp{n}").mkdir()
        with pytest.raises(InstallError, match="Failed to create unique temp directory"):
            allocate_temp_dir(tmp_path)


class TestGitSource:
    def test_clone_argv(self, tmp_path: Path, fake_executor) -> None:
        dest = tmp_path / "repo"
        GitSource(executor=fake_executor).clone("https://g/x", dest)
        assert fake_executor.calls == [
            (["git", "clone", "--", "https://g/x", str(dest)], str(tmp_path)),
        ]

    def test_clone_failure(self, tmp_path: Path, make_executor) -> None:
        git = GitSource(executor=make_executor(fail_on=("clone",)))
        with pytest.raises(InstallError, match="Failed to clone repository https://g/x"):
            git.clone("https://g/x", tmp_path / "repo")

    def test_checkout(self, tmp_path: Path, fake_executor) -> None:
        GitSource(executor=fake_executor).checkout(tmp_path, "release/1.0")
        assert fake_executor.calls == [(["git", "checkout", "release/1.0"], str(tmp_path))]

    def test_checkout_failure(self, tmp_path: Path, make_executor) -> None:
        git = GitSource(executor=make_executor(fail_on=("checkout",)))
        with pytest.raises(InstallError, match="Failed to checkout version v9"):
            git.checkout(tmp_path, "v9")

    @pytest.mark.parametrize("ref", ["-b", "v1; rm -rf /", "a b", "$(id)"])
    def test_unsafe_ref(self, tmp_path: Path, fake_executor, ref: str) -> None:
        with pytest.raises(ValidationError, match="Invalid git ref"):
            GitSource(executor=fake_executor).checkout(tmp_path, ref)
        assert fake_executor.calls == []
