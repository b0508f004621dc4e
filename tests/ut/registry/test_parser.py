"""NUR 索引 / 模块清单解析测试"""

from __future__ import annotations

import json

from boxpm.registry.parser import (
    module_metadata_to_dict,
    parse_index,
    parse_module_metadata,
    resolve_url,
)

MANIFEST = {
    "name": "base64",
    "description": "Base64 encoding",
    "author": "neutron",
    "license": "MIT",
    "repository": "https://github.com/neutron-modules/base64",
    "latest": "1.0.1",
    "versions": {
        "1.0.0": {
            "description": "first release",
            "entry-linux": "https://example.com/base64-1.0.0.so",
            "entry-win": "https://example.com/base64-1.0.0.dll",
        },
        "1.0.1": {
            "git": {"url": "https://github.com/neutron-modules/base64", "ref": "v1.0.1"},
            "deps": {"strings": "0.3.0"},
        },
    },
}


class TestResolveUrl:
    def test_relative(self) -> None:
        assert resolve_url("./modules/a.json", "file:///nur") == "file:///nur/modules/a.json"

    def test_absolute_unchanged(self) -> None:
        assert resolve_url("https://x/a.json", "file:///nur") == "https://x/a.json"


class TestParseIndex:
    def test_basic(self) -> None:
        text = json.dumps({
            "version": "1.0",
            "modules": {"base64": "./modules/base64.json", "json": "https://x/json.json"},
        })
        assert parse_index(text, "https://nur") == {
            "base64": "https://nur/modules/base64.json",
            "json": "https://x/json.json",
        }

    def test_malformed(self) -> None:
        assert parse_index("{not json", "https://nur") == {}
        assert parse_index("[]", "https://nur") == {}
        assert parse_index('{"version": "1.0"}', "https://nur") == {}

    def test_non_string_values_skipped(self) -> None:
        text = json.dumps({"modules": {"a": "./a.json", "b": 3}})
        assert parse_index(text, "u") == {"a": "u/a.json"}


class TestParseModuleMetadata:
    def test_full(self) -> None:
        meta = parse_module_metadata("base64", json.dumps(MANIFEST))
        assert meta.found
        assert meta.latest == "1.0.1"
        assert list(meta.versions) == ["1.0.0", "1.0.1"]

        old = meta.versions["1.0.0"]
        assert old.entry_linux.endswith(".so")
        assert old.entry_mac == ""
        assert old.git.url == ""

        new = meta.versions["1.0.1"]
        assert new.git.ref == "v1.0.1"
        assert new.deps == {"strings": "0.3.0"}

    def test_dependencies_alias(self) -> None:
        text = json.dumps({"versions": {"1.0": {"dependencies": {"x": "1"}}}})
        assert parse_module_metadata("m", text).versions["1.0"].deps == {"x": "1"}

    def test_malformed_keeps_name(self) -> None:
        meta = parse_module_metadata("broken", "<html>404</html>")
        assert meta.name == "broken"
        assert not meta.found
        assert meta.versions == {}

    def test_wrong_types_ignored(self) -> None:
        text = json.dumps({"latest": 1, "versions": {"1.0": "bad", "2.0": {"git": "x"}}})
        meta = parse_module_metadata("m", text)
        assert meta.latest == ""
        assert list(meta.versions) == ["2.0"]
        assert meta.versions["2.0"].git.url == ""

    def test_round_trip(self) -> None:
        meta = parse_module_metadata("base64", json.dumps(MANIFEST))
        assert module_metadata_to_dict(meta) == MANIFEST
