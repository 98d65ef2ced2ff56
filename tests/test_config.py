"""Tests for Config and manifest lookup."""

import json

import pytest

from fndev import Config, read_build_command


class TestConfig:
    def test_defaults(self, tmp_path):
        config = Config(root=tmp_path)
        assert config.port == 3000
        assert config.module_cache is False
        assert config.quiet is False
        assert config.fallback_ports == (3333, 3443)
        assert config.api_path == tmp_path.resolve() / "api"
        assert config.public_path == tmp_path.resolve() / "public"

    def test_api_prefix_is_normalized(self, tmp_path):
        assert Config(root=tmp_path, api_prefix="fn").api_prefix == "/fn/"

    def test_invalid_fallback_range(self, tmp_path):
        with pytest.raises(ValueError):
            Config(root=tmp_path, fallback_ports=(4000, 3000))

    def test_from_project_reads_build_command(self, tmp_path):
        (tmp_path / "pyproject.toml").write_text('[tool.fndev]\nbuild = "make site"\n')
        config = Config.from_project(tmp_path, module_cache=True)
        assert config.build == "make site"
        assert config.module_cache is True


class TestReadBuildCommand:
    def test_no_manifest(self, tmp_path):
        assert read_build_command(tmp_path) is None

    def test_pyproject_wins_over_package_json(self, tmp_path):
        (tmp_path / "pyproject.toml").write_text('[tool.fndev]\nbuild = "python build.py"\n')
        (tmp_path / "package.json").write_text(json.dumps({"scripts": {"build": "webpack"}}))
        assert read_build_command(tmp_path) == "python build.py"

    def test_package_json_build_script(self, tmp_path):
        (tmp_path / "package.json").write_text(json.dumps({"scripts": {"build": "webpack"}}))
        assert read_build_command(tmp_path) == "webpack"

    def test_package_json_now_build_script(self, tmp_path):
        (tmp_path / "package.json").write_text(json.dumps({"scripts": {"now-build": "next build"}}))
        assert read_build_command(tmp_path) == "next build"

    def test_pyproject_without_fndev_table_falls_through(self, tmp_path):
        (tmp_path / "pyproject.toml").write_text('[project]\nname = "site"\n')
        assert read_build_command(tmp_path) is None

    def test_unreadable_manifests_are_ignored(self, tmp_path, caplog):
        (tmp_path / "pyproject.toml").write_text("not = [valid")
        (tmp_path / "package.json").write_text("{nope")
        assert read_build_command(tmp_path) is None
