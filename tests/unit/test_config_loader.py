"""Tests for drift.config.yaml loading."""

from __future__ import annotations

import pytest

from drift_toolkit.config.loader import (
    find_config_path,
    get_code_config,
    load_config,
    load_config_from_string,
)
from drift_toolkit.config.models import DEFAULT_DEPENDENCIES, Severity
from drift_toolkit.errors import ConfigNotFound, ConfigParseError


class TestLoadConfig:
    def test_undecodable_file_is_a_parse_error(self, tmp_path):
        (tmp_path / "drift.config.yaml").write_bytes(b"scans: []\n# \xff\xfe\n")
        with pytest.raises(ConfigParseError):
            load_config(tmp_path)

    def test_load_from_directory(self, config_dir):
        config = load_config(config_dir)
        assert config.path == (config_dir / "drift.config.yaml").resolve()
        assert config.approved_base == config_dir.resolve()
        assert [c.file for c in config.integrity.protected] == [
            "CODEOWNERS",
            ".github/workflows/ci.yml",
        ]
        assert config.integrity.protected[0].severity is Severity.HIGH
        assert config.integrity.protected[1].severity is Severity.CRITICAL
        assert config.schema.tiers == ("production", "internal", "prototype")
        assert config.scans[0].name == "has-readme"
        assert config.scans[0].severity is Severity.LOW

    def test_load_from_file(self, config_dir):
        config = load_config(config_dir / "drift.config.yaml")
        assert config.integrity.discover[0].suggestion == "protect workflow files"

    def test_missing_directory_config(self, tmp_path):
        with pytest.raises(ConfigNotFound):
            load_config(tmp_path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigNotFound):
            load_config(tmp_path / "drift.config.yaml")

    def test_yml_extension(self, tmp_path):
        (tmp_path / "drift.config.yml").write_text("exclude: [sandbox-*]\n")
        assert find_config_path(tmp_path).name == "drift.config.yml"
        assert load_config(tmp_path).exclude == ("sandbox-*",)

    def test_find_config_path_absent(self, tmp_path):
        assert find_config_path(tmp_path) is None


class TestLoadConfigFromString:
    def test_empty_document(self):
        config = load_config_from_string("")
        assert config.scans == ()
        assert config.code.dependencies == DEFAULT_DEPENDENCIES

    def test_code_domain_section(self):
        config = load_config_from_string(
            """
code:
  integrity:
    protected:
      - file: a
        approved: b
  scans:
    - name: lint
      command: make lint
      timeout: 1500
      tiers: [production]
      if_file: Makefile
"""
        )
        code = get_code_config(config)
        assert code.integrity.protected[0].file == "a"
        scan = code.scans[0]
        assert scan.timeout == 1500
        assert scan.tiers == ("production",)
        assert scan.if_file == "Makefile"
        assert scan.severity is Severity.MEDIUM

    def test_status_alias_in_schema(self):
        config = load_config_from_string("schema:\n  status: [active]\n  teams: [core]\n")
        assert config.schema.statuses == ("active",)
        assert config.schema.teams == ("core",)

    def test_dependencies_override(self):
        config = load_config_from_string("dependencies:\n  docker: [Dockerfile]\n")
        assert [d.check_type for d in config.code.dependencies] == ["docker"]
        assert config.code.dependencies[0].patterns == ("Dockerfile",)

    @pytest.mark.parametrize(
        "text",
        [
            "scans: [unclosed",
            "- just\n- a list\n",
            "scans:\n  - command: x\n",
            "scans:\n  - name: x\n    command: y\n    timeout: -5\n",
            "scans:\n  - name: x\n    command: y\n    timeout: soon\n",
            "scans:\n  - name: x\n    command: y\n    severity: extreme\n",
            "integrity:\n  protected:\n    - file: a\n",
            "integrity: [a]\n",
            "code: nope\n",
        ],
    )
    def test_invalid_configs(self, text):
        with pytest.raises(ConfigParseError):
            load_config_from_string(text)
