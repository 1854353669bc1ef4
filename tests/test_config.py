"""Tests for runtelemetry/config.py"""

import unittest

import pytest

from runtelemetry.config import Config, load_config, load_yaml_config


class TestLoadYamlConfig(unittest.TestCase):
    def test_no_path_gives_empty(self):
        self.assertEqual(load_yaml_config(None), {})

    def test_missing_file_gives_empty(self):
        self.assertEqual(load_yaml_config("/nonexistent/run-telemetry.yml"), {})


def test_yaml_file_loaded(tmp_path):
    path = tmp_path / "telemetry.yml"
    path.write_text("report_path: out/report.xml\nhostname: ci-runner\npoll_interval: 0.5\n")
    assert load_yaml_config(str(path)) == {
        "report_path": "out/report.xml",
        "hostname": "ci-runner",
        "poll_interval": 0.5,
    }


def test_empty_yaml_file(tmp_path):
    path = tmp_path / "empty.yml"
    path.write_text("")
    assert load_yaml_config(str(path)) == {}


class TestLoadConfig:
    def test_defaults(self):
        assert load_config(env={}) == Config()
        assert Config().report_path == "xunit.xml"
        assert Config().warnings is False

    def test_yaml_over_defaults(self):
        config = load_config({"hostname": "ci", "warnings": True}, env={})
        assert config.hostname == "ci"
        assert config.warnings is True

    def test_env_over_yaml(self):
        config = load_config(
            {"report_path": "from-yaml.xml"},
            env={"RUN_TELEMETRY_REPORT": "from-env.xml", "RUN_TELEMETRY_POLL_INTERVAL": "2"},
        )
        assert config.report_path == "from-env.xml"
        assert config.poll_interval == 2.0

    def test_overrides_win_and_none_ignored(self):
        config = load_config(
            {"report_path": "from-yaml.xml"},
            env={"RUN_TELEMETRY_REPORT": "from-env.xml"},
            report_path="from-cli.xml",
            warnings=None,
        )
        assert config.report_path == "from-cli.xml"
        assert config.warnings is False

    @pytest.mark.parametrize("raw,expected", [("1", True), ("yes", True), ("off", False), ("", False)])
    def test_env_booleans(self, raw, expected):
        assert load_config(env={"RUN_TELEMETRY_WARNINGS": raw}).warnings is expected

    def test_reads_process_environment(self, monkeypatch):
        monkeypatch.setenv("RUN_TELEMETRY_HOSTNAME", "build-7")
        assert load_config().hostname == "build-7"

    def test_render_options(self):
        options = Config(schema_href="s.xsd").render_options()
        assert options == {"schema_href": "s.xsd", "hostname": "localhost",
                           "functional_marker": "functional"}
