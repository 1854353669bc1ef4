"""Configuration loading from defaults, optional YAML file, env vars and CLI flags."""

import logging
import os
from dataclasses import dataclass, replace

import yaml

logger = logging.getLogger(__name__)

_TRUTHY = ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Config:
    report_path: str = "xunit.xml"
    schema_href: str = "./xunit.xsd"
    hostname: str = "localhost"
    functional_marker: str = "functional"
    poll_interval: float = 0.1
    warnings: bool = False

    def render_options(self) -> dict:
        """Keyword arguments for xunit.render_report / write_report."""
        return {
            "schema_href": self.schema_href,
            "hostname": self.hostname,
            "functional_marker": self.functional_marker,
        }


def load_yaml_config(path: str | None) -> dict:
    """Load settings from a YAML file. Returns empty dict if no path."""
    if not path:
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        logger.info("Loaded YAML config from %s", path)
        return data
    except FileNotFoundError:
        logger.warning("Config file %s not found, using defaults", path)
        return {}


def load_config(yaml_data: dict | None = None, env=None, **overrides) -> Config:
    """Build Config from YAML data, then env vars, then non-None *overrides*."""
    yaml_data = yaml_data or {}
    env = os.environ if env is None else env
    defaults = Config()

    def pick(key: str, env_name: str, cast):
        if env_name in env:
            return cast(env[env_name])
        if key in yaml_data:
            return cast(yaml_data[key])
        return getattr(defaults, key)

    config = Config(
        report_path=pick("report_path", "RUN_TELEMETRY_REPORT", str),
        schema_href=pick("schema_href", "RUN_TELEMETRY_SCHEMA", str),
        hostname=pick("hostname", "RUN_TELEMETRY_HOSTNAME", str),
        functional_marker=pick("functional_marker", "RUN_TELEMETRY_FUNCTIONAL_MARKER", str),
        poll_interval=pick("poll_interval", "RUN_TELEMETRY_POLL_INTERVAL", float),
        warnings=pick("warnings", "RUN_TELEMETRY_WARNINGS", _as_bool),
    )
    return replace(config, **{k: v for k, v in overrides.items() if v is not None})


def _as_bool(value) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in _TRUTHY
