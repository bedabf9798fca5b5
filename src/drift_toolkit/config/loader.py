"""Locate, load and validate drift.config.yaml files."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from drift_toolkit.config.models import (
    DEFAULT_DEPENDENCIES,
    CodeDomainConfig,
    DependencyCategory,
    DiscoveryPattern,
    DriftConfig,
    IntegrityCheck,
    IntegrityConfig,
    MetadataSchema,
    ScanDefinition,
    Severity,
)
from drift_toolkit.constants import FILE_PATTERNS
from drift_toolkit.errors import ConfigNotFound, ConfigParseError

_CODE_DOMAIN_KEY = "code"


def find_config_path(directory: str | Path) -> Path | None:
    """Return the config file inside ``directory``, or None."""
    directory = Path(directory)
    for name in FILE_PATTERNS.config:
        candidate = directory / name
        if candidate.is_file():
            return candidate
    return None


def load_config(path: str | Path) -> DriftConfig:
    """Load a config from a file path or from a directory containing one."""
    path = Path(path).expanduser()
    if path.is_dir():
        found = find_config_path(path)
        if found is None:
            raise ConfigNotFound(
                f"Config not found: no {' or '.join(FILE_PATTERNS.config)} in {path}",
                path=str(path),
            )
        path = found
    elif not path.is_file():
        raise ConfigNotFound(f"Config not found: {path}", path=str(path))

    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigParseError(f"Cannot read {path}: {e}", path=str(path)) from e
    return _build_config(_parse_yaml(text, str(path)), path.resolve())


def load_config_from_string(text: str, path: Path | None = None) -> DriftConfig:
    """Parse a YAML string into a DriftConfig."""
    return _build_config(_parse_yaml(text, str(path) if path else "<string>"), path)


def get_code_config(config: DriftConfig) -> CodeDomainConfig:
    """Return the code-domain section of a config."""
    return config.code


def _parse_yaml(text: str, source: str) -> dict:
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ConfigParseError(f"Invalid config {source}: {e}", path=source) from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigParseError(
            f"Invalid config {source}: top level must be a mapping", path=source
        )
    return data


def _build_config(data: dict, path: Path | None) -> DriftConfig:
    # Code-domain keys may sit at the top level or under ``code:``
    code_data = data.get(_CODE_DOMAIN_KEY)
    if code_data is None:
        code_data = data
    elif not isinstance(code_data, dict):
        raise ConfigParseError("'code' must be a mapping")

    return DriftConfig(
        path=path,
        schema=_parse_schema(data.get("schema")),
        code=CodeDomainConfig(
            integrity=_parse_integrity(code_data.get("integrity")),
            scans=tuple(_parse_scans(code_data.get("scans"))),
            dependencies=_parse_dependencies(code_data.get("dependencies")),
        ),
        exclude=_str_tuple(data.get("exclude"), "exclude"),
    )


def _parse_schema(raw: Any) -> MetadataSchema:
    if raw is None:
        return MetadataSchema()
    if not isinstance(raw, dict):
        raise ConfigParseError("'schema' must be a mapping")
    return MetadataSchema(
        tiers=_str_tuple(raw.get("tiers"), "schema.tiers"),
        statuses=_str_tuple(raw.get("statuses", raw.get("status")), "schema.statuses"),
        teams=_str_tuple(raw.get("teams"), "schema.teams"),
    )


def _parse_integrity(raw: Any) -> IntegrityConfig:
    if raw is None:
        return IntegrityConfig()
    if not isinstance(raw, dict):
        raise ConfigParseError("'integrity' must be a mapping")

    protected: list[IntegrityCheck] = []
    for i, item in enumerate(_as_list(raw.get("protected"), "integrity.protected")):
        where = f"integrity.protected[{i}]"
        if not isinstance(item, dict):
            raise ConfigParseError(f"{where} must be a mapping")
        protected.append(
            IntegrityCheck(
                file=_required_str(item, "file", where),
                approved=_required_str(item, "approved", where),
                severity=_severity(item.get("severity", "critical"), where),
            )
        )

    discover: list[DiscoveryPattern] = []
    for i, item in enumerate(_as_list(raw.get("discover"), "integrity.discover")):
        where = f"integrity.discover[{i}]"
        if not isinstance(item, dict):
            raise ConfigParseError(f"{where} must be a mapping")
        discover.append(
            DiscoveryPattern(
                pattern=_required_str(item, "pattern", where),
                suggestion=str(item.get("suggestion", "")),
            )
        )

    return IntegrityConfig(protected=tuple(protected), discover=tuple(discover))


def _parse_scans(raw: Any) -> list[ScanDefinition]:
    scans: list[ScanDefinition] = []
    for i, item in enumerate(_as_list(raw, "scans")):
        where = f"scans[{i}]"
        if not isinstance(item, dict):
            raise ConfigParseError(f"{where} must be a mapping")

        timeout = item.get("timeout")
        if timeout is not None:
            if isinstance(timeout, bool) or not isinstance(timeout, (int, float)):
                raise ConfigParseError(f"{where}.timeout must be a number (ms)")
            if timeout <= 0:
                raise ConfigParseError(f"{where}.timeout must be positive")
            timeout = int(timeout)

        tiers = item.get("tiers")
        scans.append(
            ScanDefinition(
                name=_required_str(item, "name", where),
                command=_required_str(item, "command", where),
                description=str(item.get("description", "")),
                if_file=_optional_str(item.get("if_file")),
                if_command=_optional_str(item.get("if_command")),
                timeout=timeout,
                tiers=_str_tuple(tiers, f"{where}.tiers") if tiers is not None else None,
                severity=_severity(item.get("severity", "medium"), where),
            )
        )
    return scans


def _parse_dependencies(raw: Any) -> tuple[DependencyCategory, ...]:
    if raw is None:
        return DEFAULT_DEPENDENCIES
    if not isinstance(raw, dict):
        raise ConfigParseError("'dependencies' must map check types to patterns")
    return tuple(
        DependencyCategory(
            check_type=str(check_type),
            patterns=_str_tuple(patterns, f"dependencies.{check_type}"),
        )
        for check_type, patterns in raw.items()
    )


def _as_list(raw: Any, where: str) -> list:
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise ConfigParseError(f"'{where}' must be a list")
    return raw


def _str_tuple(raw: Any, where: str) -> tuple[str, ...]:
    if raw is None:
        return ()
    if isinstance(raw, str):
        return (raw,)
    if not isinstance(raw, list):
        raise ConfigParseError(f"'{where}' must be a list of strings")
    return tuple(str(v) for v in raw)


def _required_str(item: dict, key: str, where: str) -> str:
    value = item.get(key)
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ConfigParseError(f"{where} is missing required key '{key}'")
    return str(value)


def _optional_str(value: Any) -> str | None:
    if value is None:
        return None
    return str(value)


def _severity(value: Any, where: str) -> Severity:
    try:
        return Severity(str(value).lower())
    except ValueError:
        allowed = ", ".join(s.value for s in Severity)
        raise ConfigParseError(
            f"{where}.severity '{value}' is invalid (expected one of: {allowed})"
        ) from None
