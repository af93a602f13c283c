"""Configuration files: discovery, parsing, ``extends`` chains and validation."""

from __future__ import annotations

import json
import logging
from collections.abc import Collection
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any

import yaml
from pydantic import ValidationError

from lintloom.rules.catalog import Severity

if TYPE_CHECKING:
    from lintloom.rules.catalog import RuleRegistry

logger = logging.getLogger(__name__)

CONFIG_FILENAMES: tuple[str, ...] = (".lintloomrc.json", ".lintloomrc.yml", ".lintloomrc.yaml")

# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ConfigError(ValueError):
    """Raised when a configuration file is malformed."""


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RuleConfig:
    """User setting for one rule: a severity and, optionally, an options payload."""

    severity: Severity
    options: dict[str, Any] | None = None

    def to_dict(self) -> object:
        if self.options is None:
            return self.severity.value
        return {"severity": self.severity.value, "options": self.options}


@dataclass(frozen=True)
class OverrideBlock:
    """Rule settings applied to files matching any of ``files``."""

    files: tuple[str, ...]
    rules: dict[str, RuleConfig] = field(default_factory=dict)


@dataclass(frozen=True)
class LintConfig:
    """A fully merged configuration tree (``extends`` already applied)."""

    rules: dict[str, RuleConfig] = field(default_factory=dict)
    overrides: tuple[OverrideBlock, ...] = ()
    ignore_patterns: tuple[str, ...] = ()
    report_unused_disable_directives: bool = True
    max_warnings: int | None = None

    def to_dict(self) -> dict[str, Any]:
        """Plain-data form, stable across runs (used for cache fingerprints)."""
        return {
            "rules": {rid: rc.to_dict() for rid, rc in sorted(self.rules.items())},
            "overrides": [
                {
                    "files": list(block.files),
                    "rules": {rid: rc.to_dict() for rid, rc in sorted(block.rules.items())},
                }
                for block in self.overrides
            ],
            "ignorePatterns": list(self.ignore_patterns),
            "reportUnusedDisableDirectives": self.report_unused_disable_directives,
            "maxWarnings": self.max_warnings,
        }


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


def _parse_rule_config(rule_id: str, raw: object, context: str) -> RuleConfig:
    if isinstance(raw, dict):
        if "severity" not in raw:
            msg = f"{context}: rule '{rule_id}' must define 'severity'"
            raise ConfigError(msg)
        try:
            severity = Severity.parse(raw["severity"])
        except ValueError as exc:
            msg = f"{context}: rule '{rule_id}': {exc}"
            raise ConfigError(msg) from exc
        options = raw.get("options")
        if options is not None and not isinstance(options, dict):
            msg = f"{context}: rule '{rule_id}': options must be a mapping"
            raise ConfigError(msg)
        return RuleConfig(severity=severity, options=options)

    try:
        return RuleConfig(severity=Severity.parse(raw))
    except ValueError as exc:
        msg = f"{context}: rule '{rule_id}': {exc}"
        raise ConfigError(msg) from exc


def _parse_rules(raw: object, context: str) -> dict[str, RuleConfig]:
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        msg = f"{context}: 'rules' must be a mapping"
        raise ConfigError(msg)
    return {str(rid): _parse_rule_config(str(rid), value, context) for rid, value in raw.items()}


def _parse_overrides(raw: object, context: str) -> tuple[OverrideBlock, ...]:
    if raw is None:
        return ()
    if not isinstance(raw, list):
        msg = f"{context}: 'overrides' must be a list"
        raise ConfigError(msg)

    blocks: list[OverrideBlock] = []
    for index, item in enumerate(raw):
        where = f"{context} overrides[{index}]"
        if not isinstance(item, dict):
            msg = f"{where}: must be a mapping"
            raise ConfigError(msg)
        files = item.get("files")
        if isinstance(files, str):
            files = [files]
        if not isinstance(files, list) or not files:
            msg = f"{where}: 'files' must be a non-empty list of glob patterns"
            raise ConfigError(msg)
        blocks.append(
            OverrideBlock(
                files=tuple(str(f) for f in files),
                rules=_parse_rules(item.get("rules"), where),
            )
        )
    return tuple(blocks)


def parse_config(data: dict[str, Any], *, source: str = "<config>") -> LintConfig:
    """Build a LintConfig from already-loaded data.  ``extends`` is ignored here.

    Raises
    ------
    ConfigError
        When a key has the wrong shape or a severity is unknown.
    """
    if not isinstance(data, dict):
        msg = f"{source}: configuration must be a mapping"
        raise ConfigError(msg)

    ignore_raw = data.get("ignorePatterns", [])
    if not isinstance(ignore_raw, list):
        msg = f"{source}: 'ignorePatterns' must be a list"
        raise ConfigError(msg)

    max_warnings = data.get("maxWarnings")
    if max_warnings is not None and (
        isinstance(max_warnings, bool) or not isinstance(max_warnings, int)
    ):
        msg = f"{source}: 'maxWarnings' must be an integer"
        raise ConfigError(msg)

    return LintConfig(
        rules=_parse_rules(data.get("rules"), source),
        overrides=_parse_overrides(data.get("overrides"), source),
        ignore_patterns=tuple(str(p) for p in ignore_raw),
        report_unused_disable_directives=bool(data.get("reportUnusedDisableDirectives", True)),
        max_warnings=max_warnings,
    )


def merge_configs(
    parent: LintConfig, child: LintConfig, child_keys: Collection[str] = ()
) -> LintConfig:
    """Layer *child* over *parent*.

    Rules merge key-wise, overrides concatenate (parent first), ignore patterns
    are unioned.  Scalar keys come from the child only when listed in *child_keys*
    (the keys it, or anything it extends, sets explicitly).
    """
    patterns = list(parent.ignore_patterns)
    patterns.extend(p for p in child.ignore_patterns if p not in patterns)
    return LintConfig(
        rules={**parent.rules, **child.rules},
        overrides=parent.overrides + child.overrides,
        ignore_patterns=tuple(patterns),
        report_unused_disable_directives=(
            child.report_unused_disable_directives
            if "reportUnusedDisableDirectives" in child_keys
            else parent.report_unused_disable_directives
        ),
        max_warnings=child.max_warnings if "maxWarnings" in child_keys else parent.max_warnings,
    )


# ---------------------------------------------------------------------------
# Files
# ---------------------------------------------------------------------------


def _read_config_file(path: Path) -> dict[str, Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        msg = f"Cannot read config file {path}: {exc}"
        raise ConfigError(msg) from exc

    try:
        if path.suffix == ".json":
            data = json.loads(text) if text.strip() else {}
        else:
            data = yaml.safe_load(text) or {}
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        msg = f"Invalid config file {path}: {exc}"
        raise ConfigError(msg) from exc

    if not isinstance(data, dict):
        msg = f"{path}: configuration must be a mapping"
        raise ConfigError(msg)
    return data


_SCALAR_KEYS = frozenset({"reportUnusedDisableDirectives", "maxWarnings"})


def _load_with_extends(path: Path, chain: tuple[Path, ...]) -> tuple[LintConfig, frozenset[str]]:
    """Return the merged config for *path* and the scalar keys set along its chain."""
    resolved = path.resolve()
    if resolved in chain:
        cycle = " -> ".join(str(p) for p in (*chain, resolved))
        msg = f"Circular 'extends' chain: {cycle}"
        raise ConfigError(msg)

    data = _read_config_file(resolved)
    config = parse_config(data, source=str(path))
    own_keys = _SCALAR_KEYS.intersection(data)

    extends = data.get("extends")
    if extends is None:
        return config, own_keys
    if isinstance(extends, str):
        extends = [extends]
    if not isinstance(extends, list) or not extends:
        msg = f"{path}: 'extends' must be a non-empty string or list of strings"
        raise ConfigError(msg)

    merged = LintConfig()
    inherited: frozenset[str] = frozenset()
    for entry in extends:
        if not isinstance(entry, str) or not entry.strip():
            msg = f"{path}: invalid 'extends' entry {entry!r}"
            raise ConfigError(msg)
        parent_path = resolved.parent / entry
        if not parent_path.is_file():
            msg = f"{path}: extended config not found: {entry}"
            raise ConfigError(msg)
        logger.debug("Config %s extends %s", path, parent_path)
        parent, parent_keys = _load_with_extends(parent_path, (*chain, resolved))
        merged = merge_configs(merged, parent, parent_keys)
        inherited |= parent_keys

    return merge_configs(merged, config, own_keys), inherited | own_keys


def load_config(path: Path) -> LintConfig:
    """Load *path* and everything it extends into a single LintConfig."""
    config, _ = _load_with_extends(path, ())
    return config


def find_config_file(start_dir: Path) -> Path | None:
    """Walk up from *start_dir* and return the first config file found."""
    current = start_dir.resolve()
    while True:
        for name in CONFIG_FILENAMES:
            candidate = current / name
            if candidate.is_file():
                return candidate
        if current.parent == current:
            return None
        current = current.parent


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def validate_config(config: LintConfig, registry: RuleRegistry) -> list[str]:
    """Return non-fatal warnings: unknown rule ids and options that fail their schema."""
    warnings: list[str] = []
    layers: list[tuple[str, dict[str, RuleConfig]]] = [("rules", config.rules)]
    layers.extend(
        (f"overrides[{index}]", block.rules) for index, block in enumerate(config.overrides)
    )

    for where, rules in layers:
        for rule_id, rule_config in rules.items():
            meta = registry.get(rule_id)
            if meta is None:
                warnings.append(f"{where}: unknown rule '{rule_id}'")
                continue
            if rule_config.options is None or meta.options_model is None:
                continue
            try:
                meta.options_model.model_validate(rule_config.options)
            except ValidationError as exc:
                warnings.append(f"{where}: invalid options for rule '{rule_id}': {exc}")
    return warnings
