"""Configuration loading and per-file resolution."""

from lintloom.config.loader import (
    CONFIG_FILENAMES,
    ConfigError,
    LintConfig,
    OverrideBlock,
    RuleConfig,
    find_config_file,
    load_config,
    merge_configs,
    parse_config,
    validate_config,
)
from lintloom.config.resolver import ConfigResolver, ResolvedRuleConfig, glob_match

__all__ = [
    "CONFIG_FILENAMES",
    "ConfigError",
    "ConfigResolver",
    "LintConfig",
    "OverrideBlock",
    "ResolvedRuleConfig",
    "RuleConfig",
    "find_config_file",
    "glob_match",
    "load_config",
    "merge_configs",
    "parse_config",
    "validate_config",
]
