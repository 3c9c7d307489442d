#!/usr/bin/env python3
"""
ABAPTIDY CONFIGURATION
----------------------
Formatter options and their YAML file loader. Options are looked up in
`.abaptidy.yaml` (or `.abaptidy.yml`) starting at the target directory and
walking up to the filesystem root; command-line flags win over file values.

Author: AbapTidy Team
Date: 2026-10-18
"""

import logging
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from abaptidy.core.errors import ConfigError

logger = logging.getLogger("abaptidy.config")

CONFIG_FILENAMES = (".abaptidy.yaml", ".abaptidy.yml")
KEYWORD_CASES = ("upper", "lower")
CHAIN_FORMATTING = ("preserve", "expand")


@dataclass(frozen=True)
class FormatterOptions:
    """User-facing switches of the layout rules."""
    keyword_case: str = "upper"             # Case of ABAP keywords and pragmas
    space_before_period: bool = False       # "a = 1 ." instead of "a = 1."
    space_before_comment_sign: bool = True  # Blank between code and `"`
    space_after_comment_sign: bool = True   # `" text` instead of `"text`
    chain_formatting: str = "preserve"      # "expand" is accepted but not implemented
    indent_width: int = 2                   # Spaces per indentation level

    def __post_init__(self):
        if self.keyword_case not in KEYWORD_CASES:
            raise ConfigError(f"keyword_case must be one of {KEYWORD_CASES}, got '{self.keyword_case}'")
        if self.chain_formatting not in CHAIN_FORMATTING:
            raise ConfigError(f"chain_formatting must be one of {CHAIN_FORMATTING}, got '{self.chain_formatting}'")
        if isinstance(self.indent_width, bool) or not isinstance(self.indent_width, int) or self.indent_width < 1:
            raise ConfigError(f"indent_width must be a positive integer, got '{self.indent_width}'")
        for name in ("space_before_period", "space_before_comment_sign", "space_after_comment_sign"):
            if not isinstance(getattr(self, name), bool):
                raise ConfigError(f"{name} must be true or false")

    @classmethod
    def from_mapping(cls, data: Optional[Dict[str, Any]]) -> "FormatterOptions":
        """Builds options from a plain mapping, accepting kebab-case keys."""
        if not data:
            return cls()
        if not isinstance(data, dict):
            raise ConfigError("Configuration root must be a mapping")

        known = {f.name for f in fields(cls)}
        values = {}
        for key, value in data.items():
            name = str(key).replace("-", "_")
            if name not in known:
                raise ConfigError(f"Unknown option '{key}'")
            values[name] = value
        return cls(**values)

    def merged(self, overrides: Optional[Dict[str, Any]]) -> "FormatterOptions":
        """Returns a copy with every non-None override applied."""
        if not overrides:
            return self
        clean = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **clean) if clean else self


def find_config(start: Path) -> Optional[Path]:
    """Returns the nearest config file at or above `start`."""
    current = Path(start).resolve()
    if current.is_file():
        current = current.parent
    for directory in [current, *current.parents]:
        for name in CONFIG_FILENAMES:
            candidate = directory / name
            if candidate.is_file():
                return candidate
    return None


def load_options(path: Optional[Path] = None,
                 overrides: Optional[Dict[str, Any]] = None) -> FormatterOptions:
    """
    Loads options from a YAML file (if any) and applies CLI overrides.
    """
    options = FormatterOptions()
    if path is not None:
        yaml = YAML(typ="safe")
        try:
            with open(path, "r", encoding="utf-8") as handle:
                data = yaml.load(handle)
        except (OSError, YAMLError) as e:
            raise ConfigError(f"Unable to read configuration {path}: {str(e)}")
        options = FormatterOptions.from_mapping(data)
        logger.info(f"Loaded formatter options from {path}")

    return options.merged(overrides)
