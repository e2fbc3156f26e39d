from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import yaml

from space_expansion.core.errors import ConfigLoadError


YAML_SUFFIXES = {".yaml", ".yml"}


def load_config(path: str | Path) -> dict[str, Any]:
    """Load a YAML/JSON engine config file.

    Returns the top-level mapping plus a ``__file__`` key. An empty document
    loads as an empty mapping. Does not coerce types or fill defaults;
    merge/validate own that.
    """

    p = Path(path)
    if not p.exists():
        raise ConfigLoadError(code="E_FILE_NOT_FOUND", message="file does not exist", file=str(p))

    suffix = p.suffix.lower()
    if suffix not in YAML_SUFFIXES and suffix != ".json":
        raise ConfigLoadError(
            code="E_UNSUPPORTED_FORMAT",
            message="supported formats are .yaml/.yml and .json",
            file=str(p),
        )

    try:
        raw_text = p.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigLoadError(code="E_FILE_READ", message=str(e), file=str(p)) from e

    data = _parse(raw_text, suffix, str(p))
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigLoadError(
            code="E_INVALID_TOP_LEVEL",
            message=f"top-level document must be a mapping/object, got {type(data).__name__}",
            file=str(p),
        )

    loaded: dict[str, Any] = dict(data)
    loaded["__file__"] = str(p)
    return loaded


def _parse(raw_text: str, suffix: str, file: str) -> Any:
    if suffix in YAML_SUFFIXES:
        try:
            return yaml.safe_load(raw_text)
        except yaml.YAMLError as e:
            raise ConfigLoadError(code="E_YAML_PARSE", message=str(e), file=file) from e
    try:
        return json.loads(raw_text)
    except json.JSONDecodeError as e:
        raise ConfigLoadError(
            code="E_JSON_PARSE", message=f"line {e.lineno}: {e.msg}", file=file
        ) from e
