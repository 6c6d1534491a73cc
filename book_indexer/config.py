"""
Config file: default IndexConfig values stored in .book_indexer.json.

Lookup order: env BOOK_INDEXER_CONFIG, then the current directory and its parents,
then the repo root. Keys are IndexConfig field names; command-line options
override file values.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict

from pydantic import ValidationError

from book_indexer.errors import ConfigurationError
from book_indexer.models import IndexConfig

log = logging.getLogger(__name__)

CONFIG_FILENAME = ".book_indexer.json"


def _find_repo_root() -> Path | None:
    """Walk up from package dir to find a directory containing pyproject.toml or .book_indexer.json."""
    start = Path(__file__).resolve().parent
    for parent in [start, *start.parents]:
        if (parent / "pyproject.toml").exists() or (parent / CONFIG_FILENAME).exists():
            return parent
    return None


def _find_config_file() -> Path | None:
    """Return path to an existing .book_indexer.json, or None."""
    env_path = os.environ.get("BOOK_INDEXER_CONFIG")
    if env_path:
        p = Path(env_path).resolve()
        return p if p.exists() else None
    for d in [Path.cwd(), *Path.cwd().parents]:
        cf = (d / CONFIG_FILENAME).resolve()
        if cf.exists():
            return cf
    repo = _find_repo_root()
    if repo is not None and (repo / CONFIG_FILENAME).exists():
        return (repo / CONFIG_FILENAME).resolve()
    return None


def get_config_path() -> Path:
    """Path of the config file in use, or where a new one would be created (env path, else cwd)."""
    found = _find_config_file()
    if found is not None:
        return found
    env_path = os.environ.get("BOOK_INDEXER_CONFIG")
    if env_path:
        return Path(env_path).resolve()
    return (Path.cwd() / CONFIG_FILENAME).resolve()


def load_config() -> Dict[str, Any]:
    """Raw option values from the config file ({} if there is none)."""
    path = _find_config_file()
    if path is None:
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (json.JSONDecodeError, OSError) as e:
        raise ConfigurationError(f"Cannot read config file {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {path} must contain a JSON object")
    log.debug("Loaded config from %s", path)
    return data


def save_config(data: Dict[str, Any]) -> Path:
    path = get_config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)
    return path


def make_index_config(values: Dict[str, Any]) -> IndexConfig:
    """Validate option values; pydantic errors become ConfigurationError."""
    try:
        return IndexConfig(**values)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e


def load_index_config(**overrides: Any) -> IndexConfig:
    """File values merged with the non-None overrides."""
    values = load_config()
    values.update({k: v for k, v in overrides.items() if v is not None})
    return make_index_config(values)


def parse_value(raw: str) -> Any:
    """JSON literal if it parses ('3', 'true', '["a"]'), else the raw string."""
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw


def set_config_value(key: str, raw: str) -> Dict[str, Any]:
    """Set one option in the config file. Returns {"ok": bool, "error"?: str, "path"?: str}."""
    if key not in IndexConfig.model_fields:
        return {"ok": False, "error": f"Unknown option '{key}'. Known: {', '.join(IndexConfig.model_fields)}"}
    field = IndexConfig.model_fields[key]
    try:
        data = load_config()
        data[key] = raw if field.annotation is str else parse_value(raw)
        make_index_config(data)
    except ConfigurationError as e:
        return {"ok": False, "error": str(e)}
    path = save_config(data)
    return {"ok": True, "path": str(path)}


def unset_config_value(key: str) -> Dict[str, Any]:
    data = load_config()
    if key not in data:
        return {"ok": False, "error": f"'{key}' is not set"}
    del data[key]
    path = save_config(data)
    return {"ok": True, "path": str(path)}
