from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml

CONFIG_RELPATH = Path("config") / "settings.yaml"

DEFAULT_YEAR_RANGE: Tuple[int, int] = (1801, 2024)


def find_repo_root(start: Optional[Path] = None) -> Path:
    """
    Walk upward from `start` (or this file) to find the repository root.
    The root holds config/settings.yaml or pyproject.toml.
    """
    if start is None:
        start = Path(__file__).resolve()

    for p in [start, *start.parents]:
        if (p / CONFIG_RELPATH).exists() or (p / "pyproject.toml").exists():
            return p
    raise FileNotFoundError(
        "Could not find repo root. Expected config/settings.yaml or pyproject.toml in a parent directory."
    )


def load_config(config_path: Optional[str | Path] = None) -> Dict[str, Any]:
    """
    Load settings YAML. Without `config_path` this is config/settings.yaml at the
    repo root. Relative paths inside the config resolve against the repo root
    above the config file, or the config file's own directory when there is none.
    """
    if config_path and Path(config_path).is_absolute():
        cfg_path = Path(config_path)
        try:
            repo_root = find_repo_root(cfg_path.parent)
        except FileNotFoundError:
            repo_root = cfg_path.parent
    else:
        repo_root = find_repo_root()
        cfg_path = repo_root / (Path(config_path) if config_path else CONFIG_RELPATH)

    if not cfg_path.exists():
        raise FileNotFoundError(f"Config file not found: {cfg_path}")

    with cfg_path.open("r", encoding="utf-8") as f:
        cfg = yaml.safe_load(f)

    if not isinstance(cfg, dict):
        raise ValueError(f"Invalid config format in {cfg_path}; expected a YAML mapping/object.")
    cfg["_config_path"] = str(cfg_path)
    cfg["_repo_root"] = str(repo_root)
    return cfg


def resolve_path(cfg: Dict[str, Any], key: str) -> Path:
    """
    Resolve a path from config using dotted keys, e.g.:
      resolve_path(cfg, "paths.occurrences_csv")
      resolve_path(cfg, "derived.enriched_geojson")
    """
    repo_root = Path(cfg.get("_repo_root") or find_repo_root())
    cur: Any = cfg
    for part in key.split("."):
        if not isinstance(cur, dict) or part not in cur:
            raise KeyError(f"Missing config key: {key}")
        cur = cur[part]

    if not isinstance(cur, str):
        raise TypeError(f"Config key {key} must be a string path.")

    p = Path(cur)
    return p if p.is_absolute() else (repo_root / p)


def default_year_range(cfg: Dict[str, Any]) -> Tuple[int, int]:
    """Initial year-slider value; falls back to [1801, 2024]."""
    raw = (cfg.get("ui", {}) or {}).get("default_year_range")
    if raw is None:
        return DEFAULT_YEAR_RANGE
    if not isinstance(raw, (list, tuple)) or len(raw) != 2:
        raise ValueError(f"ui.default_year_range must be a [min, max] pair, got: {raw!r}")
    lo, hi = int(raw[0]), int(raw[1])
    if lo > hi:
        raise ValueError(f"ui.default_year_range is reversed: {raw!r}")
    return lo, hi
