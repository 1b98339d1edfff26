from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from occurrence_explorer.paths import resolve_path


@dataclass(frozen=True)
class CheckItem:
    label: str
    path: Path


def _can_create_dir(p: Path) -> Optional[str]:
    try:
        p.mkdir(parents=True, exist_ok=True)
        test_file = p / ".write_test"
        test_file.write_text("ok", encoding="utf-8")
        test_file.unlink(missing_ok=True)
        return None
    except OSError as exc:
        return str(exc)


def preflight(cfg: Dict[str, Any], *, mode: str = "app") -> None:
    """
    mode:
      - "app": validates the three dashboard inputs
      - "enrich": same inputs, plus the derived output dirs must be writable
    """
    if mode not in ("app", "enrich"):
        raise ValueError(f"Unknown preflight mode: {mode!r}")

    run_cfg = cfg.get("run", {}) or {}
    strict = bool(run_cfg.get("preflight_strict", True))

    checks: List[CheckItem] = [
        CheckItem("Occurrences CSV", resolve_path(cfg, "paths.occurrences_csv")),
        CheckItem("Species CSV", resolve_path(cfg, "paths.species_csv")),
        CheckItem("Regions layer", resolve_path(cfg, "paths.regions_gpkg")),
    ]

    problems: List[str] = []
    for item in checks:
        if not item.path.exists():
            problems.append(f"- {item.label}: missing {item.path}")

    if mode == "enrich":
        out_dirs = {
            resolve_path(cfg, "derived.enriched_csv").parent,
            resolve_path(cfg, "derived.enriched_geojson").parent,
        }
        for d in sorted(out_dirs):
            err = _can_create_dir(d)
            if err:
                problems.append(f"- Output directory not writable: {d} ({err})")

    if problems:
        message = (
            "Preflight failed. Fix the following before running:\n"
            + "\n".join(problems)
            + "\n\nTip: verify config/settings.yaml path keys match your folder structure."
        )
        if strict:
            raise FileNotFoundError(message)
        else:
            # Non-strict mode: print warnings but continue (useful for development)
            print(message)
