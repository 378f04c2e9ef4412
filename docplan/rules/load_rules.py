from __future__ import annotations
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional
import yaml

DEFAULT_LIMITS_PATH = Path(__file__).parent / "limits.yml"

@dataclass(frozen=True)
class EngineConfig:
    max_actions: int = 100              # runaway planner responses
    max_deletion_ratio: float = 0.25    # share of a plan that may be Delete actions
    max_paragraphs: int = 100           # non-empty paragraphs per analysis
    max_words: int = 50000
    collapse_residual_empties: bool = True
    max_concurrent: int = 4             # parallel content generation calls
    preview_chars: int = 60

def load_rule_pack(path: str) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}

def load_engine_config(path: Optional[str] = None) -> EngineConfig:
    """Build an EngineConfig from the ``limits`` section of a YAML file.

    Keys that are not EngineConfig fields are ignored. Missing keys keep
    their defaults.
    """
    pack = load_rule_pack(str(path or DEFAULT_LIMITS_PATH))
    limits = pack.get("limits") or {}
    if not isinstance(limits, dict):
        raise ValueError(f"'limits' in {path} must be a mapping")
    known = {f.name for f in fields(EngineConfig)}
    kwargs: Dict[str, Any] = {}
    for key, value in limits.items():
        if key not in known:
            continue
        default = getattr(EngineConfig, key)
        if isinstance(default, bool):
            if not isinstance(value, bool):
                raise ValueError(f"'{key}' in {path} must be true or false, got {value!r}")
            kwargs[key] = value
        elif isinstance(default, int):
            kwargs[key] = int(value)
        else:
            kwargs[key] = float(value)
    cfg = EngineConfig(**kwargs)
    if cfg.max_actions < 0 or not 0.0 <= cfg.max_deletion_ratio <= 1.0:
        raise ValueError(f"Invalid limits in {path}: {limits}")
    return cfg
