"""Analysis configuration and YAML/JSON config loading."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Union

import yaml


@dataclass
class OrderingConfig:
    # Symmetric ordering: value used for missing AUROCs after symmetrization
    na_value: float = 0.0
    # Rank-weighted row ordering exponent
    alpha: float = 1.0
    # Pretrained (rectangular) ordering exponents
    alpha_col: float = 1.0
    alpha_row: float = 10.0
    # Placement of rows without mass: "last" | "first"
    undefined: str = "last"


@dataclass
class SummaryConfig:
    # Counts-per-million scaling by total expression of each sample
    normalize_library_size: bool = True
    # Average over expressing samples only (mean conditional on non-zero)
    average_expressing_only: bool = False
    # z-score each gene across clusters before averaging over studies
    scale_expression: bool = False
    # Exponent for ordering genes along cell types
    alpha_row: float = 10.0
    # Assay position or name when the expression container holds several assays
    assay: Union[int, str] = 0


@dataclass
class AnalysisConfig:
    ordering: OrderingConfig = field(default_factory=OrderingConfig)
    summary: SummaryConfig = field(default_factory=SummaryConfig)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _build(cls, obj: Any, section: str):
    if obj is None:
        return cls()
    if not isinstance(obj, dict):
        raise ValueError(f"Config section {section!r} must be a mapping.")
    known = {f.name for f in fields(cls)}
    unknown = sorted(set(obj) - known)
    if unknown:
        raise ValueError(f"Unknown keys in config section {section!r}: {unknown}")
    return cls(**obj)


def config_from_dict(obj: Any) -> AnalysisConfig:
    if obj is None:
        return AnalysisConfig()
    if not isinstance(obj, dict):
        raise ValueError("Config root must be a mapping with 'ordering' and/or 'summary' sections.")
    unknown = sorted(set(obj) - {"ordering", "summary"})
    if unknown:
        raise ValueError(f"Unknown config sections: {unknown}")
    return AnalysisConfig(
        ordering=_build(OrderingConfig, obj.get("ordering"), "ordering"),
        summary=_build(SummaryConfig, obj.get("summary"), "summary"),
    )


def load_config(path: Union[str, Path]) -> AnalysisConfig:
    """Load an analysis config from YAML or JSON."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(path)

    suffix = path.suffix.lower().strip()
    if suffix in {".yaml", ".yml"}:
        with open(path, "r", encoding="utf-8") as handle:
            obj = yaml.safe_load(handle)
    elif suffix == ".json":
        obj = json.loads(path.read_text(encoding="utf-8"))
    else:
        raise ValueError(f"Unsupported config type {suffix!r}; expected .yaml/.yml or .json")
    return config_from_dict(obj)


__all__ = [
    "OrderingConfig",
    "SummaryConfig",
    "AnalysisConfig",
    "config_from_dict",
    "load_config",
]
