"""
AnalyzerConfig: tunable constants for the detection pipeline, loaded from
``configs/analyzer.yaml``.

Only the named constants are configurable; the scorer thresholds are fixed
in their modules.  Keys missing from the YAML fall back to the defaults
below, so an empty file reproduces the stock behaviour.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml


CONFIG_PATH = Path(__file__).parent.parent / "configs" / "analyzer.yaml"


@dataclass
class AnalyzerConfig:
    max_dimension: int = 512
    grid_stride: int = 5
    progress_interval_ms: int = 400
    progress_enabled: bool = True
    jitter_amplitude: float = 10.0     # 0 disables jitter
    random_seed: int | None = None
    log_level: str = "INFO"
    results_dir: Path = Path("outputs/results")

    @classmethod
    def from_yaml(cls, config_path: str | Path = CONFIG_PATH) -> "AnalyzerConfig":
        with open(config_path, encoding="utf-8") as f:
            cfg: dict[str, Any] = yaml.safe_load(f) or {}

        pre_cfg = cfg.get("preprocess", {}) or {}
        det_cfg = cfg.get("detection", {}) or {}
        prog_cfg = cfg.get("progress", {}) or {}
        agg_cfg = cfg.get("aggregation", {}) or {}
        log_cfg = cfg.get("logging", {}) or {}
        out_cfg = cfg.get("output", {}) or {}

        seed = agg_cfg.get("random_seed")
        config = cls(
            max_dimension=int(pre_cfg.get("max_dimension", cls.max_dimension)),
            grid_stride=int(det_cfg.get("grid_stride", cls.grid_stride)),
            progress_interval_ms=int(prog_cfg.get("interval_ms", cls.progress_interval_ms)),
            progress_enabled=bool(prog_cfg.get("enabled", cls.progress_enabled)),
            jitter_amplitude=float(agg_cfg.get("jitter_amplitude", cls.jitter_amplitude)),
            random_seed=int(seed) if seed is not None else None,
            log_level=str(log_cfg.get("level", cls.log_level)).upper(),
            results_dir=Path(out_cfg.get("results_dir", cls.results_dir)),
        )
        config.validate()
        return config

    def validate(self) -> None:
        if self.max_dimension <= 0:
            raise ValueError(f"max_dimension must be positive, got {self.max_dimension}")
        if self.grid_stride <= 0:
            raise ValueError(f"grid_stride must be positive, got {self.grid_stride}")
        if self.progress_interval_ms < 0:
            raise ValueError(f"progress interval must be >= 0, got {self.progress_interval_ms}")
        if self.jitter_amplitude < 0:
            raise ValueError(f"jitter_amplitude must be >= 0, got {self.jitter_amplitude}")
