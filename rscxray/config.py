"""Configuration loading for rscxray (.rscxray.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

CONFIG_FILE_NAME = ".rscxray.yml"

DEFAULT_FORBIDDEN_MODULES = (
    "fs",
    "path",
    "child_process",
    "os",
    "net",
    "tls",
    "http",
    "https",
    "worker_threads",
    "perf_hooks",
)
DEFAULT_BUNDLE_THRESHOLD_BYTES = 50 * 1024


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class RuleConfig:
    """Rule enablement; an empty list enables every built-in rule."""

    enabled: List[str] = field(default_factory=list)


@dataclass
class BundleSizeConfig:
    """Budget for client component bundles."""

    threshold_bytes: int = DEFAULT_BUNDLE_THRESHOLD_BYTES


@dataclass
class AnalysisConfig:
    """Execution settings for multi-target runs."""

    max_workers: Optional[int] = None


@dataclass
class RscXrayConfig:
    """Represents the settings defined in .rscxray.yml."""

    root: Optional[Path] = None
    rules: RuleConfig = field(default_factory=RuleConfig)
    forbidden_modules: List[str] = field(default_factory=lambda: list(DEFAULT_FORBIDDEN_MODULES))
    bundle_size: BundleSizeConfig = field(default_factory=BundleSizeConfig)
    analysis: AnalysisConfig = field(default_factory=AnalysisConfig)


def load_config(config_path: Path) -> RscXrayConfig:
    """Load configuration from disk; a missing file yields defaults."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        return RscXrayConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILE_NAME} must contain a mapping at the root")

    rules = RuleConfig()
    rules_data = _as_dict(data.get("rules"))
    if rules_data:
        rules.enabled = _as_str_list(rules_data.get("enabled"))

    forbidden = list(DEFAULT_FORBIDDEN_MODULES)
    if "forbidden_modules" in data:
        forbidden = _as_str_list(data.get("forbidden_modules"))

    bundle_size = BundleSizeConfig()
    bundle_data = _as_dict(data.get("bundle_size"))
    threshold = _as_int(bundle_data.get("threshold_bytes")) if bundle_data else None
    if threshold is not None:
        if threshold <= 0:
            raise ConfigError("bundle_size.threshold_bytes must be positive")
        bundle_size.threshold_bytes = threshold

    analysis = AnalysisConfig()
    analysis_data = _as_dict(data.get("analysis"))
    if analysis_data:
        workers = _as_int(analysis_data.get("max_workers"))
        if workers is not None and workers <= 0:
            raise ConfigError("analysis.max_workers must be positive")
        analysis.max_workers = workers

    return RscXrayConfig(
        root=root,
        rules=rules,
        forbidden_modules=forbidden,
        bundle_size=bundle_size,
        analysis=analysis,
    )


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILE_NAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded or {}


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float, bool))]
    return []


__all__ = [
    "AnalysisConfig",
    "BundleSizeConfig",
    "CONFIG_FILE_NAME",
    "ConfigError",
    "DEFAULT_BUNDLE_THRESHOLD_BYTES",
    "DEFAULT_FORBIDDEN_MODULES",
    "RscXrayConfig",
    "RuleConfig",
    "load_config",
]
