from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

DEFAULT_EXPERIMENTS: dict[str, tuple[str, ...]] = {
    "hero_cta": ("Start Free Assessment", "Get Security Audit", "Begin AI Testing"),
    "pricing_display": ("monthly", "per_assessment"),
}

DEFAULT_HOSTNAME_PATTERNS: dict[str, str] = {
    "anime-enhanced": "anime",
    "anime-animations": "anime",
}


@dataclass(frozen=True)
class BrandSettings:
    default: str = "capital"
    env_var: str = "BRAND"


@dataclass(frozen=True)
class AnalyticsConfig:
    measurement_id: str | None = None
    api_secret: str | None = None
    endpoint: str = "https://www.google-analytics.com/mp/collect"
    timeout_seconds: float = 2.0

    @property
    def remote_enabled(self) -> bool:
        return bool(self.measurement_id and self.api_secret)


@dataclass(frozen=True)
class AssetConfig:
    script_url: str
    stylesheet_url: str
    library_url: str | None = None


@dataclass(frozen=True)
class AnimationConfig:
    default_library: str = "vanilla"
    performance_mode: str = "auto"  # "auto" | "high" | "low"
    respect_motion_preference: bool = True
    debug: bool = False
    hostname_patterns: dict[str, str] = field(
        default_factory=lambda: dict(DEFAULT_HOSTNAME_PATTERNS)
    )
    assets: dict[str, AssetConfig] = field(default_factory=dict)


@dataclass(frozen=True)
class ExperimentsConfig:
    sticky: bool = True
    definitions: dict[str, tuple[str, ...]] = field(
        default_factory=lambda: dict(DEFAULT_EXPERIMENTS)
    )


@dataclass(frozen=True)
class BehaviorConfig:
    max_clicks: int = 200
    text_snippet_length: int = 50


@dataclass(frozen=True)
class LeadsConfig:
    supabase_url: str | None = None
    supabase_key: str | None = None
    timeout_seconds: float = 5.0

    @property
    def configured(self) -> bool:
        return bool(self.supabase_url and self.supabase_key)


@dataclass(frozen=True)
class FlushConfig:
    every_n_events: int = 500


@dataclass(frozen=True)
class StorageConfig:
    duckdb_path: str | None = None
    clean_slate: bool = False
    flush: FlushConfig = FlushConfig()


@dataclass(frozen=True)
class LoggingConfig:
    level: str = "INFO"


@dataclass(frozen=True)
class SiteConfig:
    brand: BrandSettings = BrandSettings()
    analytics: AnalyticsConfig = AnalyticsConfig()
    animation: AnimationConfig = AnimationConfig()
    experiments: ExperimentsConfig = ExperimentsConfig()
    behavior: BehaviorConfig = BehaviorConfig()
    leads: LeadsConfig = LeadsConfig()
    storage: StorageConfig = StorageConfig()
    logging: LoggingConfig = LoggingConfig()
    raw: dict[str, Any] = field(default_factory=dict)  # parsed YAML as loaded


def load_yaml(path: str | Path) -> dict[str, Any]:
    p = Path(path)
    data = yaml.safe_load(p.read_text())
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError("Config YAML must parse to a dict at the top level.")
    return data


def _section(data: Mapping[str, Any], key: str) -> dict[str, Any]:
    value = data.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValueError(f"Config section '{key}' must be a mapping, got {type(value).__name__}")
    return value


def _opt_str(value: Any) -> str | None:
    if value is None:
        return None
    s = str(value).strip()
    return s or None


def _first_env(env: Mapping[str, str], *names: str) -> str | None:
    for name in names:
        value = env.get(name)
        if value:
            return value
    return None


def parse_config(data: dict[str, Any], env: Mapping[str, str] | None = None) -> SiteConfig:
    env = os.environ if env is None else env

    brand = _section(data, "brand")
    analytics = _section(data, "analytics")
    animation = _section(data, "animation")
    experiments = _section(data, "experiments")
    behavior = _section(data, "behavior")
    leads = _section(data, "leads")
    storage = _section(data, "storage")
    logging_cfg = _section(data, "logging")

    brand_cfg = BrandSettings(
        default=str(brand.get("default", "capital")).strip().lower(),
        env_var=str(brand.get("env_var", "BRAND")),
    )

    analytics_cfg = AnalyticsConfig(
        measurement_id=_opt_str(analytics.get("measurement_id")),
        api_secret=_opt_str(analytics.get("api_secret")),
        endpoint=str(analytics.get("endpoint", AnalyticsConfig.endpoint)),
        timeout_seconds=float(analytics.get("timeout_seconds", 2.0)),
    )

    assets: dict[str, AssetConfig] = {}
    for name, a in (animation.get("assets") or {}).items():
        assets[str(name)] = AssetConfig(
            script_url=str(a["script_url"]),
            stylesheet_url=str(a["stylesheet_url"]),
            library_url=_opt_str(a.get("library_url")),
        )

    patterns = animation.get("hostname_patterns")
    animation_cfg = AnimationConfig(
        default_library=str(animation.get("default_library", "vanilla")).strip().lower(),
        performance_mode=str(animation.get("performance_mode", "auto")).strip().lower(),
        respect_motion_preference=bool(animation.get("respect_motion_preference", True)),
        debug=bool(animation.get("debug", False)),
        hostname_patterns=(
            dict(DEFAULT_HOSTNAME_PATTERNS)
            if patterns is None
            else {str(k): str(v) for k, v in patterns.items()}
        ),
        assets=assets,
    )

    definitions = experiments.get("definitions")
    experiments_cfg = ExperimentsConfig(
        sticky=bool(experiments.get("sticky", True)),
        definitions=(
            dict(DEFAULT_EXPERIMENTS)
            if definitions is None
            else {str(k): tuple(str(v) for v in vs) for k, vs in definitions.items()}
        ),
    )

    behavior_cfg = BehaviorConfig(
        max_clicks=int(behavior.get("max_clicks", 200)),
        text_snippet_length=int(behavior.get("text_snippet_length", 50)),
    )

    # Credentials from the environment take precedence over the file.
    leads_cfg = LeadsConfig(
        supabase_url=_first_env(env, "SUPABASE_URL", "NEXT_PUBLIC_SUPABASE_URL")
        or _opt_str(leads.get("supabase_url")),
        supabase_key=_first_env(env, "SUPABASE_SERVICE_KEY", "SUPABASE_ANON_KEY")
        or _opt_str(leads.get("supabase_key")),
        timeout_seconds=float(leads.get("timeout_seconds", 5.0)),
    )

    flush = storage.get("flush") or {}
    storage_cfg = StorageConfig(
        duckdb_path=_opt_str(storage.get("duckdb_path")),
        clean_slate=bool(storage.get("clean_slate", False)),
        flush=FlushConfig(every_n_events=int(flush.get("every_n_events", 500))),
    )

    log_cfg = LoggingConfig(level=str(logging_cfg.get("level", "INFO")).upper())

    return SiteConfig(
        brand=brand_cfg,
        analytics=analytics_cfg,
        animation=animation_cfg,
        experiments=experiments_cfg,
        behavior=behavior_cfg,
        leads=leads_cfg,
        storage=storage_cfg,
        logging=log_cfg,
        raw=data,
    )


def load_config(path: str | Path | None, env: Mapping[str, str] | None = None) -> SiteConfig:
    """
    Missing file -> all defaults. A site without a config file still renders.
    """
    if path is None or not Path(path).exists():
        return parse_config({}, env=env)
    return parse_config(load_yaml(path), env=env)
