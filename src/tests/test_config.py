from __future__ import annotations

import pytest

from brandsite.core.config import DEFAULT_EXPERIMENTS, load_config, parse_config


def test_defaults_when_sections_absent() -> None:
    cfg = parse_config({}, env={})
    assert cfg.brand.default == "capital"
    assert cfg.analytics.remote_enabled is False
    assert cfg.animation.default_library == "vanilla"
    assert cfg.experiments.sticky is True
    assert cfg.experiments.definitions == DEFAULT_EXPERIMENTS
    assert cfg.leads.configured is False
    assert cfg.storage.duckdb_path is None
    assert cfg.logging.level == "INFO"


def test_missing_file_means_defaults(tmp_path) -> None:
    cfg = load_config(tmp_path / "nope.yaml", env={})
    assert cfg.raw == {}


def test_yaml_file_is_parsed(tmp_path) -> None:
    p = tmp_path / "site.yaml"
    p.write_text(
        "brand:\n  default: frontera\n"
        "experiments:\n  sticky: false\n  definitions:\n    cta: [a, b]\n"
        "animation:\n  assets:\n    anime:\n      script_url: /a.js\n      stylesheet_url: /a.css\n"
        "logging:\n  level: debug\n"
    )
    cfg = load_config(p, env={})

    assert cfg.brand.default == "frontera"
    assert cfg.experiments.sticky is False
    assert cfg.experiments.definitions == {"cta": ("a", "b")}
    assert cfg.animation.assets["anime"].script_url == "/a.js"
    assert cfg.logging.level == "DEBUG"


def test_env_credentials_override_file() -> None:
    data = {"leads": {"supabase_url": "https://file.supabase.co", "supabase_key": "file"}}

    cfg = parse_config(data, env={"SUPABASE_URL": "https://env.supabase.co"})
    assert cfg.leads.supabase_url == "https://env.supabase.co"
    assert cfg.leads.supabase_key == "file"

    cfg = parse_config({}, env={"NEXT_PUBLIC_SUPABASE_URL": "u", "SUPABASE_ANON_KEY": "k"})
    assert cfg.leads.configured is True


def test_invalid_shapes_raise(tmp_path) -> None:
    with pytest.raises(ValueError):
        parse_config({"brand": "frontera"}, env={})

    p = tmp_path / "list.yaml"
    p.write_text("- a\n- b\n")
    with pytest.raises(ValueError):
        load_config(p, env={})


def test_sample_config_parses() -> None:
    from pathlib import Path

    sample = Path(__file__).resolve().parents[2] / "config" / "site.yaml"
    cfg = load_config(sample, env={})
    assert cfg.analytics.remote_enabled is False
    assert cfg.animation.hostname_patterns["anime-enhanced"] == "anime"
