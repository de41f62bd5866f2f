from __future__ import annotations

from collections.abc import Mapping

from brandsite.core.config import load_config
from brandsite.features.bootstrap.service import SiteContext, bootstrap_site


def build_context(
    config_path: str | None,
    *,
    env_vars: Mapping[str, str] | None = None,
    seed: int | None = None,
) -> SiteContext:
    cfg = load_config(config_path, env=env_vars)
    return bootstrap_site(cfg, env_vars=env_vars, seed=seed)
