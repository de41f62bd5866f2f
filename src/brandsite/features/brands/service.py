from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

from brandsite.core.config import BrandSettings
from brandsite.core.logging import get_logger
from brandsite.core.types import PageContext

from .types import BrandConfig

BRANDS_DIR = Path(__file__).parent / "data"
KNOWN_BRANDS: tuple[str, ...] = ("capital", "frontera")
DEFAULT_BRAND = "capital"

# Local development servers: one port per brand
DEV_PORTS: dict[str, str] = {"3001": "frontera", "3000": "capital"}

MXN_PER_USD = 20

_logger = get_logger(__name__)


def load_brand(name: str, brands_dir: Path = BRANDS_DIR) -> BrandConfig:
    """
    Load a brand record from its YAML file. Unknown names load the default brand.
    """
    key = (name or "").strip().lower()
    if key not in KNOWN_BRANDS:
        key = DEFAULT_BRAND
    data = yaml.safe_load((brands_dir / f"{key}.yaml").read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"Brand file for {key!r} must parse to a mapping.")
    return BrandConfig.from_mapping(key, data)


def detect_brand(
    *,
    page: PageContext | None = None,
    env: Mapping[str, str] | None = None,
    settings: BrandSettings | None = None,
) -> str:
    settings = settings or BrandSettings()
    env = os.environ if env is None else env

    from_env = env.get(settings.env_var)
    if from_env:
        return from_env.strip().lower()

    if page is not None:
        hostname = page.hostname
        if "frontera" in hostname:
            return "frontera"
        if "capital" in hostname:
            return "capital"
        if page.port in DEV_PORTS:
            return DEV_PORTS[page.port]

    return settings.default


class BrandResolver:
    """
    Explicit brand context. Holds the detection inputs and caches loaded brand
    records per instance, so two resolvers never share state.
    """

    def __init__(
        self,
        *,
        settings: BrandSettings | None = None,
        env: Mapping[str, str] | None = None,
        page: PageContext | None = None,
        brands_dir: Path = BRANDS_DIR,
    ) -> None:
        self.settings = settings or BrandSettings()
        self.env: Mapping[str, str] = dict(os.environ) if env is None else dict(env)
        self.page = page
        self._brands_dir = brands_dir
        self._cache: dict[str, BrandConfig] = {}

    def detect(self) -> str:
        return detect_brand(page=self.page, env=self.env, settings=self.settings)

    def resolve(self, override: str | None = None) -> BrandConfig:
        name = override or self.detect()
        key = name.strip().lower()
        if key not in KNOWN_BRANDS:
            _logger.info(
                "unknown brand, using default",
                extra={"feature": "brands", "brand": key},
            )
            key = self.settings.default if self.settings.default in KNOWN_BRANDS else DEFAULT_BRAND
        if key not in self._cache:
            self._cache[key] = load_brand(key, self._brands_dir)
        return self._cache[key]

    def get_field(self, dotted_path: str, brand: BrandConfig | str | None = None) -> Any:
        cfg = brand if isinstance(brand, BrandConfig) else self.resolve(brand)
        return cfg.get(dotted_path)

    # ----------------------------
    # Content helpers
    # ----------------------------
    def is_frontera(self) -> bool:
        return self.resolve().name == "frontera"

    def get_text(self, en_text: str, es_text: str | None = None) -> str:
        if self.is_frontera() and es_text:
            return f"{es_text} | {en_text}"
        return en_text

    def format_currency(self, amount: float, show_both: bool = False) -> str:
        if self.is_frontera():
            usd = f"${_grouped(amount)} USD"
            if show_both:
                return f"{usd} / ${_grouped(amount * MXN_PER_USD)} MXN"
            return usd
        return f"${_grouped(amount)}"

    def compliance_badges(self) -> tuple[str, ...]:
        return self.resolve().compliance


def resolve_brand(
    override: str | None = None,
    *,
    page: PageContext | None = None,
    env: Mapping[str, str] | None = None,
    settings: BrandSettings | None = None,
) -> BrandConfig:
    return BrandResolver(settings=settings, env=env, page=page).resolve(override)


def get_field(dotted_path: str, brand: BrandConfig | None = None, **context: Any) -> Any:
    cfg = brand if brand is not None else resolve_brand(**context)
    return cfg.get(dotted_path)


def _grouped(amount: float) -> str:
    # en-US toLocaleString: thousands separators, at most 3 fraction digits
    if float(amount).is_integer():
        return f"{int(amount):,}"
    return f"{amount:,.3f}".rstrip("0").rstrip(".")
