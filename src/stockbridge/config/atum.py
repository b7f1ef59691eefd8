"""ATUM multi-inventory configuration values."""

from __future__ import annotations

from dataclasses import dataclass

from .env import env_int, env_str
from .woocommerce import WooCommerceConfig, get_woocommerce_config

DEFAULT_ATUM_LOCATION_ID = 870
DEFAULT_ATUM_LOCATION_NAME = "store1_location"


@dataclass(frozen=True, slots=True)
class AtumConfig:
    woocommerce: WooCommerceConfig
    location_id: int = DEFAULT_ATUM_LOCATION_ID
    location_name: str = DEFAULT_ATUM_LOCATION_NAME


def get_atum_config(*, woocommerce: WooCommerceConfig | None = None) -> AtumConfig:
    return AtumConfig(
        woocommerce=woocommerce or get_woocommerce_config(),
        location_id=env_int("ATUM_LOCATION_ID", DEFAULT_ATUM_LOCATION_ID, minimum=1),
        location_name=env_str("ATUM_LOCATION_NAME", DEFAULT_ATUM_LOCATION_NAME),
    )
