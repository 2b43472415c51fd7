"""Application settings for the marketplace core.

Protean infrastructure (databases, brokers, processing modes) is configured
in ``domain.toml``. The knobs below belong to the order lifecycle itself and
are read from the environment so deployments can tune them without a code
change.
"""

import os
from dataclasses import dataclass
from functools import lru_cache

DEFAULT_RECEIPT_PREFIX = "CORRALX"
DEFAULT_ROW_LOCK_TIMEOUT = 10.0
DEFAULT_PLATFORM_DELIVERY_PROVIDER = "CorralX Delivery"


@dataclass(frozen=True)
class Settings:
    receipt_prefix: str = DEFAULT_RECEIPT_PREFIX
    row_lock_timeout: float = DEFAULT_ROW_LOCK_TIMEOUT
    platform_delivery_provider: str = DEFAULT_PLATFORM_DELIVERY_PROVIDER

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables, falling back to defaults."""
        return cls(
            receipt_prefix=os.getenv("RECEIPT_PREFIX", DEFAULT_RECEIPT_PREFIX).strip() or DEFAULT_RECEIPT_PREFIX,
            row_lock_timeout=float(os.getenv("ROW_LOCK_TIMEOUT", DEFAULT_ROW_LOCK_TIMEOUT)),
            platform_delivery_provider=os.getenv("PLATFORM_DELIVERY_PROVIDER", DEFAULT_PLATFORM_DELIVERY_PROVIDER),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the process-wide settings, read once from the environment."""
    return Settings.from_env()
