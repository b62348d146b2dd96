from netcheck.infrastructure.catalog.command_catalog import (
    CommandCatalog,
    normalize_http_target,
    unsupported_platform,
)
from netcheck.infrastructure.catalog.layers import DEFAULT_LAYERS, ONE_CLICK_PRESET

__all__ = [
    "CommandCatalog",
    "DEFAULT_LAYERS",
    "ONE_CLICK_PRESET",
    "normalize_http_target",
    "unsupported_platform",
]
