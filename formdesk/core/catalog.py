"""Package catalog resolution.

Resolution logic:
1. Start from the built-in DEFAULT_PACKAGE_FEATURES / DEFAULT_PACKAGE_LIMITS
2. Merge per-tier overrides from Settings (package_features_overrides, package_limits_overrides)
3. Validate feature and limit names, and limit values (-1 is the only negative value allowed)
4. Freeze into an immutable PackageCatalog, built once per process
"""

from collections.abc import Mapping
from functools import lru_cache

import structlog

from formdesk.core.config import Settings, get_settings
from formdesk.core.exceptions import CatalogConfigError
from formdesk.domain.packages import (
    DEFAULT_PACKAGE_FEATURES,
    DEFAULT_PACKAGE_LIMITS,
    UNLIMITED,
    Feature,
    Limit,
    PackageCatalog,
)

logger = structlog.get_logger(__name__)

_FEATURE_NAMES = frozenset(feature.value for feature in Feature)
_LIMIT_NAMES = frozenset(limit.value for limit in Limit)


def _merge(
    defaults: Mapping[str, Mapping[str, object]],
    overrides: Mapping[str, Mapping[str, object]],
) -> dict[str, dict[str, object]]:
    merged = {str(tier): {str(k): v for k, v in values.items()} for tier, values in defaults.items()}
    for tier, values in overrides.items():
        merged.setdefault(tier, {}).update(values)
    return merged


def _validate_features(features: Mapping[str, Mapping[str, bool]]) -> None:
    for tier, flags in features.items():
        for key in flags:
            if key not in _FEATURE_NAMES:
                raise CatalogConfigError(tier, key, "unknown feature name")


def _validate_limits(limits: Mapping[str, Mapping[str, int]]) -> None:
    for tier, values in limits.items():
        for key, value in values.items():
            if key not in _LIMIT_NAMES:
                raise CatalogConfigError(tier, key, "unknown limit name")
            if value < UNLIMITED:
                raise CatalogConfigError(tier, key, f"{value} is below the unlimited sentinel (-1)")


def build_package_catalog(settings: Settings) -> PackageCatalog:
    """Build a catalog from the built-in tables plus the overrides in settings.

    Args:
        settings: Settings carrying the per-tier override tables

    Returns:
        Immutable PackageCatalog

    Raises:
        CatalogConfigError: If an override names an unknown feature or limit, or a limit is below -1
    """
    _validate_features(settings.package_features_overrides)
    _validate_limits(settings.package_limits_overrides)

    features = _merge(DEFAULT_PACKAGE_FEATURES, settings.package_features_overrides)
    limits = _merge(DEFAULT_PACKAGE_LIMITS, settings.package_limits_overrides)

    if settings.package_features_overrides or settings.package_limits_overrides:
        logger.info(
            "package_catalog_overrides_applied",
            feature_tiers=sorted(settings.package_features_overrides),
            limit_tiers=sorted(settings.package_limits_overrides),
        )

    return PackageCatalog.from_tables(features, limits)


@lru_cache
def get_package_catalog() -> PackageCatalog:
    return build_package_catalog(get_settings())
