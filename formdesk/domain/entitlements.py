"""Package entitlement resolution.

Pure functions answering "does this user have feature X" and "may this user
create one more Y". No I/O, no exceptions: missing user or package data
degrades to the most restrictive answer (no access, zero limit).

Every function takes an optional catalog; when omitted the process-wide
catalog (built-in tables plus Settings overrides) is used.
"""

import structlog

from formdesk.core.catalog import get_package_catalog
from formdesk.domain.packages import (
    PAY_AS_YOU_GO_RESOURCES,
    UNLIMITED,
    Feature,
    Limit,
    PackageCatalog,
    PackageTier,
)
from formdesk.schemas.users import User

logger = structlog.get_logger(__name__)


def _catalog(catalog: PackageCatalog | None) -> PackageCatalog:
    return catalog if catalog is not None else get_package_catalog()


def get_package_type(user: User | None) -> str | None:
    if user is None or not user.package:
        return None
    return user.package


def has_feature(user: User | None, feature: str, catalog: PackageCatalog | None = None) -> bool:
    """Check whether the user's package grants a feature.

    Custom-package users are resolved from their own feature list only; the
    tier tables are not consulted. A custom user without a list has no features.

    Args:
        user: Session user (None = anonymous)
        feature: Feature name, e.g. Feature.ADVANCED_AI
        catalog: Package tables (defaults to the process catalog)

    Returns:
        True if the feature is granted, False otherwise
    """
    package = get_package_type(user)
    if package is None:
        return False

    if package == PackageTier.CUSTOM:
        return feature in (user.package_features or [])

    return _catalog(catalog).has_feature(package, feature)


def _capacity(user: User | None, limit: str, catalog: PackageCatalog) -> tuple[int, int, int]:
    """Package limit, pay-as-you-go capacity and total for one limit.

    An unknown tier gets nothing, pay-as-you-go included. Without a package
    only the pay-as-you-go capacity counts. An unlimited package limit keeps
    the total unlimited (-1).
    """
    package = get_package_type(user)
    if package is not None and not catalog.knows(package):
        logger.warning("unknown_package_tier", package=package, limit=str(limit))
        return 0, 0, 0

    package_limit = catalog.get_limit(package, limit) if package is not None else 0
    pay_as_you_go = get_pay_as_you_go_capacity(user, limit)
    if package_limit == UNLIMITED:
        return UNLIMITED, pay_as_you_go, UNLIMITED
    return package_limit, pay_as_you_go, package_limit + pay_as_you_go


def _allows_one_more(package: str | None, package_limit: int, total: int, current_value: int) -> bool:
    if package is None:
        return False
    if package_limit == UNLIMITED:
        return True
    return current_value < total


def get_limit(user: User | None, limit: str, catalog: PackageCatalog | None = None) -> int:
    """Package value for a limit, -1 when unlimited, 0 without a package or for an unknown tier."""
    package_limit, _, _ = _capacity(user, limit, _catalog(catalog))
    return package_limit


def is_unlimited(user: User | None, limit: str, catalog: PackageCatalog | None = None) -> bool:
    return get_limit(user, limit, catalog) == UNLIMITED


def get_pay_as_you_go_capacity(user: User | None, limit: str) -> int:
    """Extra capacity bought for the resource behind a limit.

    Only limits listed in PAY_AS_YOU_GO_RESOURCES have an add-on; any other
    limit, or a user without pay-as-you-go resources, yields 0.
    """
    if user is None or user.pay_as_you_go_resources is None:
        return 0

    resource = PAY_AS_YOU_GO_RESOURCES.get(limit)
    if resource is None:
        return 0

    return getattr(user.pay_as_you_go_resources, resource.value, 0) or 0


def get_total_limit(user: User | None, limit: str, catalog: PackageCatalog | None = None) -> int:
    """Package limit plus pay-as-you-go capacity.

    An unlimited package limit stays unlimited (-1); the add-on is never summed onto it.
    An unknown tier has a total of 0 whatever was bought on top of it.
    """
    _, _, total = _capacity(user, limit, _catalog(catalog))
    return total


def check_limit(
    user: User | None,
    limit: str,
    current_value: int,
    catalog: PackageCatalog | None = None,
) -> bool:
    """Check whether one more item may be created.

    Args:
        user: Session user
        limit: Limit name, e.g. Limit.MAX_FORMS
        current_value: Count before the new item is created
        catalog: Package tables (defaults to the process catalog)

    Returns:
        False without a package or with an unknown one, True when unlimited,
        otherwise current_value < package limit + pay-as-you-go capacity
    """
    package = get_package_type(user)
    if package is None:
        return False

    package_limit, _, total = _capacity(user, limit, _catalog(catalog))
    return _allows_one_more(package, package_limit, total, current_value)


def can_create_form(user: User | None, current_count: int, catalog: PackageCatalog | None = None) -> bool:
    package = get_package_type(user)
    package_limit, pay_as_you_go, total = _capacity(user, Limit.MAX_FORMS, _catalog(catalog))
    result = _allows_one_more(package, package_limit, total, current_count)
    logger.debug(
        "can_create_form",
        current_form_count=current_count,
        package=package,
        package_limit=package_limit,
        pay_as_you_go_capacity=pay_as_you_go,
        total_capacity=total,
        result=result,
    )
    return result


def can_create_dashboard(user: User | None, current_count: int, catalog: PackageCatalog | None = None) -> bool:
    return check_limit(user, Limit.MAX_DASHBOARDS, current_count, catalog)


def can_add_user(user: User | None, current_count: int, catalog: PackageCatalog | None = None) -> bool:
    return check_limit(user, Limit.MAX_USERS, current_count, catalog)


def get_monthly_tokens(user: User | None, catalog: PackageCatalog | None = None) -> int:
    return get_limit(user, Limit.MONTHLY_TOKENS, catalog)


def has_unlimited_tokens(user: User | None, catalog: PackageCatalog | None = None) -> bool:
    return is_unlimited(user, Limit.MONTHLY_TOKENS, catalog)


def can_use_advanced_ai(user: User | None, catalog: PackageCatalog | None = None) -> bool:
    # Either AI flag unlocks the advanced assistant
    return has_feature(user, Feature.ADVANCED_AI, catalog) or has_feature(user, Feature.PREDICTIVE_AI, catalog)


def can_use_custom_branding(user: User | None, catalog: PackageCatalog | None = None) -> bool:
    return has_feature(user, Feature.CUSTOM_BRANDING, catalog)


def can_use_custom_integrations(user: User | None, catalog: PackageCatalog | None = None) -> bool:
    return has_feature(user, Feature.CUSTOM_INTEGRATIONS, catalog)


def get_additional_user_cost(user: User | None, catalog: PackageCatalog | None = None) -> int:
    return get_limit(user, Limit.ADDITIONAL_USER_COST, catalog)


class PackageAccess:
    """Entitlements of one user, bound once and queried many times.

    Example:
        access = PackageAccess(user)
        if access.can_create_form(len(forms)):
            ...
        if access.has_feature(Feature.CUSTOM_BRANDING):
            ...
    """

    def __init__(self, user: User | None, catalog: PackageCatalog | None = None):
        self.user = user
        self.catalog = _catalog(catalog)

    @property
    def package_type(self) -> str | None:
        return get_package_type(self.user)

    def has_feature(self, feature: str) -> bool:
        return has_feature(self.user, feature, self.catalog)

    def get_limit(self, limit: str) -> int:
        return get_limit(self.user, limit, self.catalog)

    def is_unlimited(self, limit: str) -> bool:
        return is_unlimited(self.user, limit, self.catalog)

    def get_pay_as_you_go_capacity(self, limit: str) -> int:
        return get_pay_as_you_go_capacity(self.user, limit)

    def get_total_limit(self, limit: str) -> int:
        return get_total_limit(self.user, limit, self.catalog)

    def check_limit(self, limit: str, current_value: int) -> bool:
        return check_limit(self.user, limit, current_value, self.catalog)

    def can_create_form(self, current_count: int) -> bool:
        return can_create_form(self.user, current_count, self.catalog)

    def can_create_dashboard(self, current_count: int) -> bool:
        return can_create_dashboard(self.user, current_count, self.catalog)

    def can_add_user(self, current_count: int) -> bool:
        return can_add_user(self.user, current_count, self.catalog)

    def get_monthly_tokens(self) -> int:
        return get_monthly_tokens(self.user, self.catalog)

    def has_unlimited_tokens(self) -> bool:
        return has_unlimited_tokens(self.user, self.catalog)

    def can_use_advanced_ai(self) -> bool:
        return can_use_advanced_ai(self.user, self.catalog)

    def can_use_custom_branding(self) -> bool:
        return can_use_custom_branding(self.user, self.catalog)

    def can_use_custom_integrations(self) -> bool:
        return can_use_custom_integrations(self.user, self.catalog)

    def get_additional_user_cost(self) -> int:
        return get_additional_user_cost(self.user, self.catalog)

    def summary(self) -> dict:
        """Resolved entitlements as a plain dict, for UI gating.

        Returns:
            {"package": str | None,
             "features": {feature: bool},
             "limits": {limit: {"package": int, "pay_as_you_go": int, "total": int, "unlimited": bool}}}
        """
        limits = {}
        for limit in Limit:
            package_limit, pay_as_you_go, total = _capacity(self.user, limit, self.catalog)
            limits[limit.value] = {
                "package": package_limit,
                "pay_as_you_go": pay_as_you_go,
                "total": total,
                "unlimited": package_limit == UNLIMITED,
            }

        return {
            "package": self.package_type,
            "features": {feature.value: self.has_feature(feature) for feature in Feature},
            "limits": limits,
        }
