"""Package tiers, feature flags and numeric limits.

Static tables describing what each subscription package grants, plus the
immutable PackageCatalog the entitlement functions read from.
Pure domain logic with no external dependencies.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from enum import StrEnum
from types import MappingProxyType

UNLIMITED = -1


class PackageTier(StrEnum):
    """Subscription packages. CUSTOM carries a per-user feature list."""

    FREE = "free"
    STANDARD = "standard"
    PREMIUM = "premium"
    CUSTOM = "custom"


class Feature(StrEnum):
    """Boolean capabilities gated by package."""

    ADVANCED_AI = "advancedAI"
    PREDICTIVE_AI = "predictiveAI"
    CUSTOM_BRANDING = "customBranding"
    CUSTOM_INTEGRATIONS = "customIntegrations"
    FILE_ATTACHMENTS = "fileAttachments"
    DATA_EXPORT = "dataExport"
    API_ACCESS = "apiAccess"
    PRIORITY_SUPPORT = "prioritySupport"


class Limit(StrEnum):
    """Numeric package limits (-1 = unlimited)."""

    MAX_FORMS = "maxForms"
    MAX_DASHBOARDS = "maxDashboards"
    MAX_USERS = "maxUsers"
    MONTHLY_TOKENS = "monthlyTokens"
    ADDITIONAL_USER_COST = "additionalUserCost"


class ResourceKind(StrEnum):
    """Resources that can be bought on top of a package (pay-as-you-go)."""

    FORMS = "forms"
    DASHBOARDS = "dashboards"
    USERS = "users"
    TOKENS = "tokens"


# Limit -> pay-as-you-go resource. Limits absent from this table have no add-on.
PAY_AS_YOU_GO_RESOURCES: Mapping[Limit, ResourceKind] = MappingProxyType({
    Limit.MAX_FORMS: ResourceKind.FORMS,
    Limit.MAX_DASHBOARDS: ResourceKind.DASHBOARDS,
    Limit.MAX_USERS: ResourceKind.USERS,
    Limit.MONTHLY_TOKENS: ResourceKind.TOKENS,
})

LIMIT_FOR_RESOURCE: Mapping[ResourceKind, Limit] = MappingProxyType(
    {resource: limit for limit, resource in PAY_AS_YOU_GO_RESOURCES.items()}
)


# Feature flags per tier. CUSTOM is resolved from the user's own feature list.
DEFAULT_PACKAGE_FEATURES: dict[str, dict[str, bool]] = {
    PackageTier.FREE: {
        Feature.ADVANCED_AI: False,
        Feature.PREDICTIVE_AI: False,
        Feature.CUSTOM_BRANDING: False,
        Feature.CUSTOM_INTEGRATIONS: False,
        Feature.FILE_ATTACHMENTS: True,
        Feature.DATA_EXPORT: False,
        Feature.API_ACCESS: False,
        Feature.PRIORITY_SUPPORT: False,
    },
    PackageTier.STANDARD: {
        Feature.ADVANCED_AI: True,
        Feature.PREDICTIVE_AI: False,
        Feature.CUSTOM_BRANDING: False,
        Feature.CUSTOM_INTEGRATIONS: False,
        Feature.FILE_ATTACHMENTS: True,
        Feature.DATA_EXPORT: True,
        Feature.API_ACCESS: False,
        Feature.PRIORITY_SUPPORT: False,
    },
    PackageTier.PREMIUM: {
        Feature.ADVANCED_AI: True,
        Feature.PREDICTIVE_AI: True,
        Feature.CUSTOM_BRANDING: True,
        Feature.CUSTOM_INTEGRATIONS: False,
        Feature.FILE_ATTACHMENTS: True,
        Feature.DATA_EXPORT: True,
        Feature.API_ACCESS: True,
        Feature.PRIORITY_SUPPORT: True,
    },
}

# Limits per tier (-1 = unlimited). additional_user_cost is in euros per month.
DEFAULT_PACKAGE_LIMITS: dict[str, dict[str, int]] = {
    PackageTier.FREE: {
        Limit.MAX_FORMS: 3,
        Limit.MAX_DASHBOARDS: 1,
        Limit.MAX_USERS: 2,
        Limit.MONTHLY_TOKENS: 10_000,
        Limit.ADDITIONAL_USER_COST: 0,
    },
    PackageTier.STANDARD: {
        Limit.MAX_FORMS: 20,
        Limit.MAX_DASHBOARDS: 5,
        Limit.MAX_USERS: 10,
        Limit.MONTHLY_TOKENS: 100_000,
        Limit.ADDITIONAL_USER_COST: 15,
    },
    PackageTier.PREMIUM: {
        Limit.MAX_FORMS: UNLIMITED,
        Limit.MAX_DASHBOARDS: 20,
        Limit.MAX_USERS: 50,
        Limit.MONTHLY_TOKENS: UNLIMITED,
        Limit.ADDITIONAL_USER_COST: 10,
    },
    PackageTier.CUSTOM: {
        Limit.MAX_FORMS: UNLIMITED,
        Limit.MAX_DASHBOARDS: UNLIMITED,
        Limit.MAX_USERS: UNLIMITED,
        Limit.MONTHLY_TOKENS: UNLIMITED,
        Limit.ADDITIONAL_USER_COST: 0,
    },
}


@dataclass(frozen=True)
class PackageCatalog:
    """Read-only feature and limit tables keyed by tier, then by key.

    Lookups never raise: an unknown tier or key reads as False / 0.
    """

    features: Mapping[str, Mapping[str, bool]]
    limits: Mapping[str, Mapping[str, int]]

    @classmethod
    def from_tables(
        cls,
        features: Mapping[str, Mapping[str, bool]],
        limits: Mapping[str, Mapping[str, int]],
    ) -> "PackageCatalog":
        """Freeze plain dict tables into a catalog. Keys are stored as plain strings."""
        return cls(
            features=MappingProxyType({
                str(tier): MappingProxyType({str(k): bool(v) for k, v in flags.items()})
                for tier, flags in features.items()
            }),
            limits=MappingProxyType({
                str(tier): MappingProxyType({str(k): int(v) for k, v in values.items()})
                for tier, values in limits.items()
            }),
        )

    def has_feature(self, package: str, feature: str) -> bool:
        return self.features.get(package, {}).get(feature, False)

    def get_limit(self, package: str, limit: str) -> int:
        return self.limits.get(package, {}).get(limit, 0)

    def is_unlimited(self, package: str, limit: str) -> bool:
        return self.get_limit(package, limit) == UNLIMITED

    def knows(self, package: str) -> bool:
        return package in self.limits or package in self.features

    def tiers(self) -> list[str]:
        return sorted(set(self.features) | set(self.limits))


DEFAULT_CATALOG = PackageCatalog.from_tables(DEFAULT_PACKAGE_FEATURES, DEFAULT_PACKAGE_LIMITS)
