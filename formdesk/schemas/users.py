"""Pydantic schemas for the authenticated user and its package entitlements.

Payloads from the session layer use camelCase (packageFeatures, payAsYouGoResources);
both spellings are accepted.
"""

from enum import StrEnum

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class UserRole(StrEnum):
    """Dashboard roles as stored by the auth layer."""

    DIRECTOR = "directeur"
    EMPLOYEE = "employe"


class PayAsYouGoResources(BaseModel):
    """Extra capacity bought on top of the package, per resource kind."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    forms: int = 0
    dashboards: int = 0
    users: int = 0
    tokens: int = 0


class User(BaseModel):
    """Session user as seen by the entitlement and response-selection logic.

    package is kept as a plain string so an unknown tier degrades to
    "no access" instead of failing validation.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )

    id: str = ""
    name: str | None = None
    role: UserRole | None = None
    agency_id: str | None = None
    package: str | None = None
    package_features: list[str] | None = None
    pay_as_you_go_resources: PayAsYouGoResources | None = None

    @property
    def is_director(self) -> bool:
        return self.role == UserRole.DIRECTOR

    @property
    def is_employee(self) -> bool:
        return self.role == UserRole.EMPLOYEE
