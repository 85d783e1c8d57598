"""Shared test fixtures for all test groups."""

from datetime import datetime

import pytest

from formdesk.core.catalog import get_package_catalog
from formdesk.core.config import get_settings
from formdesk.domain.packages import DEFAULT_CATALOG
from formdesk.schemas.users import PayAsYouGoResources, User


@pytest.fixture(autouse=True)
def clear_cached_config():
    """Settings and the package catalog are process-wide caches; reset them around each test."""
    get_settings.cache_clear()
    get_package_catalog.cache_clear()
    yield
    get_settings.cache_clear()
    get_package_catalog.cache_clear()


@pytest.fixture
def catalog():
    """Catalog built from the built-in tables only."""
    return DEFAULT_CATALOG


@pytest.fixture
def make_user():
    """Factory for session users with an optional package and add-ons."""

    def _make_user(
        package: str | None = "free",
        *,
        user_id: str = "user-001",
        role: str | None = "directeur",
        package_features: list[str] | None = None,
        pay_as_you_go: dict[str, int] | None = None,
    ) -> User:
        return User(
            id=user_id,
            role=role,
            package=package,
            package_features=package_features,
            pay_as_you_go_resources=PayAsYouGoResources(**pay_as_you_go) if pay_as_you_go is not None else None,
        )

    return _make_user


@pytest.fixture
def now():
    """Saturday 15 June 2024, 10:00 local time."""
    return datetime(2024, 6, 15, 10, 0, 0)
