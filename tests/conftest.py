"""Shared pytest fixtures and configuration for all tests."""

import os

# Must be set before src.main is imported so no real application is built
os.environ["ENVIRONMENT"] = "test"

from decimal import Decimal  # noqa: E402

import pytest  # noqa: E402

from restaurant_order_service.models.menu_models import MenuItem, Settings  # noqa: E402


@pytest.fixture
def paneer() -> MenuItem:
    """Fixture providing the vegetarian default menu item (price 150)."""
    return MenuItem(
        id=1,
        name="Paneer Butter Masala",
        price=Decimal("150"),
        category="vegetarian",
        image_url="/images/paneerbutter.png",
    )


@pytest.fixture
def chicken_tikka() -> MenuItem:
    """Fixture providing the non-vegetarian default menu item (price 200)."""
    return MenuItem(
        id=2,
        name="Chicken Tikka Masala",
        price=Decimal("200"),
        category="non-vegetarian",
        image_url="/images/chickentikka.png",
    )


@pytest.fixture
def mock_menu_items(paneer: MenuItem, chicken_tikka: MenuItem) -> list[MenuItem]:
    """Fixture providing the sample catalog."""
    return [paneer, chicken_tikka]


@pytest.fixture
def default_settings() -> Settings:
    """Fixture providing settings with no discount and 10% tax."""
    return Settings(discount_rate=Decimal("0"), tax_rate=Decimal("0.10"))


@pytest.fixture
def mock_order_payload() -> dict:
    """Fixture providing a valid order request body."""
    return {"tableNumber": 5, "items": [{"id": 1}, {"id": 2}]}
