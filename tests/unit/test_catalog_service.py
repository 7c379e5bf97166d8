"""Unit tests for CatalogService."""

import asyncio
import threading
from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from restaurant_order_service.exceptions import (
    InvalidMenuItem,
    InvalidSettings,
    MenuItemNotFound,
    PersistenceError,
    SettingsUnavailable,
)
from restaurant_order_service.models.menu_models import MenuItem, Settings
from restaurant_order_service.repositories.menu_repositories import (
    MenuItemRepository,
    SettingsRepository,
)
from restaurant_order_service.services.catalog_service import (
    DEFAULT_MENU_ITEMS,
    DEFAULT_SETTINGS,
    MAX_ID_ATTEMPTS,
    CatalogService,
)

NAAN = {"name": "Butter Naan", "price": 40, "category": "bread", "imageUrl": "/images/naan.png"}


@pytest.mark.unit
class TestCatalogService:
    """Test suite for CatalogService."""

    @pytest.fixture
    def mock_menu_repo(self, mock_menu_items: list[MenuItem]) -> MenuItemRepository:
        """Create a mock MenuItemRepository with the sample catalog."""
        repo = MagicMock(spec=MenuItemRepository)
        repo.list_items.return_value = list(mock_menu_items)
        repo.count_items.return_value = len(mock_menu_items)
        repo.get_items_by_ids.side_effect = lambda ids: [
            item for item in mock_menu_items if item.id in set(ids)
        ]
        repo.insert_item.return_value = True
        repo.replace_item.side_effect = lambda item: any(
            existing.id == item.id for existing in mock_menu_items
        )
        repo.save_items.return_value = True
        repo.delete_item.return_value = True
        return repo

    @pytest.fixture
    def mock_settings_repo(self, default_settings: Settings) -> SettingsRepository:
        """Create a mock SettingsRepository."""
        repo = MagicMock(spec=SettingsRepository)
        repo.get_settings.return_value = default_settings
        repo.insert_if_absent.return_value = True
        repo.update_discount_rate.return_value = True
        repo.update_tax_rate.return_value = True
        return repo

    @pytest.fixture
    def catalog_service(
        self, mock_menu_repo: MenuItemRepository, mock_settings_repo: SettingsRepository
    ) -> CatalogService:
        """Create a CatalogService with mocked repositories."""
        return CatalogService(
            menu_repository=mock_menu_repo, settings_repository=mock_settings_repo
        )

    @pytest.mark.asyncio
    async def test_seed_defaults_on_empty_store(
        self,
        catalog_service: CatalogService,
        mock_menu_repo: MagicMock,
        mock_settings_repo: MagicMock,
    ) -> None:
        """Test that an empty menu table receives the default items."""
        mock_menu_repo.count_items.return_value = 0

        await catalog_service.seed_defaults()

        mock_menu_repo.save_items.assert_called_once_with(DEFAULT_MENU_ITEMS)
        mock_settings_repo.insert_if_absent.assert_called_once_with(DEFAULT_SETTINGS)

    @pytest.mark.asyncio
    async def test_seed_defaults_is_idempotent(
        self,
        catalog_service: CatalogService,
        mock_menu_repo: MagicMock,
        mock_settings_repo: MagicMock,
    ) -> None:
        """Test that a populated menu is left untouched."""
        await catalog_service.seed_defaults()
        await catalog_service.seed_defaults()

        mock_menu_repo.save_items.assert_not_called()
        assert mock_settings_repo.insert_if_absent.call_count == 2

    @pytest.mark.asyncio
    async def test_seed_defaults_store_failure(
        self, catalog_service: CatalogService, mock_menu_repo: MagicMock
    ) -> None:
        """Test that an unreadable menu table aborts seeding."""
        mock_menu_repo.count_items.return_value = None

        with pytest.raises(PersistenceError):
            await catalog_service.seed_defaults()

    def test_default_seed_values(self) -> None:
        """Test the default menu and settings."""
        assert [(item.id, item.price) for item in DEFAULT_MENU_ITEMS] == [
            (1, Decimal("150")),
            (2, Decimal("200")),
        ]
        assert DEFAULT_SETTINGS.discount_rate == Decimal("0")
        assert DEFAULT_SETTINGS.tax_rate == Decimal("0.10")

    @pytest.mark.asyncio
    async def test_add_menu_item_assigns_next_id(
        self, catalog_service: CatalogService, mock_menu_repo: MagicMock
    ) -> None:
        """Test that new items get max(id) + 1."""
        item = await catalog_service.add_menu_item(NAAN)

        assert item.id == 3
        assert item.price == Decimal("40")
        mock_menu_repo.insert_item.assert_called_once_with(item)

    @pytest.mark.asyncio
    async def test_add_menu_item_to_empty_catalog(
        self, catalog_service: CatalogService, mock_menu_repo: MagicMock
    ) -> None:
        """Test that the first item gets id 1."""
        mock_menu_repo.list_items.return_value = []

        item = await catalog_service.add_menu_item(NAAN)

        assert item.id == 1

    @pytest.mark.asyncio
    async def test_add_menu_item_skips_taken_id(
        self, catalog_service: CatalogService, mock_menu_repo: MagicMock
    ) -> None:
        """Test that an id claimed by a concurrent add moves on to the next id."""
        mock_menu_repo.insert_item.side_effect = [False, True]

        item = await catalog_service.add_menu_item(NAAN)

        assert item.id == 4
        assert [call.args[0].id for call in mock_menu_repo.insert_item.call_args_list] == [3, 4]

    @pytest.mark.asyncio
    async def test_concurrent_adds_keep_both_items(
        self, catalog_service: CatalogService, mock_menu_repo: MagicMock
    ) -> None:
        """Test that two adds reading the same catalog both end up stored."""
        stored: dict[int, MenuItem] = {}
        lock = threading.Lock()

        def insert_item(item: MenuItem) -> bool:
            with lock:
                if item.id in stored:
                    return False
                stored[item.id] = item
                return True

        mock_menu_repo.list_items.return_value = []
        mock_menu_repo.insert_item.side_effect = insert_item

        first, second = await asyncio.gather(
            catalog_service.add_menu_item(NAAN),
            catalog_service.add_menu_item({**NAAN, "name": "Garlic Naan"}),
        )

        assert sorted([first.id, second.id]) == [1, 2]
        assert sorted(item.name for item in stored.values()) == ["Butter Naan", "Garlic Naan"]

    @pytest.mark.asyncio
    async def test_add_menu_item_no_free_id(
        self, catalog_service: CatalogService, mock_menu_repo: MagicMock
    ) -> None:
        """Test that repeated id conflicts raise PersistenceError."""
        mock_menu_repo.insert_item.return_value = False

        with pytest.raises(PersistenceError):
            await catalog_service.add_menu_item(NAAN)

        assert mock_menu_repo.insert_item.call_count == MAX_ID_ATTEMPTS

    @pytest.mark.asyncio
    async def test_add_menu_item_store_failure(
        self, catalog_service: CatalogService, mock_menu_repo: MagicMock
    ) -> None:
        """Test that a failed insert raises PersistenceError without retrying."""
        mock_menu_repo.insert_item.return_value = None

        with pytest.raises(PersistenceError):
            await catalog_service.add_menu_item(NAAN)

        mock_menu_repo.insert_item.assert_called_once()

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "payload",
        [
            None,
            {**NAAN, "name": ""},
            {**NAAN, "price": -5},
            {key: value for key, value in NAAN.items() if key != "category"},
            {**NAAN, "price": 1e200},
            {**NAAN, "price": 1e-200},
        ],
    )
    async def test_add_menu_item_invalid(
        self, catalog_service: CatalogService, mock_menu_repo: MagicMock, payload: object
    ) -> None:
        """Test that incomplete menu item data is rejected."""
        with pytest.raises(InvalidMenuItem):
            await catalog_service.add_menu_item(payload)

        mock_menu_repo.insert_item.assert_not_called()

    @pytest.mark.asyncio
    async def test_update_menu_item(
        self, catalog_service: CatalogService, mock_menu_repo: MagicMock
    ) -> None:
        """Test replacing the fields of an existing item."""
        item = await catalog_service.update_menu_item(2, {**NAAN, "price": 55})

        assert item.id == 2
        assert item.name == "Butter Naan"
        assert item.price == Decimal("55")
        mock_menu_repo.replace_item.assert_called_once_with(item)

    @pytest.mark.asyncio
    async def test_update_unknown_menu_item(
        self, catalog_service: CatalogService, mock_menu_repo: MagicMock
    ) -> None:
        """Test that updating an unknown or concurrently deleted id raises MenuItemNotFound."""
        with pytest.raises(MenuItemNotFound):
            await catalog_service.update_menu_item(42, NAAN)

        mock_menu_repo.replace_item.assert_called_once()

    @pytest.mark.asyncio
    async def test_update_menu_item_store_failure(
        self, catalog_service: CatalogService, mock_menu_repo: MagicMock
    ) -> None:
        """Test that a failed replace raises PersistenceError."""
        mock_menu_repo.replace_item.side_effect = None
        mock_menu_repo.replace_item.return_value = None

        with pytest.raises(PersistenceError):
            await catalog_service.update_menu_item(1, NAAN)

    @pytest.mark.asyncio
    async def test_delete_menu_item(
        self, catalog_service: CatalogService, mock_menu_repo: MagicMock
    ) -> None:
        """Test deleting an existing item."""
        await catalog_service.delete_menu_item(1)

        mock_menu_repo.delete_item.assert_called_once_with(1)

    @pytest.mark.asyncio
    async def test_delete_unknown_menu_item(
        self, catalog_service: CatalogService, mock_menu_repo: MagicMock
    ) -> None:
        """Test that deleting an unknown id raises MenuItemNotFound."""
        with pytest.raises(MenuItemNotFound):
            await catalog_service.delete_menu_item(42)

        mock_menu_repo.delete_item.assert_not_called()

    @pytest.mark.asyncio
    async def test_delete_menu_item_store_failure(
        self, catalog_service: CatalogService, mock_menu_repo: MagicMock
    ) -> None:
        """Test that a failed delete raises PersistenceError."""
        mock_menu_repo.delete_item.return_value = False

        with pytest.raises(PersistenceError):
            await catalog_service.delete_menu_item(1)

    @pytest.mark.asyncio
    async def test_get_settings_missing(
        self, catalog_service: CatalogService, mock_settings_repo: MagicMock
    ) -> None:
        """Test that missing settings raise SettingsUnavailable."""
        mock_settings_repo.get_settings.return_value = None

        with pytest.raises(SettingsUnavailable):
            await catalog_service.get_settings()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("discount", [0, 15, 100])
    async def test_update_discount_rate(
        self, catalog_service: CatalogService, mock_settings_repo: MagicMock, discount: int
    ) -> None:
        """Test setting the discount rate within [0, 100]."""
        result = await catalog_service.update_discount_rate({"discount": discount})

        assert result == Decimal(discount)
        mock_settings_repo.update_discount_rate.assert_called_once_with(Decimal(discount))

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "payload",
        [{}, {"discount": None}, {"discount": -1}, {"discount": 101}, {"discount": 1e-200}],
    )
    async def test_update_discount_rate_invalid(
        self, catalog_service: CatalogService, mock_settings_repo: MagicMock, payload: dict
    ) -> None:
        """Test that out-of-range discount rates are rejected."""
        with pytest.raises(InvalidSettings):
            await catalog_service.update_discount_rate(payload)

        mock_settings_repo.update_discount_rate.assert_not_called()

    @pytest.mark.asyncio
    async def test_update_tax_rate(
        self, catalog_service: CatalogService, mock_settings_repo: MagicMock
    ) -> None:
        """Test setting the tax rate."""
        result = await catalog_service.update_tax_rate({"tax": "0.18"})

        assert result == Decimal("0.18")
        mock_settings_repo.update_tax_rate.assert_called_once_with(Decimal("0.18"))

    @pytest.mark.asyncio
    async def test_update_tax_rate_negative(
        self, catalog_service: CatalogService, mock_settings_repo: MagicMock
    ) -> None:
        """Test that a negative tax rate is rejected."""
        with pytest.raises(InvalidSettings):
            await catalog_service.update_tax_rate({"tax": -0.1})

        mock_settings_repo.update_tax_rate.assert_not_called()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("tax", [1e-200, 1e200, "0.123456"])
    async def test_update_tax_rate_unstorable(
        self, catalog_service: CatalogService, mock_settings_repo: MagicMock, tax: object
    ) -> None:
        """Test that rates outside the stored precision are rejected."""
        with pytest.raises(InvalidSettings):
            await catalog_service.update_tax_rate({"tax": tax})

        mock_settings_repo.update_tax_rate.assert_not_called()

    @pytest.mark.asyncio
    async def test_update_tax_rate_without_settings(
        self, catalog_service: CatalogService, mock_settings_repo: MagicMock
    ) -> None:
        """Test that updates require an existing settings record."""
        mock_settings_repo.get_settings.return_value = None

        with pytest.raises(SettingsUnavailable):
            await catalog_service.update_tax_rate({"tax": 0.2})

        mock_settings_repo.update_tax_rate.assert_not_called()
