"""Catalog service for menu and settings administration."""

import asyncio
import logging
from decimal import Decimal
from typing import Any

from pydantic import ValidationError

from restaurant_order_service.exceptions import (
    InvalidMenuItem,
    InvalidSettings,
    MenuItemNotFound,
    PersistenceError,
    SettingsUnavailable,
)
from restaurant_order_service.models.menu_models import (
    DiscountRateUpdate,
    MenuItem,
    MenuItemInput,
    Settings,
    TaxRateUpdate,
)
from restaurant_order_service.repositories.menu_repositories import (
    MenuItemRepository,
    SettingsRepository,
)
from restaurant_order_service.services.order_service import format_validation_error

logger = logging.getLogger(__name__)

DEFAULT_MENU_ITEMS = (
    MenuItem(
        id=1,
        name="Paneer Butter Masala",
        price=Decimal("150"),
        category="vegetarian",
        image_url="/images/paneerbutter.png",
    ),
    MenuItem(
        id=2,
        name="Chicken Tikka Masala",
        price=Decimal("200"),
        category="non-vegetarian",
        image_url="/images/chickentikka.png",
    ),
)

DEFAULT_SETTINGS = Settings(discount_rate=Decimal("0"), tax_rate=Decimal("0.10"))

MAX_ID_ATTEMPTS = 5


class CatalogService:
    """Service for administering the menu and the global settings.

    Also owns the startup seeding step that creates the default menu and
    settings when the tables are empty.
    """

    def __init__(
        self,
        menu_repository: MenuItemRepository,
        settings_repository: SettingsRepository,
    ) -> None:
        """Initialize the CatalogService.

        Args:
            menu_repository: Repository for menu items
            settings_repository: Repository for the settings record
        """
        self.menu_repository = menu_repository
        self.settings_repository = settings_repository

    async def seed_defaults(self) -> None:
        """Insert the default menu and settings if they are absent.

        Safe to run on every startup: menu items are only inserted into an
        empty table and the settings insert is conditional.

        Raises:
            PersistenceError: If the store could not be read or written
        """
        count = await asyncio.to_thread(self.menu_repository.count_items)
        if count is None:
            raise PersistenceError("Failed to count menu items")

        if count == 0:
            if not await asyncio.to_thread(self.menu_repository.save_items, DEFAULT_MENU_ITEMS):
                raise PersistenceError("Failed to seed default menu items")
            logger.info(f"Seeded {len(DEFAULT_MENU_ITEMS)} default menu items")

        if not await asyncio.to_thread(self.settings_repository.insert_if_absent, DEFAULT_SETTINGS):
            raise PersistenceError("Failed to seed default settings")

    async def list_menu_items(self) -> list[MenuItem]:
        items = await asyncio.to_thread(self.menu_repository.list_items)
        if items is None:
            raise PersistenceError("Failed to read menu items")
        return items

    async def add_menu_item(self, payload: Any) -> MenuItem:
        """Add a new menu item with the next free id.

        Args:
            payload: Decoded JSON body with name, price, category and imageUrl

        Returns:
            The stored MenuItem

        Raises:
            InvalidMenuItem: If required fields are missing or invalid
            PersistenceError: If the store could not be read or written
        """
        data = self._parse_menu_item(payload)

        items = await self.list_menu_items()
        next_id = max((item.id for item in items), default=0) + 1

        # A concurrent add may claim the same id first; move on to the next one
        for item_id in range(next_id, next_id + MAX_ID_ATTEMPTS):
            item = data.to_menu_item(item_id)
            inserted = await asyncio.to_thread(self.menu_repository.insert_item, item)
            if inserted is None:
                raise PersistenceError(f"Failed to save menu item {item_id}")
            if inserted:
                logger.info(f"Menu item {item.id} added: {item.name}")
                return item
            logger.debug(f"Menu item id {item_id} already taken")

        raise PersistenceError(f"No free menu item id after {MAX_ID_ATTEMPTS} attempts")

    async def update_menu_item(self, item_id: int, payload: Any) -> MenuItem:
        """Replace the fields of an existing menu item.

        Placed orders are unaffected: they keep their own price snapshots.

        Args:
            item_id: Menu item to update
            payload: Decoded JSON body with name, price, category and imageUrl

        Returns:
            The updated MenuItem

        Raises:
            InvalidMenuItem: If required fields are missing or invalid
            MenuItemNotFound: If no item has this id
            PersistenceError: If the store could not be read or written
        """
        data = self._parse_menu_item(payload)

        item = data.to_menu_item(item_id)
        replaced = await asyncio.to_thread(self.menu_repository.replace_item, item)
        if replaced is None:
            raise PersistenceError(f"Failed to save menu item {item_id}")
        if not replaced:
            raise MenuItemNotFound(item_id)

        logger.info(f"Menu item {item_id} updated")
        return item

    async def delete_menu_item(self, item_id: int) -> None:
        """Delete a menu item.

        Raises:
            MenuItemNotFound: If no item has this id
            PersistenceError: If the store could not be read or written
        """
        await self._require_item(item_id)

        if not await asyncio.to_thread(self.menu_repository.delete_item, item_id):
            raise PersistenceError(f"Failed to delete menu item {item_id}")

        logger.info(f"Menu item {item_id} deleted")

    async def get_settings(self) -> Settings:
        settings = await asyncio.to_thread(self.settings_repository.get_settings)
        if settings is None:
            raise SettingsUnavailable("Settings are not configured")
        return settings

    async def update_discount_rate(self, payload: Any) -> Decimal:
        """Set the global discount percentage.

        Args:
            payload: Decoded JSON body of the form {"discount": <0-100>}

        Returns:
            The new discount rate

        Raises:
            InvalidSettings: If the rate is missing or outside [0, 100]
            SettingsUnavailable: If there is no settings record to update
            PersistenceError: If the update failed
        """
        try:
            update = DiscountRateUpdate.model_validate(payload)
        except ValidationError as e:
            raise InvalidSettings(f"Invalid discount rate: {format_validation_error(e)}") from e

        await self.get_settings()
        if not await asyncio.to_thread(
            self.settings_repository.update_discount_rate, update.discount
        ):
            raise PersistenceError("Failed to update discount rate")

        logger.info(f"Discount rate set to {update.discount}")
        return update.discount

    async def update_tax_rate(self, payload: Any) -> Decimal:
        """Set the global tax fraction.

        Args:
            payload: Decoded JSON body of the form {"tax": <non-negative>}

        Returns:
            The new tax rate

        Raises:
            InvalidSettings: If the rate is missing or negative
            SettingsUnavailable: If there is no settings record to update
            PersistenceError: If the update failed
        """
        try:
            update = TaxRateUpdate.model_validate(payload)
        except ValidationError as e:
            raise InvalidSettings(f"Invalid tax rate: {format_validation_error(e)}") from e

        await self.get_settings()
        if not await asyncio.to_thread(self.settings_repository.update_tax_rate, update.tax):
            raise PersistenceError("Failed to update tax rate")

        logger.info(f"Tax rate set to {update.tax}")
        return update.tax

    def _parse_menu_item(self, payload: Any) -> MenuItemInput:
        try:
            return MenuItemInput.model_validate(payload)
        except ValidationError as e:
            raise InvalidMenuItem(f"Invalid menu item data: {format_validation_error(e)}") from e

    async def _require_item(self, item_id: int) -> MenuItem:
        found = await asyncio.to_thread(self.menu_repository.get_items_by_ids, [item_id])
        if found is None:
            raise PersistenceError(f"Failed to read menu item {item_id}")
        if not found:
            raise MenuItemNotFound(item_id)
        return found[0]
