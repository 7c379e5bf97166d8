"""Order service for validating, pricing and recording orders."""

import asyncio
import logging
import uuid
from collections.abc import Sequence
from datetime import UTC, datetime
from typing import Any

from pydantic import ValidationError

from restaurant_order_service.exceptions import (
    InvalidOrder,
    OrderServiceError,
    PersistenceError,
    SettingsUnavailable,
    UnknownMenuItem,
)
from restaurant_order_service.models.menu_models import Settings
from restaurant_order_service.models.order_models import (
    Order,
    OrderLine,
    OrderRequest,
    OrderSummary,
)
from restaurant_order_service.observability.decorators import traced
from restaurant_order_service.observability.metrics import (
    record_order_placed,
    record_order_rejected,
)
from restaurant_order_service.repositories.menu_repositories import (
    MenuItemRepository,
    SettingsRepository,
)
from restaurant_order_service.repositories.order_repositories import OrderRepository
from restaurant_order_service.services.pricing import PricingBreakdown, calculate_pricing

logger = logging.getLogger(__name__)


def format_validation_error(error: ValidationError) -> str:
    """Flatten pydantic validation errors into a single readable message."""
    problems = []
    for detail in error.errors():
        location = ".".join(str(part) for part in detail["loc"]) or "body"
        problems.append(f"{location}: {detail['msg']}")
    return "; ".join(problems)


class OrderService:
    """Service for placing orders against the current catalog and settings.

    Placing an order walks Received -> Validated -> Resolved -> Priced ->
    Persisted. Any failure before persistence rejects the whole request and
    nothing is written. Nothing is retried.
    """

    def __init__(
        self,
        menu_repository: MenuItemRepository,
        settings_repository: SettingsRepository,
        order_repository: OrderRepository,
    ) -> None:
        """Initialize the OrderService.

        Args:
            menu_repository: Repository for catalog lookups
            settings_repository: Repository for the settings record
            order_repository: Repository for storing orders
        """
        self.menu_repository = menu_repository
        self.settings_repository = settings_repository
        self.order_repository = order_repository

    def validate_request(self, payload: Any) -> OrderRequest:
        """Parse and validate a raw order payload.

        Args:
            payload: Decoded JSON request body

        Returns:
            Validated OrderRequest

        Raises:
            InvalidOrder: If the payload is malformed, the table number is not a
                positive integer, items are missing or empty, or the discount
                override is outside [0, 100]
        """
        if not isinstance(payload, dict):
            raise InvalidOrder("Invalid order: request body must be a JSON object")

        try:
            return OrderRequest.model_validate(payload)
        except ValidationError as e:
            raise InvalidOrder(f"Invalid order: {format_validation_error(e)}") from e

    async def resolve_items(self, item_ids: Sequence[int]) -> list[OrderLine]:
        """Resolve requested item ids into price snapshots.

        A single batched lookup is issued for the distinct ids. The result has
        one line per requested id, in request order, duplicates included.

        Args:
            item_ids: Requested menu item ids

        Returns:
            List of OrderLine snapshots

        Raises:
            UnknownMenuItem: If any id is not in the catalog
            PersistenceError: If the catalog could not be read
        """
        menu_items = await asyncio.to_thread(self.menu_repository.get_items_by_ids, item_ids)
        if menu_items is None:
            raise PersistenceError("Failed to read menu items")

        catalog = {item.id: item for item in menu_items}
        missing = [item_id for item_id in dict.fromkeys(item_ids) if item_id not in catalog]
        if missing:
            raise UnknownMenuItem(missing)

        return [OrderLine.from_menu_item(catalog[item_id]) for item_id in item_ids]

    async def get_settings(self) -> Settings:
        """Read the current settings.

        Returns:
            Current Settings

        Raises:
            SettingsUnavailable: If no settings record can be read
        """
        settings = await asyncio.to_thread(self.settings_repository.get_settings)
        if settings is None:
            raise SettingsUnavailable("Settings are not configured")
        return settings

    async def persist_order(
        self,
        request: OrderRequest,
        lines: Sequence[OrderLine],
        pricing: PricingBreakdown,
    ) -> Order:
        """Build the immutable order record and append it to the order log.

        Args:
            request: Validated order request
            lines: Resolved line snapshots
            pricing: Computed pricing for the lines

        Returns:
            The stored Order, including its assigned order_id

        Raises:
            PersistenceError: If the order could not be written
        """
        order = Order(
            order_id=f"ord_{uuid.uuid4().hex[:12]}",
            table_number=request.table_number,
            items=tuple(lines),
            total=pricing.total,
            discount=pricing.discount,
            tax=pricing.tax,
            net_payable=pricing.net_payable,
            created_at=datetime.now(UTC),
        )

        saved = await asyncio.to_thread(self.order_repository.save_order, order)
        if not saved:
            raise PersistenceError(f"Failed to save order {order.order_id}")
        return order

    @traced("place_order")
    async def place_order(self, payload: Any) -> OrderSummary:
        """Validate, price and record an order.

        Args:
            payload: Decoded JSON request body

        Returns:
            OrderSummary of the stored order

        Raises:
            InvalidOrder: If the request is malformed
            UnknownMenuItem: If any requested item is not in the catalog
            SettingsUnavailable: If settings are missing
            PersistenceError: If the catalog read or order write failed
        """
        try:
            request = self.validate_request(payload)
            lines = await self.resolve_items(request.item_ids)
            settings = await self.get_settings()
            pricing = calculate_pricing(lines, settings, request.discount)
            order = await self.persist_order(request, lines, pricing)
        except OrderServiceError as e:
            record_order_rejected(e.error_code)
            logger.warning(f"Order rejected ({e.error_code}): {e.message}")
            raise

        record_order_placed(order.net_payable, len(order.items))
        logger.info(
            f"Order {order.order_id} saved for table {order.table_number}: "
            f"total={order.total} discount={order.discount} tax={order.tax} "
            f"net_payable={order.net_payable}"
        )
        return OrderSummary.from_order(order)

    async def list_orders(self) -> list[Order]:
        """List every stored order, newest first.

        Returns:
            List of Order records

        Raises:
            PersistenceError: If the order log could not be read
        """
        orders = await asyncio.to_thread(self.order_repository.list_orders)
        if orders is None:
            raise PersistenceError("Failed to read orders")
        return orders
