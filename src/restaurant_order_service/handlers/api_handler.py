"""FastAPI application for the menu, settings and order endpoints."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from decimal import Decimal
from typing import Any

from fastapi import Body, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from restaurant_order_service.exceptions import (
    InvalidMenuItem,
    InvalidOrder,
    InvalidSettings,
    MenuItemNotFound,
    OrderServiceError,
    PersistenceError,
    SettingsUnavailable,
    UnknownMenuItem,
)
from restaurant_order_service.models.menu_models import MenuItem, Money, Settings
from restaurant_order_service.models.order_models import Order, OrderSummary
from restaurant_order_service.services.catalog_service import CatalogService
from restaurant_order_service.services.order_service import OrderService

logger = logging.getLogger(__name__)

ERROR_STATUS_CODES: dict[type[OrderServiceError], int] = {
    InvalidOrder: 400,
    UnknownMenuItem: 400,
    InvalidMenuItem: 400,
    InvalidSettings: 400,
    MenuItemNotFound: 404,
    SettingsUnavailable: 503,
    PersistenceError: 500,
}


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str


class MessageResponse(BaseModel):
    """Plain acknowledgement response."""

    message: str


class MenuItemResponse(BaseModel):
    """Response model for menu item writes."""

    message: str
    item: MenuItem


class DiscountRateResponse(BaseModel):
    """Response model for discount rate updates."""

    message: str
    discount: Money


class TaxRateResponse(BaseModel):
    """Response model for tax rate updates."""

    message: str
    tax: Money


class OrderPlacedResponse(OrderSummary):
    """Response model for a placed order."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    message: str


def error_response(error: OrderServiceError) -> JSONResponse:
    """Render a service error as a JSON response.

    Storage failures are reported with a generic message only.
    """
    status_code = ERROR_STATUS_CODES.get(type(error), 500)
    message = "Internal Server Error" if status_code == 500 else error.message
    content: dict[str, Any] = {"message": message, "error": error.error_code}

    if isinstance(error, UnknownMenuItem):
        content["missingIds"] = error.missing_ids

    return JSONResponse(status_code=status_code, content=content)


def create_app(
    order_service: OrderService,
    catalog_service: CatalogService,
    seed_on_startup: bool = False,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        order_service: Service for placing and listing orders
        catalog_service: Service for menu and settings administration
        seed_on_startup: Whether to insert default menu and settings at startup

    Returns:
        Configured FastAPI application
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if seed_on_startup:
            await app.state.catalog_service.seed_defaults()
            logger.info("Default menu and settings ensured")
        yield

    app = FastAPI(
        title="Restaurant Order Service API",
        description="Menu catalog, discount/tax settings and order placement for a restaurant",
        version="1.0.0",
        lifespan=lifespan,
    )

    # Store services in app state for access in route handlers
    app.state.order_service = order_service
    app.state.catalog_service = catalog_service

    @app.exception_handler(OrderServiceError)
    async def handle_service_error(request: Request, exc: OrderServiceError) -> JSONResponse:
        if isinstance(exc, PersistenceError):
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        return error_response(exc)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(
        request: Request, exc: RequestValidationError  # noqa: ARG001
    ) -> JSONResponse:
        logger.debug(f"Rejected malformed request to {request.url.path}")
        return JSONResponse(
            status_code=400,
            content={"message": "Invalid request", "error": "invalid_request"},
        )

    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    async def health_check() -> HealthResponse:
        """Health check endpoint."""
        return HealthResponse(status="healthy")

    @app.get("/api/menu", response_model=list[MenuItem], tags=["Menu"])
    async def list_menu_items() -> list[MenuItem]:
        """List all menu items."""
        items: list[MenuItem] = await app.state.catalog_service.list_menu_items()
        return items

    @app.post("/api/menu", response_model=MenuItemResponse, tags=["Menu"])
    async def add_menu_item(payload: Any = Body(None)) -> MenuItemResponse:
        """Add a new menu item.

        Returns:
            The stored item with its assigned id
        """
        item = await app.state.catalog_service.add_menu_item(payload)
        return MenuItemResponse(message="Menu item added successfully", item=item)

    @app.put("/api/menu/{item_id}", response_model=MenuItemResponse, tags=["Menu"])
    async def update_menu_item(item_id: int, payload: Any = Body(None)) -> MenuItemResponse:
        """Replace the fields of a menu item."""
        item = await app.state.catalog_service.update_menu_item(item_id, payload)
        return MenuItemResponse(message="Menu item updated successfully", item=item)

    @app.delete("/api/menu/{item_id}", response_model=MessageResponse, tags=["Menu"])
    async def delete_menu_item(item_id: int) -> MessageResponse:
        """Delete a menu item."""
        await app.state.catalog_service.delete_menu_item(item_id)
        return MessageResponse(message="Menu item deleted successfully")

    @app.get("/api/settings", response_model=Settings, tags=["Settings"])
    async def get_settings() -> Settings:
        """Get the current discount and tax rates."""
        settings: Settings = await app.state.catalog_service.get_settings()
        return settings

    @app.put("/api/settings/discount", response_model=DiscountRateResponse, tags=["Settings"])
    async def update_discount_rate(payload: Any = Body(None)) -> DiscountRateResponse:
        """Update the global discount percentage."""
        discount: Decimal = await app.state.catalog_service.update_discount_rate(payload)
        return DiscountRateResponse(message="Discount rate updated successfully", discount=discount)

    @app.put("/api/settings/tax", response_model=TaxRateResponse, tags=["Settings"])
    async def update_tax_rate(payload: Any = Body(None)) -> TaxRateResponse:
        """Update the global tax rate."""
        tax: Decimal = await app.state.catalog_service.update_tax_rate(payload)
        return TaxRateResponse(message="Tax rate updated successfully", tax=tax)

    @app.get("/api/orders", response_model=list[Order], tags=["Orders"])
    async def list_orders() -> list[Order]:
        """List all placed orders, newest first."""
        orders: list[Order] = await app.state.order_service.list_orders()
        return orders

    @app.post("/api/orders", response_model=OrderPlacedResponse, tags=["Orders"])
    async def place_order(payload: Any = Body(None)) -> OrderPlacedResponse:
        """Place an order.

        The body carries tableNumber, items (a list of {"id": <menu item id>})
        and an optional discount percentage overriding the global rate.

        Returns:
            Computed totals of the stored order
        """
        summary: OrderSummary = await app.state.order_service.place_order(payload)
        return OrderPlacedResponse(
            message="Order received successfully",
            **summary.model_dump(),
        )

    return app
