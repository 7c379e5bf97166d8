"""Main application entry point for the restaurant order service.

This module provides the FastAPI application factory and configuration
for running the service locally or in production.
"""

import logging
import os
from typing import Any

import boto3
from fastapi import FastAPI

from restaurant_order_service.handlers.api_handler import create_app
from restaurant_order_service.observability import configure_logging, setup_observability
from restaurant_order_service.repositories.menu_repositories import (
    MenuItemRepository,
    SettingsRepository,
)
from restaurant_order_service.repositories.order_repositories import OrderRepository
from restaurant_order_service.services.catalog_service import CatalogService
from restaurant_order_service.services.order_service import OrderService

logger = logging.getLogger(__name__)


def get_dynamodb_resource() -> Any:
    """Create DynamoDB resource with appropriate configuration.

    Returns:
        Boto3 DynamoDB resource configured for environment
    """
    endpoint_url = os.getenv("DYNAMODB_ENDPOINT")
    region = os.getenv("AWS_REGION", "us-east-1")

    if endpoint_url:
        # Local DynamoDB accepts any credentials
        logger.info(f"Using local DynamoDB at {endpoint_url}")
        return boto3.resource(
            "dynamodb",
            endpoint_url=endpoint_url,
            region_name=region,
            aws_access_key_id=os.getenv("AWS_ACCESS_KEY_ID", "dummy"),
            aws_secret_access_key=os.getenv("AWS_SECRET_ACCESS_KEY", "dummy"),
        )

    logger.info(f"Using AWS DynamoDB in region {region}")
    return boto3.resource("dynamodb", region_name=region)


def env_flag(name: str, default: str = "true") -> bool:
    return os.getenv(name, default).lower() == "true"


def create_application() -> FastAPI:
    """Create and configure the FastAPI application with all dependencies.

    This factory function:
    1. Configures logging
    2. Creates the DynamoDB resource
    3. Initializes repositories
    4. Creates services
    5. Creates the FastAPI app (seeding defaults at startup when enabled)
    6. Sets up observability

    Returns:
        Configured FastAPI application instance
    """
    configure_logging(os.getenv("LOG_LEVEL", "INFO"))

    logger.info("Initializing restaurant order service...")

    dynamodb_resource = get_dynamodb_resource()

    menu_table = os.getenv("DYNAMODB_MENU_TABLE", "restaurant-menu-items")
    settings_table = os.getenv("DYNAMODB_SETTINGS_TABLE", "restaurant-settings")
    orders_table = os.getenv("DYNAMODB_ORDERS_TABLE", "restaurant-orders")

    menu_repository = MenuItemRepository(dynamodb_resource=dynamodb_resource, table_name=menu_table)
    settings_repository = SettingsRepository(
        dynamodb_resource=dynamodb_resource, table_name=settings_table
    )
    order_repository = OrderRepository(dynamodb_resource=dynamodb_resource, table_name=orders_table)

    logger.info(
        f"Repositories configured - menu: {menu_table}, settings: {settings_table}, "
        f"orders: {orders_table}"
    )

    order_service = OrderService(
        menu_repository=menu_repository,
        settings_repository=settings_repository,
        order_repository=order_repository,
    )
    catalog_service = CatalogService(
        menu_repository=menu_repository,
        settings_repository=settings_repository,
    )

    seed_on_startup = env_flag("SEED_DEFAULTS")
    if not seed_on_startup:
        logger.warning("SEED_DEFAULTS disabled - orders fail until settings exist")

    app = create_app(
        order_service=order_service,
        catalog_service=catalog_service,
        seed_on_startup=seed_on_startup,
    )

    if env_flag("ENABLE_TELEMETRY"):
        setup_observability(app)

    logger.info("Restaurant order service initialized successfully")

    return app


# Create the FastAPI application instance (only when not in test mode)
# This prevents the app from being created during test collection
if os.getenv("ENVIRONMENT") != "test":  # noqa: SIM108
    app = create_application()
else:
    # Create a placeholder app for test imports
    app = FastAPI()


if __name__ == "__main__":
    """Run the application with uvicorn when executed directly."""
    import uvicorn

    port = int(os.getenv("PORT", "3001"))
    host = os.getenv("HOST", "0.0.0.0")

    logger.info(f"Starting server on {host}:{port}")
    logger.info(f"API documentation available at http://{host}:{port}/docs")

    uvicorn.run(
        "main:app",
        host=host,
        port=port,
        log_level=os.getenv("LOG_LEVEL", "info").lower(),
    )
