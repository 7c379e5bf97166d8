"""DynamoDB repository classes for the catalog and settings.

These repositories follow the house convention: expected failures are reported
with simple return values (None/False) rather than exceptions, and the calling
service decides which error to raise.
"""

import logging
import time
from collections.abc import Iterable
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError
from mypy_boto3_dynamodb.service_resource import DynamoDBServiceResource, Table

from restaurant_order_service.models.menu_models import SETTINGS_KEY, MenuItem, Settings

logger = logging.getLogger(__name__)

# DynamoDB BatchGetItem accepts at most 100 keys per request
BATCH_GET_LIMIT = 100
BATCH_GET_MAX_ATTEMPTS = 5
BATCH_GET_INITIAL_DELAY = 0.05


def is_conditional_check_failure(error: Exception) -> bool:
    """Return True if a write was refused by its ConditionExpression."""
    return (
        isinstance(error, ClientError)
        and error.response.get("Error", {}).get("Code") == "ConditionalCheckFailedException"
    )


class MenuItemRepository:
    """Repository for menu item CRUD operations.

    Manages menu item records in DynamoDB with the numeric id as partition key.
    """

    def __init__(self, dynamodb_resource: DynamoDBServiceResource, table_name: str) -> None:
        """Initialize repository.

        Args:
            dynamodb_resource: Boto3 DynamoDB resource
            table_name: Name of the DynamoDB table
        """
        self.dynamodb = dynamodb_resource
        self.table_name = table_name
        self.table: Table = dynamodb_resource.Table(table_name)

    def get_items_by_ids(self, item_ids: Iterable[int]) -> list[MenuItem] | None:
        """Retrieve the menu items matching a set of ids in batched reads.

        Duplicate ids are looked up once. Ids with no matching record are
        simply absent from the result. Keys the store leaves unprocessed are
        re-requested with exponential backoff, up to BATCH_GET_MAX_ATTEMPTS
        requests per chunk.

        Args:
            item_ids: Menu item identifiers

        Returns:
            list: Matching MenuItem objects (in no particular order), None on failure
        """
        unique_ids = list(dict.fromkeys(item_ids))
        items: list[MenuItem] = []

        try:
            for start in range(0, len(unique_ids), BATCH_GET_LIMIT):
                chunk = unique_ids[start : start + BATCH_GET_LIMIT]
                request: dict[str, Any] = {
                    self.table_name: {"Keys": [{"id": item_id} for item_id in chunk]}
                }

                for attempt in range(BATCH_GET_MAX_ATTEMPTS):
                    if attempt:
                        time.sleep(BATCH_GET_INITIAL_DELAY * 2 ** (attempt - 1))
                    response = self.dynamodb.batch_get_item(RequestItems=request)
                    for item in response.get("Responses", {}).get(self.table_name, []):
                        items.append(MenuItem.from_dynamodb_item(item))
                    # Throttled keys come back unprocessed and must be re-requested
                    request = response.get("UnprocessedKeys") or {}
                    if not request:
                        break
                else:
                    logger.error(
                        f"Menu item keys still unprocessed after {BATCH_GET_MAX_ATTEMPTS} attempts"
                    )
                    return None

            return items

        except (BotoCoreError, ClientError) as e:
            logger.error(f"Failed to get menu items by ids: {e}")  # pragma: no cover
            return None

    def list_items(self) -> list[MenuItem] | None:
        """List every menu item in the catalog.

        Returns:
            list: MenuItem objects sorted by id, None on failure
        """
        try:
            response = self.table.scan()
            records = list(response.get("Items", []))

            while "LastEvaluatedKey" in response:
                response = self.table.scan(ExclusiveStartKey=response["LastEvaluatedKey"])
                records.extend(response.get("Items", []))

            items = [MenuItem.from_dynamodb_item(record) for record in records]
            return sorted(items, key=lambda item: item.id)

        except (BotoCoreError, ClientError) as e:
            logger.error(f"Failed to list menu items: {e}")  # pragma: no cover
            return None

    def count_items(self) -> int | None:
        """Count menu items in the catalog.

        Returns:
            int: Number of menu items, None on failure
        """
        try:
            response = self.table.scan(Select="COUNT")
            count = int(response.get("Count", 0))

            while "LastEvaluatedKey" in response:
                response = self.table.scan(
                    Select="COUNT", ExclusiveStartKey=response["LastEvaluatedKey"]
                )
                count += int(response.get("Count", 0))

            return count

        except (BotoCoreError, ClientError) as e:
            logger.error(f"Failed to count menu items: {e}")  # pragma: no cover
            return None

    def insert_item(self, item: MenuItem) -> bool | None:
        """Create a menu item unless its id is already taken.

        Args:
            item: MenuItem to create

        Returns:
            True if created, False if the id is taken, None on failure
        """
        return self._conditional_put(item, "attribute_not_exists(id)")

    def replace_item(self, item: MenuItem) -> bool | None:
        """Replace an existing menu item.

        Args:
            item: MenuItem with the new fields

        Returns:
            True if replaced, False if no item has this id, None on failure
        """
        return self._conditional_put(item, "attribute_exists(id)")

    def _conditional_put(self, item: MenuItem, condition: str) -> bool | None:
        try:
            self.table.put_item(Item=item.to_dynamodb_item(), ConditionExpression=condition)
            return True

        except (BotoCoreError, ClientError) as e:
            if is_conditional_check_failure(e):
                return False
            logger.error(f"Failed to save menu item {item.id}: {e}")  # pragma: no cover
            return None

        except (ArithmeticError, TypeError) as e:
            logger.error(f"Menu item {item.id} is not storable: {e}")
            return None

    def save_items(self, items: Iterable[MenuItem]) -> bool:
        """Save several menu items with a batch writer.

        Args:
            items: MenuItems to save

        Returns:
            bool: True if every write succeeded, False otherwise
        """
        try:
            with self.table.batch_writer() as batch:
                for item in items:
                    batch.put_item(Item=item.to_dynamodb_item())
            return True

        except (BotoCoreError, ClientError) as e:
            logger.error(f"Failed to batch save menu items: {e}")  # pragma: no cover
            return False

    def delete_item(self, item_id: int) -> bool:
        """Delete a menu item.

        Args:
            item_id: Menu item identifier

        Returns:
            bool: True if delete succeeded, False otherwise
        """
        try:
            self.table.delete_item(Key={"id": item_id})
            return True

        except (BotoCoreError, ClientError) as e:
            logger.error(f"Failed to delete menu item {item_id}: {e}")  # pragma: no cover
            return False


class SettingsRepository:
    """Repository for the singleton settings record.

    The record lives under a fixed partition key so there is never more than one.
    """

    def __init__(self, dynamodb_resource: DynamoDBServiceResource, table_name: str) -> None:
        """Initialize repository.

        Args:
            dynamodb_resource: Boto3 DynamoDB resource
            table_name: Name of the DynamoDB table
        """
        self.dynamodb = dynamodb_resource
        self.table_name = table_name
        self.table: Table = dynamodb_resource.Table(table_name)

    def get_settings(self) -> Settings | None:
        """Retrieve the current settings.

        Returns:
            Settings if found, None otherwise
        """
        try:
            response = self.table.get_item(Key={"settings_id": SETTINGS_KEY})

            if "Item" not in response:
                return None

            return Settings.from_dynamodb_item(response["Item"])

        except (BotoCoreError, ClientError) as e:
            logger.error(f"Failed to get settings: {e}")  # pragma: no cover
            return None

    def insert_if_absent(self, settings: Settings) -> bool:
        """Create the settings record unless one already exists.

        Args:
            settings: Default settings to insert

        Returns:
            bool: True if a settings record exists after the call, False on failure
        """
        try:
            self.table.put_item(
                Item=settings.to_dynamodb_item(),
                ConditionExpression="attribute_not_exists(settings_id)",
            )
            logger.info("Default settings inserted")
            return True

        except (BotoCoreError, ClientError) as e:
            if is_conditional_check_failure(e):
                logger.debug("Settings already present, leaving them untouched")
                return True
            logger.error(f"Failed to insert default settings: {e}")  # pragma: no cover
            return False

    def update_discount_rate(self, discount_rate: Any) -> bool:
        """Update the global discount rate in place.

        Args:
            discount_rate: New discount percentage

        Returns:
            bool: True if update succeeded, False otherwise
        """
        return self._update_field("discount_rate", discount_rate)

    def update_tax_rate(self, tax_rate: Any) -> bool:
        """Update the global tax rate in place.

        Args:
            tax_rate: New tax fraction

        Returns:
            bool: True if update succeeded, False otherwise
        """
        return self._update_field("tax_rate", tax_rate)

    def _update_field(self, field: str, value: Any) -> bool:
        try:
            self.table.update_item(
                Key={"settings_id": SETTINGS_KEY},
                UpdateExpression="SET #field = :value",
                ConditionExpression="attribute_exists(settings_id)",
                ExpressionAttributeNames={"#field": field},
                ExpressionAttributeValues={":value": value},
            )
            return True

        except (BotoCoreError, ClientError) as e:
            logger.error(f"Failed to update {field}: {e}")  # pragma: no cover
            return False
