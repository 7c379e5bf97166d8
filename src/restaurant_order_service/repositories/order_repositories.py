"""DynamoDB repository for the append-only order log."""

import logging

from botocore.exceptions import BotoCoreError, ClientError
from mypy_boto3_dynamodb.service_resource import DynamoDBServiceResource, Table

from restaurant_order_service.models.order_models import Order

logger = logging.getLogger(__name__)


class OrderRepository:
    """Repository for order records.

    Orders are written once and never updated or deleted, so the repository
    exposes no update or delete operations.
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

    def save_order(self, order: Order) -> bool:
        """Append a new order.

        The write is conditional on the order_id being unused, so an existing
        record is never overwritten.

        Args:
            order: Order to save

        Returns:
            bool: True if save succeeded, False otherwise
        """
        try:
            self.table.put_item(
                Item=order.to_dynamodb_item(),
                ConditionExpression="attribute_not_exists(order_id)",
            )
            return True

        except (BotoCoreError, ClientError) as e:
            logger.error(f"Failed to save order {order.order_id}: {e}")  # pragma: no cover
            return False

        except (ArithmeticError, TypeError) as e:
            # Raised by the boto3 serializer for numbers outside the DynamoDB range
            logger.error(f"Order {order.order_id} is not storable: {e}")
            return False

    def list_orders(self) -> list[Order] | None:
        """List all orders.

        Returns:
            list: Order objects, newest first, None on failure
        """
        try:
            response = self.table.scan()
            records = list(response.get("Items", []))

            while "LastEvaluatedKey" in response:
                response = self.table.scan(ExclusiveStartKey=response["LastEvaluatedKey"])
                records.extend(response.get("Items", []))

            orders = [Order.from_dynamodb_item(record) for record in records]
            return sorted(orders, key=lambda order: order.created_at, reverse=True)

        except (BotoCoreError, ClientError) as e:
            logger.error(f"Failed to list orders: {e}")  # pragma: no cover
            return None
