"""Order request, order record and summary models.

Orders are append-only: once persisted a record is never updated. Each line
carries a snapshot of the menu item's price taken when the order was priced.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, StrictInt
from pydantic.alias_generators import to_camel

from restaurant_order_service.models.menu_models import InputDecimal, MenuItem, Money


class OrderItemRef(BaseModel):
    """Reference to a menu item inside an order request."""

    id: StrictInt = Field(..., description="Menu item identifier")


class OrderRequest(BaseModel):
    """Inbound order request (validated, never persisted).

    Repeating an item id orders that item again; there is no quantity field.
    Zero-item orders are rejected.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    table_number: StrictInt = Field(..., description="Table placing the order", gt=0)
    items: list[OrderItemRef] = Field(..., description="Ordered item references", min_length=1)
    discount: InputDecimal | None = Field(
        None, description="Per-order discount percentage overriding settings", ge=0, le=100
    )

    @property
    def item_ids(self) -> list[int]:
        return [item.id for item in self.items]


class OrderLine(BaseModel):
    """Snapshot of a menu item captured at order time."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: int
    name: str
    price: Money
    image_url: str

    @classmethod
    def from_menu_item(cls, item: MenuItem) -> "OrderLine":
        return cls(id=item.id, name=item.name, price=item.price, image_url=item.image_url)

    def to_dynamodb_item(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "price": self.price,
            "image_url": self.image_url,
        }

    @classmethod
    def from_dynamodb_item(cls, item: dict[str, Any]) -> "OrderLine":
        return cls(
            id=int(item["id"]),
            name=item.get("name", ""),
            price=Decimal(str(item["price"])),
            image_url=item.get("image_url", ""),
        )


class Order(BaseModel):
    """Persisted order record.

    Stored in DynamoDB with order_id as partition key. Monetary fields satisfy
    total - discount + tax == net_payable exactly.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    order_id: str = Field(..., description="Store-assigned order identifier")
    table_number: int = Field(..., description="Table that placed the order", gt=0)
    items: tuple[OrderLine, ...] = Field(..., description="Price snapshots of ordered items")
    total: Money = Field(..., description="Sum of line prices")
    discount: Money = Field(..., description="Absolute discount amount")
    tax: Money = Field(..., description="Absolute tax amount")
    net_payable: Money = Field(..., description="Amount owed after discount and tax")
    created_at: datetime = Field(..., description="Order creation timestamp (UTC)")

    def to_dynamodb_item(self) -> dict[str, Any]:
        """Convert to DynamoDB item format.

        Returns:
            dict: DynamoDB-compatible representation
        """
        return {
            "order_id": self.order_id,
            "table_number": self.table_number,
            "items": [line.to_dynamodb_item() for line in self.items],
            "total": self.total,
            "discount": self.discount,
            "tax": self.tax,
            "net_payable": self.net_payable,
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_dynamodb_item(cls, item: dict[str, Any]) -> "Order":
        """Create Order from DynamoDB item.

        Args:
            item: DynamoDB item dictionary

        Returns:
            Order: Parsed model instance
        """
        return cls(
            order_id=item["order_id"],
            table_number=int(item["table_number"]),
            items=tuple(OrderLine.from_dynamodb_item(line) for line in item.get("items", [])),
            total=Decimal(str(item["total"])),
            discount=Decimal(str(item["discount"])),
            tax=Decimal(str(item["tax"])),
            net_payable=Decimal(str(item["net_payable"])),
            created_at=datetime.fromisoformat(item["created_at"]),
        )


class OrderSummary(BaseModel):
    """Summary returned to the caller after an order is placed."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    order_id: str
    total: Money
    discount: Money
    tax: Money
    net_payable: Money
    created_at: datetime

    @classmethod
    def from_order(cls, order: Order) -> "OrderSummary":
        return cls(
            order_id=order.order_id,
            total=order.total,
            discount=order.discount,
            tax=order.tax,
            net_payable=order.net_payable,
            created_at=order.created_at,
        )
