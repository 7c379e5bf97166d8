"""Catalog and settings data models.

Menu items and the singleton settings record as stored in DynamoDB. Monetary
values and rates are Decimals (DynamoDB's native number type) and are
rendered as JSON numbers on the wire, with camelCase keys.
"""

from decimal import Decimal
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer
from pydantic.alias_generators import to_camel

# Decimal internally, JSON number at the API boundary
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]

# Inbound amounts and rates, bounded to stay inside the DynamoDB number range
InputDecimal = Annotated[Decimal, Field(max_digits=12, decimal_places=4)]

SETTINGS_KEY = "global"


class MenuItem(BaseModel):
    """Menu item model."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: int = Field(..., description="Unique identifier for the menu item")
    name: str = Field(..., description="Item name")
    price: Money = Field(..., description="Item price", ge=0)
    category: str = Field(..., description="Category tag (e.g., 'vegetarian')")
    image_url: str = Field(..., description="Path or URL to the item image")

    def to_dynamodb_item(self) -> dict[str, Any]:
        """Convert to DynamoDB item format.

        Returns:
            dict: DynamoDB-compatible representation
        """
        return {
            "id": self.id,
            "name": self.name,
            "price": self.price,
            "category": self.category,
            "image_url": self.image_url,
        }

    @classmethod
    def from_dynamodb_item(cls, item: dict[str, Any]) -> "MenuItem":
        """Create MenuItem from DynamoDB item.

        Args:
            item: DynamoDB item dictionary

        Returns:
            MenuItem: Parsed model instance
        """
        return cls(
            id=int(item["id"]),
            name=item["name"],
            price=Decimal(str(item["price"])),
            category=item["category"],
            image_url=item["image_url"],
        )


class MenuItemInput(BaseModel):
    """Payload for creating or replacing a menu item."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: str = Field(..., min_length=1)
    price: InputDecimal = Field(..., ge=0)
    category: str = Field(..., min_length=1)
    image_url: str = Field(..., min_length=1)

    def to_menu_item(self, item_id: int) -> MenuItem:
        return MenuItem(
            id=item_id,
            name=self.name,
            price=self.price,
            category=self.category,
            image_url=self.image_url,
        )


class Settings(BaseModel):
    """Global discount and tax configuration.

    Exactly one record exists. The discount rate is a percentage (0-100)
    while the tax rate is a fraction (0.10 means 10%).
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    discount_rate: Money = Field(..., description="Discount percentage", ge=0, le=100)
    tax_rate: Money = Field(..., description="Tax as a fraction of the taxable amount", ge=0)

    def to_dynamodb_item(self) -> dict[str, Any]:
        """Convert to DynamoDB item format under the singleton key.

        Returns:
            dict: DynamoDB-compatible representation
        """
        return {
            "settings_id": SETTINGS_KEY,
            "discount_rate": self.discount_rate,
            "tax_rate": self.tax_rate,
        }

    @classmethod
    def from_dynamodb_item(cls, item: dict[str, Any]) -> "Settings":
        """Create Settings from DynamoDB item.

        Args:
            item: DynamoDB item dictionary

        Returns:
            Settings: Parsed model instance
        """
        return cls(
            discount_rate=Decimal(str(item["discount_rate"])),
            tax_rate=Decimal(str(item["tax_rate"])),
        )


class DiscountRateUpdate(BaseModel):
    """Payload for updating the global discount rate."""

    discount: InputDecimal = Field(..., ge=0, le=100)


class TaxRateUpdate(BaseModel):
    """Payload for updating the global tax rate."""

    tax: InputDecimal = Field(..., ge=0)
