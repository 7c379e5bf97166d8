"""Order pricing arithmetic.

Pure functions with no I/O. All values are Decimals and no rounding is
applied; rounding for display happens at the API boundary.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal

from restaurant_order_service.models.menu_models import Settings
from restaurant_order_service.models.order_models import OrderLine

HUNDRED = Decimal(100)


@dataclass(frozen=True)
class PricingBreakdown:
    """Result of pricing a set of order lines.

    Attributes:
        total: Sum of line prices
        discount_rate: Discount percentage that was applied
        discount: Absolute discount amount
        taxable_amount: Total after discount
        tax_rate: Tax fraction that was applied
        tax: Absolute tax amount
        net_payable: Taxable amount plus tax
    """

    total: Decimal
    discount_rate: Decimal
    discount: Decimal
    taxable_amount: Decimal
    tax_rate: Decimal
    tax: Decimal
    net_payable: Decimal


def calculate_pricing(
    lines: Sequence[OrderLine],
    settings: Settings,
    discount_override: Decimal | None = None,
) -> PricingBreakdown:
    """Compute total, discount, tax and net payable for resolved order lines.

    Every line contributes its price once, so an item listed twice is charged
    twice. The discount rate is a percentage and the tax rate a fraction.

    Args:
        lines: Resolved order lines with price snapshots
        settings: Current global settings
        discount_override: Per-order discount percentage; settings rate when None

    Returns:
        PricingBreakdown with every computed amount
    """
    total = sum((line.price for line in lines), Decimal(0))
    discount_rate = discount_override if discount_override is not None else settings.discount_rate

    discount = total * discount_rate / HUNDRED
    taxable_amount = total - discount
    tax = taxable_amount * settings.tax_rate
    net_payable = taxable_amount + tax

    return PricingBreakdown(
        total=total,
        discount_rate=discount_rate,
        discount=discount,
        taxable_amount=taxable_amount,
        tax_rate=settings.tax_rate,
        tax=tax,
        net_payable=net_payable,
    )
