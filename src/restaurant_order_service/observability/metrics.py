"""Custom metrics for the restaurant order service."""

from decimal import Decimal

from opentelemetry import metrics

meter = metrics.get_meter("order-svc")

orders_placed_counter = meter.create_counter(
    name="orders_placed_total",
    description="Total number of orders priced and persisted",
    unit="1",
)

orders_rejected_counter = meter.create_counter(
    name="orders_rejected_total",
    description="Total number of rejected order requests by reason",
    unit="1",
)

order_net_payable_histogram = meter.create_histogram(
    name="order_net_payable",
    description="Net payable amount of placed orders",
    unit="1",
)

order_line_count_histogram = meter.create_histogram(
    name="order_line_count",
    description="Number of lines per placed order",
    unit="1",
)


def record_order_placed(net_payable: Decimal, line_count: int) -> None:
    """Record a successfully placed order.

    Args:
        net_payable: Net payable amount of the order
        line_count: Number of lines on the order
    """
    orders_placed_counter.add(1)
    order_net_payable_histogram.record(float(net_payable))
    order_line_count_histogram.record(line_count)


def record_order_rejected(reason: str) -> None:
    """Record a rejected order request.

    Args:
        reason: Error code of the rejection (e.g., "unknown_menu_item")
    """
    orders_rejected_counter.add(1, {"reason": reason})
