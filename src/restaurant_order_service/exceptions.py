"""Error taxonomy for the order service.

Repositories report storage failures with sentinel return values (None/False);
the services translate those, and invalid input, into the exceptions below.
The HTTP layer maps each exception type onto a status code.
"""

from collections.abc import Iterable


class OrderServiceError(Exception):
    """Base class for all errors raised by the order service."""

    error_code = "order_service_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidOrder(OrderServiceError):
    """Order request is malformed or semantically invalid."""

    error_code = "invalid_order"


class UnknownMenuItem(OrderServiceError):
    """One or more requested menu item ids do not exist in the catalog."""

    error_code = "unknown_menu_item"

    def __init__(self, missing_ids: Iterable[int]) -> None:
        self.missing_ids = list(missing_ids)
        ids = ", ".join(str(item_id) for item_id in self.missing_ids)
        super().__init__(f"Invalid order: Some items do not exist in the menu ({ids})")


class SettingsUnavailable(OrderServiceError):
    """The settings record is missing or could not be read."""

    error_code = "settings_unavailable"


class PersistenceError(OrderServiceError):
    """The backing store failed to read or write a record."""

    error_code = "persistence_error"


class InvalidMenuItem(OrderServiceError):
    """Menu item data supplied to an administrative operation is invalid."""

    error_code = "invalid_menu_item"


class MenuItemNotFound(OrderServiceError):
    """Administrative operation targets a menu item that does not exist."""

    error_code = "menu_item_not_found"

    def __init__(self, item_id: int) -> None:
        self.item_id = item_id
        super().__init__(f"Menu item {item_id} not found")


class InvalidSettings(OrderServiceError):
    """Discount or tax rate update is out of range."""

    error_code = "invalid_settings"
