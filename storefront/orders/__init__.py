"""Orders package: fulfilment of paid checkout sessions."""
from .fulfillment import OrderFulfillmentService, order_items_from_line_items

__all__ = ["OrderFulfillmentService", "order_items_from_line_items"]
