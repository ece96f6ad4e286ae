"""Shipping update template: sent when fulfillment moves an order forward."""

_HEADLINES = {
    "processing": "Your order is being prepared",
    "shipped": "Your order has shipped!",
    "delivered": "Your order has been delivered",
}


class ShippingUpdateTemplate:
    notification_type = "shipping_update"

    @staticmethod
    def render(context: dict) -> dict:
        order_id = context.get("order_id", "N/A")
        status = context.get("status", "processing")
        headline = _HEADLINES.get(status, f"Your order is now {status}")
        return {
            "subject": f"{headline} (#{order_id})",
            "body": (
                f"{headline}.\n\n"
                f"Order: #{order_id}\n"
                f"Status: {status}\n"
            ),
        }
