"""Order confirmation template: sent when an order is created."""


class OrderConfirmationTemplate:
    notification_type = "order_confirmation"

    @staticmethod
    def render(context: dict) -> dict:
        order_id = context.get("order_id", "N/A")
        total = context.get("total", "0.00")
        currency = context.get("currency", "USD")
        items = context.get("items", [])
        lines = "".join(
            f"  {item['quantity']} x {item['product_name']} @ {currency} {item['price']}\n"
            for item in items
        )
        return {
            "subject": f"Order #{order_id} Confirmed",
            "body": (
                f"Your order #{order_id} has been confirmed.\n\n"
                f"{lines}"
                f"\nOrder Total: {currency} {total}\n\n"
                "We'll notify you once your order ships.\n\n"
                "Thank you for your order!"
            ),
        }
