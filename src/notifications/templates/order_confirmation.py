"""Order confirmation template — sent once an order is materialized.

The context carries display-ready strings: the dispatcher converts every
amount from minor units before rendering.
"""

PLACEHOLDER_NAME = "Customer"


class OrderConfirmationTemplate:
    subject = "Your order has been placed"
    preview = "Thank you for your order!"

    @staticmethod
    def render(context: dict) -> dict:
        display_id = context.get("display_id", "N/A")
        first_name = context.get("first_name") or PLACEHOLDER_NAME
        last_name = context.get("last_name") or ""
        greeting = f"{first_name} {last_name}".strip()

        lines = [
            f"  {item['quantity']} x {item['title']} @ {item['unit_price']} = {item['line_total']}"
            for item in context.get("items", [])
        ]
        address_lines = [line for line in context.get("address_lines", []) if line]

        body = (
            f"Dear {greeting},\n\n"
            f"Thank you for your order #{display_id}.\n\n"
            "Items:\n" + "\n".join(lines) + "\n\n"
            f"Subtotal: {context.get('subtotal')}\n"
            f"Shipping: {context.get('shipping_total')}\n"
            f"Tax: {context.get('tax_total')}\n"
            f"Discount: {context.get('discount_total')}\n"
            f"Total: {context.get('total')}\n\n"
            "Shipping Address:\n" + "\n".join(f"  {line}" for line in address_lines) + "\n\n"
            "We'll let you know when your order ships."
        )
        return {
            "subject": f"{OrderConfirmationTemplate.subject} (#{display_id})",
            "preview": OrderConfirmationTemplate.preview,
            "body": body,
        }
