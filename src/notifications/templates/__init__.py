"""Template registry — maps notification types to template classes."""

from notifications.templates.order_confirmation import OrderConfirmationTemplate

ORDER_CONFIRMATION = "order_confirmation"

TEMPLATE_REGISTRY: dict[str, type] = {
    ORDER_CONFIRMATION: OrderConfirmationTemplate,
}


def get_template(notification_type: str) -> type:
    """Return the template class for a notification type."""
    template = TEMPLATE_REGISTRY.get(notification_type)
    if template is None:
        raise ValueError(f"No template registered for notification type: {notification_type}")
    return template
