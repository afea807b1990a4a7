from django.apps import AppConfig
from django.conf import settings


class CheckoutConfig(AppConfig):
    name = "apps.checkout"
    label = "checkout"
    default_auto_field = "django.db.models.BigAutoField"
    dispatcher = None

    def ready(self):
        # subscribe the automation webhook to order transitions
        if getattr(settings, "ORDER_WEBHOOK_ENABLED", True):
            from .events import order_state_transition
            from .providers import get_webhook_dispatcher

            self.dispatcher = get_webhook_dispatcher()
            self.dispatcher.subscribe(order_state_transition)
