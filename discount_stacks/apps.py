from django.apps import AppConfig


class DiscountStacksConfig(AppConfig):
    name = "discount_stacks"
    verbose_name = "Discount Stacks"

    def ready(self):
        # Import handler modules to trigger describer registration in router.
        import discount_stacks.handlers.discount_kinds  # noqa: F401
