from django.urls import path

from .views import DiscountStackTestView, IdentifierSetView

urlpatterns = [
    path(
        "identifiers/",
        IdentifierSetView.as_view(),
        name="discount_stacks_identifiers",
    ),
    path(
        "stacks/<str:stack_id>/test/",
        DiscountStackTestView.as_view(),
        name="discount_stacks_test",
    ),
]
