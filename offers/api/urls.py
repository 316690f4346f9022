from django.urls import path

from .views import (
    OfferDraftAPIView,
    OfferListCreateAPIView,
    OfferRetrieveUpdateDestroyAPIView,
    OfferStatusAPIView,
    OfferTotalsAPIView,
    ProductProfitAPIView,
)

urlpatterns = [
    path("offers/", OfferListCreateAPIView.as_view(), name="offer-list"),
    path("offers/<int:pk>/", OfferRetrieveUpdateDestroyAPIView.as_view(), name="offer-detail"),
    path("offers/draft/<int:project_id>/", OfferDraftAPIView.as_view(), name="offer-draft"),
    path("offers/<int:pk>/status/", OfferStatusAPIView.as_view(), name="offer-status"),
    path("offers/<int:pk>/totals/", OfferTotalsAPIView.as_view(), name="offer-totals"),
    path("products/<int:pk>/profit/", ProductProfitAPIView.as_view(), name="product-profit"),
]
