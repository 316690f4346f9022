from django.urls import path

from .views import (
    MaterialsInStockAPIView,
    OrderItemsBulkDeleteAPIView,
    OrderItemsReceiveAPIView,
    OrderItemUpdateDestroyAPIView,
    OrderListCreateAPIView,
    OrderRetrieveDestroyAPIView,
    OrderSendAPIView,
    SourcingAPIView,
    SupplierListCreateAPIView,
)

urlpatterns = [
    path("orders/", OrderListCreateAPIView.as_view(), name="order-list"),
    path("orders/<int:pk>/", OrderRetrieveDestroyAPIView.as_view(), name="order-detail"),
    path("orders/<int:pk>/send/", OrderSendAPIView.as_view(), name="order-send"),
    path("orders/<int:pk>/items/delete/", OrderItemsBulkDeleteAPIView.as_view(), name="order-items-delete"),
    path("orders/<int:order_id>/items/<int:pk>/", OrderItemUpdateDestroyAPIView.as_view(), name="order-item-detail"),
    path("order-items/receive/", OrderItemsReceiveAPIView.as_view(), name="order-items-receive"),
    path("materials/in-stock/", MaterialsInStockAPIView.as_view(), name="materials-in-stock"),
    path("sourcing/", SourcingAPIView.as_view(), name="sourcing"),
    path("suppliers/", SupplierListCreateAPIView.as_view(), name="supplier-list"),
]
