from django.urls import path
from .views import order_list_create, order_detail, order_status

urlpatterns = [
    path('orders/', order_list_create, name='order-list-create'),
    path('orders/<str:order_number>/', order_detail, name='order-detail'),
    path('orders/<str:order_number>/status/', order_status, name='order-status'),
]
