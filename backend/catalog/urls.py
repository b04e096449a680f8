from django.urls import path
from .views import (
    category_list_create, category_detail,
    jewelry_item_list_create, jewelry_item_detail,
)

urlpatterns = [
    # Category endpoints
    path('categories/', category_list_create, name='category-list-create'),
    path('categories/<int:pk>/', category_detail, name='category-detail'),

    # JewelryItem endpoints
    path('jewelry-items/', jewelry_item_list_create, name='jewelry-item-list-create'),
    path('jewelry-items/<int:pk>/', jewelry_item_detail, name='jewelry-item-detail'),
]
