from django.urls import path
from .views import (
    item_configuration, evaluate_customization,
    option_list_create, option_detail,
    rule_list_create, rule_detail, rules_summary,
    item_variants, filename_mappings, validate_filename_mappings,
)

urlpatterns = [
    # Storefront endpoints
    path('items/<slug:slug>/configuration/', item_configuration, name='item-configuration'),
    path('items/<slug:slug>/evaluate/', evaluate_customization, name='item-evaluate'),

    # Option endpoints
    path('items/<int:item_id>/options/', option_list_create, name='option-list-create'),
    path('options/<int:pk>/', option_detail, name='option-detail'),

    # Logic rule endpoints
    path('items/<int:item_id>/rules/', rule_list_create, name='rule-list-create'),
    path('items/<int:item_id>/rules/summary/', rules_summary, name='rules-summary'),
    path('rules/<int:pk>/', rule_detail, name='rule-detail'),

    # Variant images
    path('items/<int:item_id>/variants/', item_variants, name='item-variants'),
    path('filename-mappings/<str:jewelry_type>/', filename_mappings, name='filename-mappings'),
    path('filename-mappings/<str:jewelry_type>/validate/', validate_filename_mappings, name='filename-mappings-validate'),
]
