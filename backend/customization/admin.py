from django.contrib import admin
from .models import CustomizationOption, CustomizationLogicRule


@admin.register(CustomizationOption)
class CustomizationOptionAdmin(admin.ModelAdmin):
    list_display = ['jewelry_item', 'setting_id', 'option_id', 'option_name', 'price', 'filename_slug',
                    'affects_image_variant', 'is_active']
    list_filter = ['is_active', 'affects_image_variant', 'required', 'jewelry_item__type']
    search_fields = ['setting_id', 'option_id', 'option_name', 'filename_slug']
    ordering = ['jewelry_item', 'setting_display_order', 'display_order']
    readonly_fields = ['created_at', 'updated_at']


@admin.register(CustomizationLogicRule)
class CustomizationLogicRuleAdmin(admin.ModelAdmin):
    list_display = ['rule_name', 'jewelry_item', 'condition_setting_id', 'condition_option_id',
                    'action_type', 'target_setting_id', 'is_active', 'created_at']
    list_filter = ['is_active', 'action_type']
    search_fields = ['rule_name', 'description', 'condition_setting_id', 'target_setting_id']
    ordering = ['jewelry_item', 'created_at']
    readonly_fields = ['created_at', 'updated_at']
