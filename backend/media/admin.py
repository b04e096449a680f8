from django.contrib import admin
from .models import VariantImage, SharedMedia, VariantSharedMedia


@admin.register(VariantImage)
class VariantImageAdmin(admin.ModelAdmin):
    list_display = ['variant_key', 'display_order', 'is_primary', 'image_url', 'created_at']
    list_filter = ['is_primary']
    search_fields = ['variant_key']
    ordering = ['variant_key', 'display_order']


@admin.register(SharedMedia)
class SharedMediaAdmin(admin.ModelAdmin):
    list_display = ['name', 'width', 'height', 'file_size_bytes', 'created_at']
    search_fields = ['name', 'description']
    readonly_fields = ['created_at', 'updated_at']


@admin.register(VariantSharedMedia)
class VariantSharedMediaAdmin(admin.ModelAdmin):
    list_display = ['variant_key', 'shared_media', 'display_order', 'created_at']
    search_fields = ['variant_key', 'shared_media__name']
