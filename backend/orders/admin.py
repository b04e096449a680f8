from django.contrib import admin
from .models import Order, OrderItem


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    readonly_fields = ['product_name', 'jewelry_type', 'customization_summary', 'total_price', 'quantity',
                       'subtotal', 'variant_filename', 'preview_image_url']


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ['order_number', 'customer_name', 'customer_email', 'total', 'status', 'payment_method',
                    'created_at']
    list_filter = ['status', 'payment_method', 'created_at']
    search_fields = ['order_number', 'customer_name', 'customer_email', 'customer_phone']
    readonly_fields = ['order_number', 'subtotal', 'delivery_fee', 'total', 'created_at', 'updated_at']
    inlines = [OrderItemInline]
