from rest_framework import serializers
from backend.catalog.models import JewelryItem
from .models import Order, OrderItem


class OrderItemSerializer(serializers.ModelSerializer):
    jewelry_item_id = serializers.PrimaryKeyRelatedField(source='jewelry_item', read_only=True)

    class Meta:
        model = OrderItem
        fields = [
            'id', 'jewelry_item_id', 'product_name', 'jewelry_type', 'customization_data', 'customization_summary',
            'diamond_type', 'base_price', 'total_price', 'quantity', 'subtotal', 'variant_filename',
            'preview_image_url', 'created_at'
        ]


class OrderSerializer(serializers.ModelSerializer):
    items = OrderItemSerializer(many=True, read_only=True)

    class Meta:
        model = Order
        fields = [
            'id', 'order_number', 'customer', 'customer_name', 'customer_email', 'customer_phone',
            'delivery_address', 'delivery_city', 'delivery_postal_code', 'delivery_notes', 'subtotal',
            'delivery_fee', 'total', 'status', 'payment_method', 'created_at', 'updated_at', 'items'
        ]


class OrderLineSerializer(serializers.Serializer):
    """One cart line as sent by the storefront; prices are computed server side"""
    jewelry_item_id = serializers.PrimaryKeyRelatedField(
        queryset=JewelryItem.objects.all(),
        source='jewelry_item'
    )
    state = serializers.DictField(child=serializers.CharField(allow_blank=True), required=False, default=dict)
    diamond_type = serializers.ChoiceField(choices=['natural', 'lab_grown'], required=False, default='natural')
    consumed_proposals = serializers.DictField(child=serializers.CharField(), required=False, default=dict)
    quantity = serializers.IntegerField(min_value=1, max_value=20, required=False, default=1)


class CheckoutSerializer(serializers.Serializer):
    customer_name = serializers.CharField(max_length=200)
    customer_email = serializers.EmailField()
    customer_phone = serializers.CharField(max_length=50)
    delivery_address = serializers.CharField()
    delivery_city = serializers.CharField(max_length=100)
    delivery_postal_code = serializers.CharField(max_length=20, required=False, allow_blank=True, default='')
    delivery_notes = serializers.CharField(required=False, allow_blank=True, default='')
    payment_method = serializers.ChoiceField(choices=Order.PAYMENT_METHOD_CHOICES, required=False,
                                             default='cash_on_delivery')
    items = OrderLineSerializer(many=True, allow_empty=False)


class OrderStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Order.STATUS_CHOICES)
