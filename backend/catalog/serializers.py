from rest_framework import serializers
from .models import ProductCategory, JewelryItem


class ProductCategorySerializer(serializers.ModelSerializer):
    class Meta:
        model = ProductCategory
        fields = ['id', 'name', 'slug', 'description', 'image_url', 'display_order', 'is_active', 'created_at', 'updated_at']


class JewelryItemSerializer(serializers.ModelSerializer):
    # For reading: return full nested category
    category = ProductCategorySerializer(read_only=True)

    # For writing: accept integer IDs
    category_id = serializers.PrimaryKeyRelatedField(
        queryset=ProductCategory.objects.all(),
        source='category',
        write_only=True,
        required=False,
        allow_null=True
    )

    category_name = serializers.CharField(source='category.name', read_only=True)

    class Meta:
        model = JewelryItem
        fields = [
            'id', 'name', 'slug', 'type', 'product_type', 'category', 'category_id', 'category_name',
            'description', 'base_price', 'base_price_lab_grown',
            'black_onyx_base_price', 'black_onyx_base_price_lab_grown',
            'base_image_url', 'is_active', 'created_at', 'updated_at'
        ]

    def validate(self, attrs):
        base_price = attrs.get('base_price')
        if base_price is not None and base_price < 0:
            raise serializers.ValidationError({'base_price': 'Base price cannot be negative'})
        return attrs


class JewelryItemListSerializer(serializers.ModelSerializer):
    """Lightweight serializer for storefront listings"""
    category_name = serializers.CharField(source='category.name', read_only=True, default=None)

    class Meta:
        model = JewelryItem
        fields = ['id', 'name', 'slug', 'type', 'product_type', 'category_name', 'base_price', 'base_image_url', 'is_active']
