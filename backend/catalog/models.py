from django.db import models
from decimal import Decimal


class ProductCategory(models.Model):
    """Storefront product categories"""
    name = models.CharField(max_length=200, db_index=True)
    slug = models.SlugField(max_length=200, unique=True)
    description = models.TextField(blank=True)
    image_url = models.URLField(blank=True)  # stored in the categories-pictures bucket
    display_order = models.IntegerField(default=0)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'product_categories'
        verbose_name_plural = 'product categories'
        ordering = ['display_order', 'name']


class JewelryItem(models.Model):
    """Jewelry item master (customizable or ready-made)"""
    TYPE_CHOICES = [
        ('necklace', 'Necklace'),
        ('bracelet', 'Bracelet'),
        ('ring', 'Ring'),
        ('earring', 'Earring'),
    ]

    PRODUCT_TYPE_CHOICES = [
        ('customizable', 'Customizable'),
        ('ready_made', 'Ready Made'),
    ]

    name = models.CharField(max_length=200, db_index=True)
    slug = models.SlugField(max_length=200, unique=True)
    type = models.CharField(max_length=20, choices=TYPE_CHOICES, db_index=True)
    product_type = models.CharField(max_length=20, choices=PRODUCT_TYPE_CHOICES, default='customizable')
    category = models.ForeignKey(ProductCategory, on_delete=models.SET_NULL, null=True, blank=True, related_name='items')
    description = models.TextField(blank=True)
    base_price = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    base_price_lab_grown = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    black_onyx_base_price = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    black_onyx_base_price_lab_grown = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    base_image_url = models.URLField(blank=True)  # stored in the item-pictures bucket
    is_active = models.BooleanField(default=True, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.name} ({self.type})"

    @property
    def is_customizable(self):
        return self.product_type == 'customizable'

    class Meta:
        db_table = 'jewelry_items'
