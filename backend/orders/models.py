from django.db import models
from django.conf import settings
from decimal import Decimal
from backend.catalog.models import JewelryItem


class Order(models.Model):
    """Storefront orders"""
    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('confirmed', 'Confirmed'),
        ('preparing', 'Preparing'),
        ('shipped', 'Shipped'),
        ('delivered', 'Delivered'),
        ('cancelled', 'Cancelled'),
    ]

    PAYMENT_METHOD_CHOICES = [
        ('cash_on_delivery', 'Cash on Delivery'),
    ]

    order_number = models.CharField(max_length=50, unique=True)
    customer = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
                                 related_name='orders')
    customer_name = models.CharField(max_length=200)
    customer_email = models.EmailField()
    customer_phone = models.CharField(max_length=50)
    delivery_address = models.TextField()
    delivery_city = models.CharField(max_length=100)
    delivery_postal_code = models.CharField(max_length=20, blank=True, default='')
    delivery_notes = models.TextField(blank=True, default='')
    subtotal = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    delivery_fee = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    total = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='pending')
    payment_method = models.CharField(max_length=30, choices=PAYMENT_METHOD_CHOICES, default='cash_on_delivery')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.order_number

    class Meta:
        db_table = 'orders'
        ordering = ['-created_at', '-id']
        indexes = [
            models.Index(fields=['status', 'created_at'], name='idx_order_status_created'),
            models.Index(fields=['customer_email'], name='idx_order_customer_email'),
        ]


class OrderItem(models.Model):
    """
    One ordered piece with the customization it was priced with.

    Prices, filename and picture are copied at checkout so later catalog or
    rule edits do not change what was sold.
    """
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name='items')
    jewelry_item = models.ForeignKey(JewelryItem, on_delete=models.SET_NULL, null=True, blank=True,
                                     related_name='order_items')
    product_name = models.CharField(max_length=200)
    jewelry_type = models.CharField(max_length=20)
    customization_data = models.JSONField(default=dict, blank=True)
    customization_summary = models.TextField(blank=True, default='')
    diamond_type = models.CharField(max_length=20, default='natural')
    base_price = models.DecimalField(max_digits=10, decimal_places=2)
    total_price = models.DecimalField(max_digits=10, decimal_places=2)
    quantity = models.PositiveIntegerField(default=1)
    subtotal = models.DecimalField(max_digits=10, decimal_places=2)
    variant_filename = models.CharField(max_length=255, blank=True, null=True)
    preview_image_url = models.URLField(max_length=500, blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.product_name} x{self.quantity} ({self.order.order_number})"

    class Meta:
        db_table = 'order_items'
        ordering = ['id']
