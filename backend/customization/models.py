from django.db import models
from decimal import Decimal
from backend.catalog.models import JewelryItem


class CustomizationOption(models.Model):
    """
    One selectable option of a customization setting.

    Setting metadata (id, title, order, required, image variant flag) is
    denormalised onto every option row; settings are rebuilt by grouping rows
    on `setting_id`.
    """
    jewelry_item = models.ForeignKey(JewelryItem, on_delete=models.CASCADE, related_name='customization_options')
    setting_id = models.CharField(max_length=100, db_index=True)  # e.g. "chain_type"
    setting_title = models.CharField(max_length=200)
    setting_display_order = models.IntegerField(default=0)
    required = models.BooleanField(default=True)
    affects_image_variant = models.BooleanField(default=True)  # False for ring size, diamond origin, engraving...
    option_id = models.CharField(max_length=100)  # e.g. "white_gold"
    option_name = models.CharField(max_length=200)
    price = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    price_lab_grown = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    image_url = models.URLField(blank=True, null=True)
    color_gradient = models.CharField(max_length=255, blank=True, null=True)
    display_order = models.IntegerField(default=0)
    filename_slug = models.CharField(max_length=100, blank=True, null=True,
                                     help_text='Segment used in pre-rendered variant image filenames')
    is_active = models.BooleanField(default=True, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.setting_id}={self.option_id} ({self.jewelry_item_id})"

    class Meta:
        db_table = 'customization_options'
        unique_together = [['jewelry_item', 'setting_id', 'option_id']]
        indexes = [
            models.Index(fields=['jewelry_item', 'setting_display_order', 'display_order'], name='custopt_item_order_idx'),
        ]


class CustomizationLogicRule(models.Model):
    """Conditional rewrite rule for the customizer of one jewelry item"""
    ACTION_TYPE_CHOICES = [
        ('exclude_options', 'Exclude Options'),
        ('include_only', 'Include Only'),
        ('set_required', 'Set Required'),
        ('set_optional', 'Set Optional'),
        ('set_price_multiplier', 'Set Price Multiplier'),
        ('exclude_setting', 'Exclude Setting'),
        ('auto_select', 'Auto Select'),
        ('propose_selection', 'Propose Selection'),
    ]

    jewelry_item = models.ForeignKey(JewelryItem, on_delete=models.CASCADE, related_name='logic_rules')
    rule_name = models.CharField(max_length=200)
    description = models.TextField(blank=True, null=True)
    is_active = models.BooleanField(default=True, db_index=True)
    condition_setting_id = models.CharField(max_length=100)
    condition_option_id = models.CharField(max_length=100)
    action_type = models.CharField(max_length=30, choices=ACTION_TYPE_CHOICES)
    target_setting_id = models.CharField(max_length=100)
    target_option_ids = models.JSONField(default=list, blank=True)
    price_multiplier = models.DecimalField(max_digits=6, decimal_places=3, null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.rule_name

    class Meta:
        db_table = 'customization_logic_rules'
        ordering = ['created_at', 'id']
