from rest_framework import serializers
from backend.catalog.models import JewelryItem
from .models import CustomizationOption, CustomizationLogicRule
from .types import ACTION_CLASSES

OPTION_LIST_ACTIONS = ('exclude_options', 'include_only', 'auto_select', 'propose_selection')


class CustomizationOptionSerializer(serializers.ModelSerializer):
    jewelry_item_id = serializers.PrimaryKeyRelatedField(
        queryset=JewelryItem.objects.all(),
        source='jewelry_item'
    )

    class Meta:
        model = CustomizationOption
        fields = [
            'id', 'jewelry_item_id', 'setting_id', 'setting_title', 'setting_display_order',
            'required', 'affects_image_variant', 'option_id', 'option_name', 'price',
            'price_lab_grown', 'image_url', 'color_gradient', 'display_order', 'filename_slug',
            'is_active', 'created_at', 'updated_at'
        ]
        read_only_fields = ['created_at', 'updated_at']

    def validate(self, attrs):
        for field in ('price', 'price_lab_grown'):
            value = attrs.get(field)
            if value is not None and value < 0:
                raise serializers.ValidationError({field: 'Price cannot be negative'})
        return attrs


class CustomizationLogicRuleSerializer(serializers.ModelSerializer):
    jewelry_item_id = serializers.PrimaryKeyRelatedField(
        queryset=JewelryItem.objects.all(),
        source='jewelry_item'
    )
    target_option_ids = serializers.ListField(child=serializers.CharField(), required=False, default=list)

    class Meta:
        model = CustomizationLogicRule
        fields = [
            'id', 'jewelry_item_id', 'rule_name', 'description', 'is_active',
            'condition_setting_id', 'condition_option_id', 'action_type',
            'target_setting_id', 'target_option_ids', 'price_multiplier',
            'created_at', 'updated_at'
        ]
        read_only_fields = ['created_at', 'updated_at']

    def validate(self, attrs):
        action_type = attrs.get('action_type', getattr(self.instance, 'action_type', None))
        if action_type not in ACTION_CLASSES:
            raise serializers.ValidationError({'action_type': f'Unknown action type: {action_type}'})

        target_option_ids = attrs.get('target_option_ids', getattr(self.instance, 'target_option_ids', None) or [])
        if action_type in OPTION_LIST_ACTIONS and not target_option_ids:
            raise serializers.ValidationError({'target_option_ids': 'This action needs at least one target option'})

        price_multiplier = attrs.get('price_multiplier')
        if price_multiplier is not None and price_multiplier <= 0:
            raise serializers.ValidationError({'price_multiplier': 'Multiplier must be positive'})
        return attrs


class EvaluateSerializer(serializers.Serializer):
    """Selections sent by the storefront customizer"""
    state = serializers.DictField(child=serializers.CharField(allow_blank=True), required=False, default=dict)
    diamond_type = serializers.ChoiceField(choices=['natural', 'lab_grown'], required=False, default='natural')
    apply_defaults = serializers.BooleanField(required=False, default=True)
    # Proposals the storefront already applied, echoed back from the previous evaluation
    consumed_proposals = serializers.DictField(child=serializers.CharField(), required=False, default=dict)
