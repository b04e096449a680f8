from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from django.shortcuts import get_object_or_404
from dataclasses import asdict
import logging
from backend.catalog.models import JewelryItem
from backend.core.permissions import IsAdminRole
from .configuration import get_item_configuration
from .evaluation import evaluate_selection
from .filename_service import get_filename_service
from .models import CustomizationOption, CustomizationLogicRule
from .rules_engine import LogicRulesEngine
from .serializers import CustomizationOptionSerializer, CustomizationLogicRuleSerializer, EvaluateSerializer
from .variant_generator import VariantGenerator, VariantGenerationError

logger = logging.getLogger(__name__)


# Storefront views
@api_view(['GET'])
@permission_classes([AllowAny])
def item_configuration(request, slug):
    """Customizable item with its settings and options"""
    data = get_item_configuration(slug)
    if data is None:
        return Response({'error': 'Jewelry item not found'}, status=status.HTTP_404_NOT_FOUND)
    return Response(data)


@api_view(['POST'])
@permission_classes([AllowAny])
def evaluate_customization(request, slug):
    """
    Apply the item's logic rules to the shopper's selections.

    Returns the filtered settings, the merged selection state, the total
    price and the pre-rendered picture of the selection when one exists.
    `consumed_proposals` from the response must be sent with the next
    evaluation so an applied proposal does not override the shopper again.
    """
    item = get_object_or_404(JewelryItem, slug=slug, is_active=True, product_type='customizable')

    serializer = EvaluateSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    evaluation = evaluate_selection(item, **serializer.validated_data)
    return Response(evaluation.to_dict())


# Admin: customization options
@api_view(['GET', 'POST'])
@permission_classes([IsAdminRole])
def option_list_create(request, item_id):
    """List every option of an item or add one"""
    item = get_object_or_404(JewelryItem, pk=item_id)

    if request.method == 'GET':
        options = CustomizationOption.objects.filter(jewelry_item=item).order_by(
            'setting_display_order', 'display_order', 'id'
        )
        serializer = CustomizationOptionSerializer(options, many=True)
        return Response(serializer.data)

    data = request.data.copy()
    data['jewelry_item_id'] = item.id
    serializer = CustomizationOptionSerializer(data=data)
    if serializer.is_valid():
        option = serializer.save()
        logger.info(f"Customization option {option.setting_id}={option.option_id} created for {item.slug}")
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAdminRole])
def option_detail(request, pk):
    option = get_object_or_404(CustomizationOption, pk=pk)

    if request.method == 'GET':
        return Response(CustomizationOptionSerializer(option).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = CustomizationOptionSerializer(option, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        option.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


# Admin: logic rules
@api_view(['GET', 'POST'])
@permission_classes([IsAdminRole])
def rule_list_create(request, item_id):
    item = get_object_or_404(JewelryItem, pk=item_id)

    if request.method == 'GET':
        rules = CustomizationLogicRule.objects.filter(jewelry_item=item)
        return Response(CustomizationLogicRuleSerializer(rules, many=True).data)

    data = request.data.copy()
    data['jewelry_item_id'] = item.id
    serializer = CustomizationLogicRuleSerializer(data=data)
    if serializer.is_valid():
        rule = serializer.save()
        logger.info(f"Logic rule '{rule.rule_name}' ({rule.action_type}) created for {item.slug}")
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAdminRole])
def rule_detail(request, pk):
    rule = get_object_or_404(CustomizationLogicRule, pk=pk)

    if request.method == 'GET':
        return Response(CustomizationLogicRuleSerializer(rule).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = CustomizationLogicRuleSerializer(rule, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        rule.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET'])
@permission_classes([IsAdminRole])
def rules_summary(request, item_id):
    """Active rules of an item in evaluation order, with readable descriptions"""
    item = get_object_or_404(JewelryItem, pk=item_id)
    engine = LogicRulesEngine.create(item.id)
    return Response({
        'product_id': item.id,
        'rules': [rule.to_dict() for rule in engine.rules],
        'summary': engine.get_rules_summary(),
    })


@api_view(['GET'])
@permission_classes([IsAdminRole])
def item_variants(request, item_id):
    """Every image variant of an item and whether its picture is uploaded"""
    item = get_object_or_404(JewelryItem, pk=item_id)
    try:
        result = VariantGenerator().generate_variants_for_product(item.id, item.type)
    except VariantGenerationError as e:
        logger.error(f"Variant generation failed for {item.slug}: {str(e)}")
        return Response({'error': str(e)}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)
    return Response(result.to_dict())


# Admin: filename mappings
@api_view(['GET', 'POST'])
@permission_classes([IsAdminRole])
def filename_mappings(request, jewelry_type):
    """GET the cached mappings of a jewelry type; POST reloads them from the database"""
    if jewelry_type not in dict(JewelryItem.TYPE_CHOICES):
        return Response({'error': f'Unknown jewelry type: {jewelry_type}'}, status=status.HTTP_400_BAD_REQUEST)

    service = get_filename_service()
    if request.method == 'POST':
        mappings = service.refresh_after_db_change(jewelry_type)
    else:
        mappings = service.get_filename_mappings(jewelry_type)
    return Response({
        'jewelry_type': jewelry_type,
        'count': len(mappings),
        'mappings': [asdict(mapping) for mapping in mappings],
    })


@api_view(['POST'])
@permission_classes([IsAdminRole])
def validate_filename_mappings(request, jewelry_type):
    """Report which options of a variant lack a filename slug"""
    options = request.data.get('options')
    if not isinstance(options, list) or not all(
        isinstance(option, dict) and 'setting_id' in option and 'option_id' in option for option in options
    ):
        return Response(
            {'error': 'options must be a list of {setting_id, option_id}'},
            status=status.HTTP_400_BAD_REQUEST
        )

    service = get_filename_service()
    is_valid, missing = service.validate_variant_mappings(jewelry_type, options)
    return Response({
        'is_valid': is_valid,
        'missing': missing,
        'filename': service.generate_dynamic_filename(jewelry_type, options),
    })
