from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from django.shortcuts import get_object_or_404
import logging
from backend.core.permissions import IsAdminRoleOrReadOnly
from backend.core.cache_utils import invalidate_item_configuration
from .models import ProductCategory, JewelryItem
from .serializers import ProductCategorySerializer, JewelryItemSerializer, JewelryItemListSerializer
from .filters import JewelryItemFilter

logger = logging.getLogger(__name__)


def _is_admin(request):
    return request.user.is_authenticated and getattr(request.user, 'is_admin', False)


# ProductCategory views
@api_view(['GET', 'POST'])
@permission_classes([IsAdminRoleOrReadOnly])
def category_list_create(request):
    """List all categories or create a new category"""
    if request.method == 'GET':
        categories = ProductCategory.objects.all()
        if not _is_admin(request):
            categories = categories.filter(is_active=True)
        serializer = ProductCategorySerializer(categories, many=True)
        return Response(serializer.data)
    else:
        serializer = ProductCategorySerializer(data=request.data)
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAdminRoleOrReadOnly])
def category_detail(request, pk):
    """Retrieve, update or delete a category"""
    category = get_object_or_404(ProductCategory, pk=pk)

    if request.method == 'GET':
        serializer = ProductCategorySerializer(category)
        return Response(serializer.data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = ProductCategorySerializer(category, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        category.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


# JewelryItem views
@api_view(['GET', 'POST'])
@permission_classes([IsAdminRoleOrReadOnly])
def jewelry_item_list_create(request):
    """List jewelry items (filterable) or create a new one"""
    if request.method == 'GET':
        queryset = JewelryItem.objects.select_related('category').order_by('name')
        if not _is_admin(request):
            queryset = queryset.filter(is_active=True)
        item_filter = JewelryItemFilter(request.query_params, queryset=queryset)
        if not item_filter.is_valid():
            return Response(item_filter.errors, status=status.HTTP_400_BAD_REQUEST)
        serializer = JewelryItemListSerializer(item_filter.qs, many=True)
        return Response(serializer.data)
    else:
        serializer = JewelryItemSerializer(data=request.data)
        if serializer.is_valid():
            item = serializer.save()
            logger.info(f"Jewelry item created: {item.slug} ({item.type})")
            return Response(serializer.data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAdminRoleOrReadOnly])
def jewelry_item_detail(request, pk):
    """Retrieve, update or delete a jewelry item"""
    item = get_object_or_404(JewelryItem.objects.select_related('category'), pk=pk)

    if request.method == 'GET':
        serializer = JewelryItemSerializer(item)
        return Response(serializer.data)
    elif request.method in ('PUT', 'PATCH'):
        old_slug = item.slug
        serializer = JewelryItemSerializer(item, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            item = serializer.save()
            invalidate_item_configuration(old_slug)
            if item.slug != old_slug:
                invalidate_item_configuration(item.slug)
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        invalidate_item_configuration(item.slug)
        item.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)
