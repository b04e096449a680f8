import django_filters
from django.db.models import Q
from .models import JewelryItem


class JewelryItemFilter(django_filters.FilterSet):
    """Filters for the jewelry item list"""
    type = django_filters.ChoiceFilter(choices=JewelryItem.TYPE_CHOICES)
    product_type = django_filters.ChoiceFilter(choices=JewelryItem.PRODUCT_TYPE_CHOICES)
    category = django_filters.NumberFilter(field_name='category_id')
    category_slug = django_filters.CharFilter(field_name='category__slug')
    is_active = django_filters.BooleanFilter()
    search = django_filters.CharFilter(method='filter_search')

    class Meta:
        model = JewelryItem
        fields = ['type', 'product_type', 'category', 'category_slug', 'is_active']

    def filter_search(self, queryset, name, value):
        """Search by name, slug or description"""
        if not value or not value.strip():
            return queryset
        value = value.strip()
        return queryset.filter(
            Q(name__icontains=value) |
            Q(slug__icontains=value) |
            Q(description__icontains=value)
        )
