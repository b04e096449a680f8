"""
Test suite for the catalog module
Tests: categories, jewelry item CRUD, filters and visibility of inactive items
"""
from django.core.cache import cache
from django.test import TestCase
from rest_framework import status
from decimal import Decimal
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backend.catalog.models import JewelryItem, ProductCategory
from backend.customization.configuration import get_item_configuration


class CategoryAPITests(TestCase):
    """Test category endpoints"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.admin = TestDataFactory.create_admin()

    def test_list_hides_inactive_for_shoppers(self):
        """Test inactive categories are only listed for admins"""
        active = TestDataFactory.create_category(name='Necklaces')
        inactive = TestDataFactory.create_category(name='Archive')
        inactive.is_active = False
        inactive.save()

        response = self.client.get('/api/v1/categories/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([category['id'] for category in response.data], [active.id])

        self.client.authenticate_user(self.admin)
        response = self.client.get('/api/v1/categories/')
        self.assertEqual(len(response.data), 2)

    def test_create_category(self):
        self.client.authenticate_user(self.admin)
        response = self.client.post('/api/v1/categories/', {
            'name': 'Bracelets',
            'slug': 'bracelets',
            'display_order': 2
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(ProductCategory.objects.filter(slug='bracelets').exists())

    def test_create_category_requires_admin(self):
        self.client.authenticate_user(TestDataFactory.create_user())
        response = self.client.post('/api/v1/categories/', {'name': 'Rings', 'slug': 'rings'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_update_and_delete_category(self):
        category = TestDataFactory.create_category()
        self.client.authenticate_user(self.admin)

        response = self.client.patch(f'/api/v1/categories/{category.id}/', {'name': 'Renamed'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['name'], 'Renamed')

        response = self.client.delete(f'/api/v1/categories/{category.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(ProductCategory.objects.filter(pk=category.id).exists())


class JewelryItemAPITests(TestCase):
    """Test jewelry item endpoints"""

    def setUp(self):
        cache.clear()
        self.client = AuthenticatedAPIClient()
        self.admin = TestDataFactory.create_admin()
        self.category = TestDataFactory.create_category(name='Necklaces', slug='necklaces')
        self.necklace = TestDataFactory.create_jewelry_item(
            name='Jove Pendant', slug='jove-pendant', type='necklace', category=self.category,
            description='Solitaire pendant'
        )
        self.bracelet = TestDataFactory.create_jewelry_item(name='Tennis Bracelet', slug='tennis-bracelet',
                                                            type='bracelet', product_type='ready_made')
        self.hidden = TestDataFactory.create_jewelry_item(name='Hidden Ring', slug='hidden-ring', type='ring',
                                                          is_active=False)

    def test_list_for_shoppers(self):
        response = self.client.get('/api/v1/jewelry-items/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([item['slug'] for item in response.data], ['jove-pendant', 'tennis-bracelet'])
        self.assertEqual(response.data[0]['category_name'], 'Necklaces')
        self.assertIsNone(response.data[1]['category_name'])

    def test_admin_sees_inactive_items(self):
        self.client.authenticate_user(self.admin)
        response = self.client.get('/api/v1/jewelry-items/')
        self.assertEqual(len(response.data), 3)

    def test_filters(self):
        """Test type, product type, category and search filters"""
        response = self.client.get('/api/v1/jewelry-items/', {'type': 'bracelet'})
        self.assertEqual([item['slug'] for item in response.data], ['tennis-bracelet'])

        response = self.client.get('/api/v1/jewelry-items/', {'product_type': 'customizable'})
        self.assertEqual([item['slug'] for item in response.data], ['jove-pendant'])

        response = self.client.get('/api/v1/jewelry-items/', {'category_slug': 'necklaces'})
        self.assertEqual([item['slug'] for item in response.data], ['jove-pendant'])

        response = self.client.get('/api/v1/jewelry-items/', {'search': 'solitaire'})
        self.assertEqual([item['slug'] for item in response.data], ['jove-pendant'])

    def test_invalid_filter(self):
        response = self.client.get('/api/v1/jewelry-items/', {'type': 'tiara'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_create_item(self):
        self.client.authenticate_user(self.admin)
        response = self.client.post('/api/v1/jewelry-items/', {
            'name': 'Charm Bracelet',
            'slug': 'charm-bracelet',
            'type': 'bracelet',
            'category_id': self.category.id,
            'base_price': '180.00',
            'base_price_lab_grown': '150.00'
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['category']['id'], self.category.id)
        item = JewelryItem.objects.get(slug='charm-bracelet')
        self.assertEqual(item.base_price_lab_grown, Decimal('150.00'))
        self.assertEqual(item.product_type, 'customizable')

    def test_negative_base_price_rejected(self):
        self.client.authenticate_user(self.admin)
        response = self.client.post('/api/v1/jewelry-items/', {
            'name': 'Broken', 'slug': 'broken', 'type': 'ring', 'base_price': '-5.00'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_update_invalidates_cached_configuration(self):
        """Test editing an item drops its cached storefront configuration"""
        self.assertEqual(get_item_configuration('jove-pendant')['base_price'], '100.00')

        self.client.authenticate_user(self.admin)
        response = self.client.patch(f'/api/v1/jewelry-items/{self.necklace.id}/', {'base_price': '120.00'},
                                     format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(get_item_configuration('jove-pendant')['base_price'], '120.00')

    def test_delete_item(self):
        self.client.authenticate_user(self.admin)
        response = self.client.delete(f'/api/v1/jewelry-items/{self.bracelet.id}/')

        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(JewelryItem.objects.filter(pk=self.bracelet.id).exists())

    def test_anonymous_cannot_delete(self):
        response = self.client.delete(f'/api/v1/jewelry-items/{self.bracelet.id}/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
