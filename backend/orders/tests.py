"""
Test suite for the orders module
Tests: server-side checkout pricing, order visibility and admin status updates
"""
from django.core.cache import cache
from django.db import IntegrityError
from django.test import TestCase, override_settings
from rest_framework import status
from decimal import Decimal
from unittest import mock
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backend.orders.models import Order


@mock.patch('backend.customization.evaluation.resolve_variant_image', return_value='https://cdn.test/variant.webp')
class CheckoutTests(TestCase):
    """Test placing orders"""

    def setUp(self):
        cache.clear()
        self.client = AuthenticatedAPIClient()
        self.necklace = TestDataFactory.create_jewelry_item(name='Jove Pendant', type='necklace',
                                                            base_price=Decimal('200.00'))
        TestDataFactory.create_options(self.necklace, 'chain_type', ['black_leather', 'gold_cord'],
                                       setting_display_order=0)
        TestDataFactory.create_options(self.necklace, 'metal', ['white_gold', 'yellow_gold'], setting_display_order=1,
                                       price=Decimal('50.00'))
        TestDataFactory.create_rule(self.necklace, 'chain_type', 'gold_cord', 'exclude_options', 'metal',
                                    ['white_gold'])
        self.url = '/api/v1/orders/'

    def checkout(self, items, **overrides):
        payload = {
            'customer_name': 'Ana Haddad',
            'customer_email': 'ana@example.com',
            'customer_phone': '+961 70 123456',
            'delivery_address': 'Building 1, 2nd floor',
            'delivery_city': 'Beirut',
            'items': items,
        }
        payload.update(overrides)
        return self.client.post(self.url, payload, format='json')

    def test_guest_checkout_is_priced_on_server(self, mocked_resolve):
        response = self.checkout([{
            'jewelry_item_id': self.necklace.id,
            'state': {'chain_type': 'gold_cord', 'metal': 'yellow_gold'},
            'quantity': 2,
            'total_price': '1.00',
        }])

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(response.data['order_number'].startswith('JV-'))

        order = Order.objects.get(order_number=response.data['order_number'])
        self.assertIsNone(order.customer)
        self.assertEqual(order.status, 'pending')
        self.assertEqual(order.payment_method, 'cash_on_delivery')
        self.assertEqual(order.subtotal, Decimal('500.00'))
        self.assertEqual(order.total, Decimal('500.00'))

        line = order.items.get()
        self.assertEqual(line.customization_data, {'chain_type': 'gold_cord', 'metal': 'yellow_gold'})
        self.assertEqual(line.customization_summary, 'Chain Type: Gold Cord, Metal: Yellow Gold')
        self.assertEqual(line.total_price, Decimal('250.00'))
        self.assertEqual(line.subtotal, Decimal('500.00'))
        self.assertEqual(line.variant_filename, 'necklace-gold_cord-yellow_gold.webp')
        self.assertEqual(line.preview_image_url, 'https://cdn.test/variant.webp')

    def test_missing_required_selection_is_rejected(self, mocked_resolve):
        # white gold is not offered with the cord, so metal ends up empty
        response = self.checkout([{
            'jewelry_item_id': self.necklace.id,
            'state': {'chain_type': 'gold_cord', 'metal': 'white_gold'},
        }])

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('Metal', response.data['error'])
        self.assertEqual(response.data['category'], 'validation')
        self.assertFalse(Order.objects.exists())

    def test_consumed_proposal_keeps_shopper_choice(self, mocked_resolve):
        TestDataFactory.create_rule(self.necklace, 'chain_type', 'black_leather', 'propose_selection', 'metal',
                                    ['yellow_gold'])

        response = self.checkout([{
            'jewelry_item_id': self.necklace.id,
            'state': {'chain_type': 'black_leather', 'metal': 'white_gold'},
            'consumed_proposals': {'metal': 'yellow_gold'},
        }])

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['items'][0]['customization_data']['metal'], 'white_gold')

    def test_ready_made_item(self, mocked_resolve):
        ring = TestDataFactory.create_jewelry_item(type='ring', product_type='ready_made',
                                                   base_price=Decimal('80.00'),
                                                   base_image_url='https://cdn.test/ring.webp')

        response = self.checkout([{'jewelry_item_id': ring.id}])

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        line = Order.objects.get().items.get()
        self.assertEqual(line.total_price, Decimal('80.00'))
        self.assertEqual(line.customization_data, {})
        self.assertEqual(line.preview_image_url, 'https://cdn.test/ring.webp')
        mocked_resolve.assert_not_called()

    @override_settings(ORDER_DELIVERY_FEE=Decimal('10.00'))
    def test_delivery_fee_is_added(self, mocked_resolve):
        response = self.checkout([{
            'jewelry_item_id': self.necklace.id,
            'state': {'chain_type': 'black_leather', 'metal': 'white_gold'},
        }])

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        order = Order.objects.get()
        self.assertEqual(order.delivery_fee, Decimal('10.00'))
        self.assertEqual(order.total, Decimal('260.00'))

    def test_inactive_item_is_rejected(self, mocked_resolve):
        self.necklace.is_active = False
        self.necklace.save()

        response = self.checkout([{
            'jewelry_item_id': self.necklace.id,
            'state': {'chain_type': 'black_leather', 'metal': 'white_gold'},
        }])

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('no longer available', response.data['error'])

    def test_invalid_payloads(self, mocked_resolve):
        self.assertEqual(self.checkout([]).status_code, status.HTTP_400_BAD_REQUEST)
        response = self.checkout([{'jewelry_item_id': self.necklace.id}], customer_email='not-an-email')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        response = self.checkout([{'jewelry_item_id': self.necklace.id, 'quantity': 0}])
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_signed_in_customer_is_attached(self, mocked_resolve):
        user = TestDataFactory.create_user()
        self.client.authenticate_user(user)

        response = self.checkout([{
            'jewelry_item_id': self.necklace.id,
            'state': {'chain_type': 'black_leather', 'metal': 'white_gold'},
        }])

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(Order.objects.get().customer, user)

    @mock.patch('backend.orders.views.create_order',
                side_effect=IntegrityError('UNIQUE constraint failed: orders.order_number'))
    def test_duplicate_order_number_is_conflict(self, mocked_create, mocked_resolve):
        response = self.checkout([{'jewelry_item_id': self.necklace.id}])

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['category'], 'duplicate')


class OrderAccessTests(TestCase):
    """Test who can see and update orders"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.admin = TestDataFactory.create_admin()
        self.shopper = TestDataFactory.create_user()
        self.own_order = self.create_order('JV-2026-AAAAAA', customer=self.shopper)
        self.guest_order = self.create_order('JV-2026-BBBBBB', customer_email='Guest@Example.com',
                                             status='shipped')

    def create_order(self, order_number, **kwargs):
        data = {
            'customer_name': 'Shopper',
            'customer_email': 'shopper@example.com',
            'customer_phone': '+961 70 000000',
            'delivery_address': 'Street 1',
            'delivery_city': 'Beirut',
            'subtotal': Decimal('100.00'),
            'total': Decimal('100.00'),
        }
        data.update(kwargs)
        return Order.objects.create(order_number=order_number, **data)

    def test_list_requires_authentication(self):
        response = self.client.get('/api/v1/orders/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_shopper_sees_own_orders(self):
        self.client.authenticate_user(self.shopper)
        response = self.client.get('/api/v1/orders/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([order['order_number'] for order in response.data], ['JV-2026-AAAAAA'])

    def test_admin_sees_all_orders_and_filters_by_status(self):
        self.client.authenticate_user(self.admin)
        response = self.client.get('/api/v1/orders/')
        self.assertEqual(len(response.data), 2)

        response = self.client.get('/api/v1/orders/', {'status': 'shipped'})
        self.assertEqual([order['order_number'] for order in response.data], ['JV-2026-BBBBBB'])

    def test_guest_confirmation_needs_matching_email(self):
        url = f'/api/v1/orders/{self.guest_order.order_number}/'
        self.assertEqual(self.client.get(url).status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(self.client.get(url, {'email': 'other@example.com'}).status_code,
                         status.HTTP_404_NOT_FOUND)

        response = self.client.get(url, {'email': 'guest@example.com'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'shipped')

    def test_owner_sees_order(self):
        self.client.authenticate_user(self.shopper)
        response = self.client.get(f'/api/v1/orders/{self.own_order.order_number}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_admin_updates_status(self):
        url = f'/api/v1/orders/{self.own_order.order_number}/status/'

        self.client.authenticate_user(self.shopper)
        self.assertEqual(self.client.patch(url, {'status': 'confirmed'}, format='json').status_code,
                         status.HTTP_403_FORBIDDEN)

        self.client.authenticate_user(self.admin)
        response = self.client.patch(url, {'status': 'confirmed'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.own_order.refresh_from_db()
        self.assertEqual(self.own_order.status, 'confirmed')

        response = self.client.patch(url, {'status': 'lost'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
