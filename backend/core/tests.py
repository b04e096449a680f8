"""
Test suite for the core module
Tests: authentication, error categorisation and the site style setting
"""
from django.core.cache import cache
from django.test import SimpleTestCase, TestCase
from rest_framework import status
from rest_framework_simplejwt.tokens import AccessToken
from types import SimpleNamespace
import requests
from backend.core.errors import (
    AUTHENTICATION, DUPLICATE, GENERIC, NETWORK, PAYMENT, PERMISSION, VALIDATION,
    classify_error, user_message_for,
)
from backend.core.models import SiteSetting
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient


class ErrorClassificationTests(SimpleTestCase):
    """Test mapping failures onto user-facing categories"""

    def http_error(self, status_code):
        response = requests.Response()
        response.status_code = status_code
        return requests.HTTPError(f'{status_code} error', response=response)

    def test_database_codes(self):
        """Test Postgres error codes"""
        self.assertEqual(classify_error(SimpleNamespace(code='23505')), DUPLICATE)
        self.assertEqual(classify_error(SimpleNamespace(code='42501')), PERMISSION)
        self.assertEqual(classify_error(SimpleNamespace(code='23502')), VALIDATION)
        self.assertEqual(classify_error(SimpleNamespace(code='PGRST301')), AUTHENTICATION)

    def test_http_status_codes(self):
        """Test status codes carried on the exception or its response"""
        self.assertEqual(classify_error(self.http_error(401)), AUTHENTICATION)
        self.assertEqual(classify_error(self.http_error(403)), PERMISSION)
        self.assertEqual(classify_error(self.http_error(402)), PAYMENT)
        self.assertEqual(classify_error(self.http_error(409)), DUPLICATE)
        self.assertEqual(classify_error(self.http_error(422)), VALIDATION)
        self.assertEqual(classify_error(SimpleNamespace(status_code=400)), VALIDATION)

    def test_network_errors(self):
        self.assertEqual(classify_error(requests.ConnectionError('refused')), NETWORK)
        self.assertEqual(classify_error(TimeoutError()), NETWORK)

    def test_message_markers(self):
        """Test categorisation from the error text"""
        self.assertEqual(classify_error(Exception('Your card was declined')), PAYMENT)
        self.assertEqual(classify_error(Exception('duplicate key value violates unique constraint')), DUPLICATE)
        self.assertEqual(classify_error(Exception('null value in column "name"')), VALIDATION)
        self.assertEqual(classify_error(Exception('JWT expired')), AUTHENTICATION)
        self.assertEqual(classify_error(Exception('Request timed out')), NETWORK)

    def test_unknown_errors_are_generic(self):
        self.assertEqual(classify_error(None), GENERIC)
        self.assertEqual(classify_error(Exception('boom')), GENERIC)

    def test_user_message(self):
        category, title, message = user_message_for(Exception('Your card was declined'))
        self.assertEqual(category, PAYMENT)
        self.assertEqual(title, 'Payment Failed')
        self.assertIn('payment method', message)


class AuthenticationTests(TestCase):
    """Test token login and the current user endpoint"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.user = TestDataFactory.create_user(username='shopadmin', password='secret-pass-1', roles=['admin'])

    def test_login_returns_tokens_with_roles(self):
        """Test login includes roles in the access token"""
        response = self.client.post('/api/v1/auth/login/', {
            'username': 'shopadmin',
            'password': 'secret-pass-1'
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('refresh', response.data)
        token = AccessToken(response.data['access'])
        self.assertEqual(token['username'], 'shopadmin')
        self.assertEqual(token['roles'], ['admin'])

    def test_login_wrong_password(self):
        response = self.client.post('/api/v1/auth/login/', {
            'username': 'shopadmin',
            'password': 'wrong'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_user_me(self):
        self.client.authenticate_user(self.user)
        response = self.client.get('/api/v1/auth/me/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['username'], 'shopadmin')
        self.assertTrue(response.data['is_admin'])

    def test_user_me_requires_authentication(self):
        response = self.client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_is_admin_property(self):
        """Test admin role, staff and superuser all count as admin"""
        self.assertTrue(self.user.is_admin)
        self.assertTrue(TestDataFactory.create_user(is_staff=True).is_admin)
        self.assertFalse(TestDataFactory.create_user(roles=['editor']).is_admin)


class SiteStyleTests(TestCase):
    """Test reading and switching the storefront style"""

    def setUp(self):
        cache.clear()
        self.client = AuthenticatedAPIClient()
        self.url = '/api/admin/site-style'

    def test_default_style(self):
        """Test the original style is served when nothing is stored"""
        response = self.client.get(self.url)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['style'], 'original')

    def test_admin_switches_style(self):
        self.client.get(self.url)  # warm the cache
        self.client.authenticate_user(TestDataFactory.create_admin())

        response = self.client.post(self.url, {'style': 'valentines'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data, {'success': True, 'style': 'valentines'})
        self.assertEqual(SiteSetting.objects.get(key='site_style').value, 'valentines')
        self.assertEqual(self.client.get(self.url).data['style'], 'valentines')

    def test_invalid_style(self):
        self.client.authenticate_user(TestDataFactory.create_admin())
        response = self.client.post(self.url, {'style': 'halloween'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Invalid style')
        self.assertFalse(SiteSetting.objects.filter(key='site_style').exists())

    def test_only_admins_can_switch(self):
        response = self.client.post(self.url, {'style': 'valentines'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

        self.client.authenticate_user(TestDataFactory.create_user())
        response = self.client.post(self.url, {'style': 'valentines'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
