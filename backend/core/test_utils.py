"""
Test utilities and factories for creating test data
"""
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from backend.catalog.models import ProductCategory, JewelryItem
from backend.customization.models import CustomizationOption, CustomizationLogicRule
from decimal import Decimal
import random
import string

User = get_user_model()


class TestDataFactory:
    """Factory class for creating test data"""

    @staticmethod
    def random_string(length=10):
        """Generate a random string"""
        return ''.join(random.choices(string.ascii_lowercase + string.digits, k=length))

    @staticmethod
    def create_user(username=None, email=None, password='testpass123', roles=None, is_staff=False):
        """Create a test user"""
        if not username:
            username = f'testuser_{TestDataFactory.random_string(6)}'
        if not email:
            email = f'{username}@test.com'
        return User.objects.create_user(
            username=username,
            email=email,
            password=password,
            roles=roles or [],
            is_staff=is_staff
        )

    @staticmethod
    def create_admin(username=None):
        """Create a user holding the admin role"""
        return TestDataFactory.create_user(username=username, roles=['admin'])

    @staticmethod
    def create_category(name=None, slug=None):
        """Create a test category"""
        if not name:
            name = f'Category {TestDataFactory.random_string(6)}'
        return ProductCategory.objects.create(
            name=name,
            slug=slug or f'category-{TestDataFactory.random_string(8)}'
        )

    @staticmethod
    def create_jewelry_item(name=None, slug=None, type='necklace', product_type='customizable',
                            base_price=Decimal('100.00'), category=None, **kwargs):
        """Create a test jewelry item"""
        if not name:
            name = f'{type.title()} {TestDataFactory.random_string(6)}'
        return JewelryItem.objects.create(
            name=name,
            slug=slug or f'{type}-{TestDataFactory.random_string(8)}',
            type=type,
            product_type=product_type,
            base_price=base_price,
            category=category,
            **kwargs
        )

    @staticmethod
    def create_option(jewelry_item, setting_id, option_id, option_name=None, setting_title=None,
                      setting_display_order=0, display_order=0, price=Decimal('0.00'), **kwargs):
        """Create a customization option row"""
        return CustomizationOption.objects.create(
            jewelry_item=jewelry_item,
            setting_id=setting_id,
            setting_title=setting_title or setting_id.replace('_', ' ').title(),
            setting_display_order=setting_display_order,
            option_id=option_id,
            option_name=option_name or option_id.replace('_', ' ').title(),
            display_order=display_order,
            price=price,
            **kwargs
        )

    @staticmethod
    def create_options(jewelry_item, setting_id, option_ids, setting_display_order=0, **kwargs):
        """Create one setting with several options in the given order"""
        return [
            TestDataFactory.create_option(
                jewelry_item, setting_id, option_id,
                setting_display_order=setting_display_order,
                display_order=index,
                **kwargs
            )
            for index, option_id in enumerate(option_ids)
        ]

    @staticmethod
    def create_rule(jewelry_item, condition_setting_id, condition_option_id, action_type, target_setting_id,
                    target_option_ids=None, price_multiplier=None, rule_name=None, is_active=True):
        """Create a logic rule"""
        return CustomizationLogicRule.objects.create(
            jewelry_item=jewelry_item,
            rule_name=rule_name or f'Rule {TestDataFactory.random_string(6)}',
            condition_setting_id=condition_setting_id,
            condition_option_id=condition_option_id,
            action_type=action_type,
            target_setting_id=target_setting_id,
            target_option_ids=target_option_ids or [],
            price_multiplier=price_multiplier,
            is_active=is_active
        )


class AuthenticatedAPIClient(APIClient):
    """APIClient with authentication helper"""

    def authenticate_user(self, user):
        """Authenticate the client with a user"""
        refresh = RefreshToken.for_user(user)
        self.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
        return self

    def logout(self):
        """Remove authentication"""
        self.credentials()
