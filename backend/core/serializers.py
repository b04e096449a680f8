from rest_framework import serializers
from .models import User, SiteSetting

SITE_STYLES = ['original', 'valentines']


class UserSerializer(serializers.ModelSerializer):
    is_admin = serializers.BooleanField(read_only=True)

    class Meta:
        model = User
        fields = ['id', 'username', 'email', 'first_name', 'last_name', 'phone', 'roles', 'is_admin', 'is_active', 'created_at', 'updated_at']
        read_only_fields = ['roles', 'created_at', 'updated_at']


class SiteSettingSerializer(serializers.ModelSerializer):
    class Meta:
        model = SiteSetting
        fields = ['id', 'key', 'value', 'description', 'created_at', 'updated_at']


class SiteStyleSerializer(serializers.Serializer):
    style = serializers.ChoiceField(choices=SITE_STYLES, error_messages={'invalid_choice': 'Invalid style'})
