from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer, TokenRefreshSerializer
from rest_framework_simplejwt.exceptions import InvalidToken, TokenError
from django.contrib.auth import get_user_model
from django.core.cache import cache
from django.core.exceptions import ObjectDoesNotExist
import logging
from .models import SiteSetting
from .permissions import IsAdminRoleOrReadOnly
from .serializers import UserSerializer, SiteStyleSerializer
from .cache_utils import SITE_STYLE_CACHE_KEY, SITE_STYLE_CACHE_TTL

logger = logging.getLogger(__name__)

User = get_user_model()

DEFAULT_SITE_STYLE = 'original'


class CustomTokenObtainPairSerializer(TokenObtainPairSerializer):
    def validate(self, attrs):
        data = super().validate(attrs)
        # Ensure user is active
        if not self.user.is_active:
            from rest_framework_simplejwt.exceptions import AuthenticationFailed
            raise AuthenticationFailed('User account is disabled.')
        return data

    @classmethod
    def get_token(cls, user):
        token = super().get_token(user)
        token['username'] = user.username
        token['roles'] = list(user.roles or [])
        return token


class CustomTokenObtainPairView(TokenObtainPairView):
    serializer_class = CustomTokenObtainPairSerializer


class CustomTokenRefreshSerializer(TokenRefreshSerializer):
    """Custom token refresh serializer that handles deleted users gracefully"""
    def validate(self, attrs):
        try:
            return super().validate(attrs)
        except (InvalidToken, TokenError):
            raise InvalidToken('Token is invalid or expired.')
        except (ObjectDoesNotExist, User.DoesNotExist):
            # User referenced in token doesn't exist anymore
            raise InvalidToken('Token is invalid. User no longer exists.')


class CustomTokenRefreshView(TokenRefreshView):
    """Custom token refresh view that handles deleted users gracefully"""
    serializer_class = CustomTokenRefreshSerializer


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def user_me(request):
    """Get current user with roles"""
    serializer = UserSerializer(request.user)
    return Response(serializer.data)


def get_site_style():
    """Current site style, falling back to the original look"""
    style = cache.get(SITE_STYLE_CACHE_KEY)
    if style:
        return style

    setting = SiteSetting.objects.filter(key='site_style').only('value').first()
    style = setting.value if setting else DEFAULT_SITE_STYLE
    cache.set(SITE_STYLE_CACHE_KEY, style, SITE_STYLE_CACHE_TTL)
    return style


@api_view(['GET', 'POST'])
@permission_classes([IsAdminRoleOrReadOnly])
def site_style(request):
    """Get or update the active site style"""
    if request.method == 'GET':
        return Response({'style': get_site_style()})

    serializer = SiteStyleSerializer(data=request.data)
    if not serializer.is_valid():
        return Response({'error': 'Invalid style', 'details': serializer.errors}, status=status.HTTP_400_BAD_REQUEST)

    style = serializer.validated_data['style']
    SiteSetting.objects.update_or_create(
        key='site_style',
        defaults={'value': style, 'description': 'Active storefront style'}
    )
    cache.delete(SITE_STYLE_CACHE_KEY)
    logger.info(f"Site style changed to {style} by {request.user.username}")
    return Response({'success': True, 'style': style})
