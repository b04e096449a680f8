from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import NotAuthenticated
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from django.db import IntegrityError
from django.shortcuts import get_object_or_404
import logging
from backend.core.errors import user_message_for
from backend.core.permissions import IsAdminRole
from .models import Order
from .serializers import OrderSerializer, CheckoutSerializer, OrderStatusSerializer
from .services import OrderValidationError, create_order

logger = logging.getLogger(__name__)


def _is_admin(request):
    return request.user.is_authenticated and getattr(request.user, 'is_admin', False)


def _error_response(error, status_code):
    category, title, message = user_message_for(error)
    return Response(
        {'error': str(error), 'category': category, 'title': title, 'message': message},
        status=status_code
    )


@api_view(['GET', 'POST'])
@permission_classes([AllowAny])
def order_list_create(request):
    """
    POST places an order (guests allowed); GET lists orders.

    Admins see every order and may filter by `status`; signed-in shoppers
    see their own.
    """
    if request.method == 'GET':
        if not request.user.is_authenticated:
            raise NotAuthenticated()
        orders = Order.objects.prefetch_related('items')
        if _is_admin(request):
            status_filter = request.query_params.get('status')
            if status_filter:
                orders = orders.filter(status=status_filter)
        else:
            orders = orders.filter(customer=request.user)
        return Response(OrderSerializer(orders, many=True).data)

    serializer = CheckoutSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    customer_data = dict(serializer.validated_data)
    lines = customer_data.pop('items')
    try:
        order = create_order(customer_data, lines, customer=request.user)
    except OrderValidationError as e:
        logger.warning(f"Checkout rejected: {str(e)}")
        return _error_response(e, status.HTTP_400_BAD_REQUEST)
    except IntegrityError as e:
        logger.error(f"Checkout failed: {str(e)}")
        return _error_response(e, status.HTTP_409_CONFLICT)

    return Response(OrderSerializer(order).data, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([AllowAny])
def order_detail(request, order_number):
    """Order confirmation: admins, the owner, or a guest quoting the order email"""
    order = get_object_or_404(Order.objects.prefetch_related('items'), order_number=order_number)

    email = request.query_params.get('email', '')
    allowed = (
        _is_admin(request)
        or (request.user.is_authenticated and order.customer_id == request.user.id)
        or (email and email.strip().lower() == order.customer_email.lower())
    )
    if not allowed:
        return Response({'error': 'Order not found'}, status=status.HTTP_404_NOT_FOUND)
    return Response(OrderSerializer(order).data)


@api_view(['PATCH'])
@permission_classes([IsAdminRole])
def order_status(request, order_number):
    order = get_object_or_404(Order, order_number=order_number)

    serializer = OrderStatusSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    previous = order.status
    order.status = serializer.validated_data['status']
    order.save(update_fields=['status', 'updated_at'])
    logger.info(f"Order {order.order_number} status {previous} -> {order.status}")
    return Response(OrderSerializer(order).data)
