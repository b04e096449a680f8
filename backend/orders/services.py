"""
Checkout: turn cart lines into an order priced on the server.

Every customizable line is re-evaluated through the item's logic rules so
the stored price, variant filename and picture match what the customizer
showed; client-sent prices are never trusted.
"""
import logging
import uuid
from decimal import Decimal

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from backend.customization.configuration import NATURAL
from backend.customization.evaluation import evaluate_selection
from .models import Order, OrderItem

logger = logging.getLogger(__name__)


class OrderValidationError(Exception):
    """A cart line cannot be ordered as sent"""
    status_code = 400


def generate_order_number():
    order_number = f"JV-{timezone.now().year}-{uuid.uuid4().hex[:6].upper()}"
    while Order.objects.filter(order_number=order_number).exists():
        order_number = f"JV-{timezone.now().year}-{uuid.uuid4().hex[:6].upper()}"
    return order_number


def price_line(item, state=None, diamond_type=NATURAL, consumed_proposals=None, quantity=1):
    """Unsaved OrderItem for one cart line"""
    if not item.is_active:
        raise OrderValidationError(f"{item.name} is no longer available")

    if item.is_customizable:
        evaluation = evaluate_selection(
            item, state=state, diamond_type=diamond_type, apply_defaults=False,
            consumed_proposals=consumed_proposals
        )
        missing = evaluation.missing_required()
        if missing:
            raise OrderValidationError(f"{item.name}: please choose {', '.join(missing)}")
        unit_price = evaluation.total_price
        customization_data = evaluation.selections
        summary = evaluation.summary()
        variant_filename = evaluation.variant_filename
        image_url = evaluation.image_url
    else:
        unit_price = Decimal(item.base_price).quantize(Decimal('0.01'))
        customization_data = {}
        summary = ''
        variant_filename = None
        image_url = item.base_image_url or None

    return OrderItem(
        jewelry_item=item,
        product_name=item.name,
        jewelry_type=item.type,
        customization_data=customization_data,
        customization_summary=summary,
        diamond_type=diamond_type,
        base_price=item.base_price,
        total_price=unit_price,
        quantity=quantity,
        subtotal=unit_price * quantity,
        variant_filename=variant_filename,
        preview_image_url=image_url,
    )


def create_order(customer_data, lines, customer=None):
    """
    Create an order from validated checkout data.

    `lines` are dicts with `jewelry_item`, `state`, `diamond_type`,
    `consumed_proposals` and `quantity`. Raises OrderValidationError before
    anything is written when a line is not orderable.
    """
    order_items = [
        price_line(
            line['jewelry_item'],
            state=line.get('state'),
            diamond_type=line.get('diamond_type', NATURAL),
            consumed_proposals=line.get('consumed_proposals'),
            quantity=line.get('quantity', 1),
        )
        for line in lines
    ]

    subtotal = sum((order_item.subtotal for order_item in order_items), Decimal('0.00'))
    delivery_fee = getattr(settings, 'ORDER_DELIVERY_FEE', Decimal('0.00'))

    with transaction.atomic():
        order = Order.objects.create(
            order_number=generate_order_number(),
            customer=customer if customer is not None and customer.is_authenticated else None,
            subtotal=subtotal,
            delivery_fee=delivery_fee,
            total=subtotal + delivery_fee,
            **customer_data
        )
        for order_item in order_items:
            order_item.order = order
        OrderItem.objects.bulk_create(order_items)

    logger.info(f"Order {order.order_number} created: {len(order_items)} item(s), total {order.total}")
    return order
