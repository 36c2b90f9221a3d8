"""
Order placement and stock reconciliation.

Checkout runs in two phases:

1. Preconditions on a snapshot read (cart ownership, non-empty, stock,
   declared total). Any failure here happens before a single write.
2. One ``transaction.atomic`` block that creates the order, its items, the
   shipping record and the payment, decrements stock with a conditional
   update and closes the cart. Any exception inside rolls all of it back.
"""
import logging
from collections import OrderedDict
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, List, Optional

from django.db import transaction
from django.db.models import F
from django.utils import timezone

from apps.accounts.models import User
from apps.cart.models import Cart, CartStatus
from apps.catalog.models import Product
from apps.core.config import StoreConfig
from apps.core.exceptions import (
    AuthorizationException,
    ConflictException,
    ForbiddenException,
    InsufficientStockException,
    NotFoundException,
    ValidationException,
)
from apps.core.utils import quantize_money, sum_line_totals
from .models import Order, OrderItem, OrderStatus, Payment, ShippingInfo

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ShippingDetails:
    full_name: str
    phone: str
    email: str
    province: str
    canton: str
    district: str
    address_details: str
    shipping_method: str
    identification: Optional[str] = None
    delivery_notes: Optional[str] = None


@dataclass(frozen=True)
class OrderRequest:
    """Checkout of the caller's own cart."""
    cart_id: int
    shipping: ShippingDetails
    payment_method: str
    total_amount: Decimal


@dataclass(frozen=True)
class GuestLine:
    product_id: int
    quantity: int
    unit_price: Decimal


@dataclass(frozen=True)
class GuestOrderRequest:
    """Checkout without an account; items come straight from the client."""
    full_name: str
    phone: str
    email: str
    address: str
    items: List[GuestLine]
    total_amount: Decimal
    payment_method: Optional[str] = None


@dataclass(frozen=True)
class _Line:
    product: Product
    quantity: int
    unit_price: Decimal


def order_queryset():
    return Order.objects.select_related('user', 'shipping').prefetch_related(
        'items__product__category', 'payments'
    )


class OrderService:

    def __init__(self, config: StoreConfig):
        self.config = config

    # ------------------------------------------------------------------
    # Placement
    # ------------------------------------------------------------------

    def place_order(self, user: User, request: OrderRequest) -> Order:
        """
        Turn the caller's OPEN cart into a PENDING order.
        """
        cart = (
            Cart.objects.prefetch_related('items__product')
            .filter(pk=request.cart_id)
            .first()
        )
        if cart is None or cart.user_id != user.pk or not cart.is_open:
            logger.info(f"User {user.pk} tried to check out unusable cart {request.cart_id}")
            raise AuthorizationException("Invalid cart", code="INVALID_CART")

        lines = [
            _Line(product=item.product, quantity=item.quantity, unit_price=item.unit_price)
            for item in cart.items.all()
        ]
        if not lines:
            raise ValidationException("Cart is empty", field="id_cart")

        self._check_stock(lines)
        total = self._check_total(lines, request.total_amount)

        with transaction.atomic():
            order = self._write_order(user=user, cart=cart, lines=lines, total=total)
            self._write_shipping(order, request.shipping)
            self._write_payment(order, request.payment_method, total)
            self._decrement_stock(lines)
            self._close_cart(cart)

        logger.info(
            f"Order {order.pk} placed by user {user.pk}: "
            f"{len(lines)} lines, total {total}, cart {cart.pk} checked out"
        )
        return self.get_order(order.pk)

    def place_guest_order(self, request: GuestOrderRequest) -> Order:
        """
        Same flow as ``place_order`` but with no cart and no owner.
        """
        if not request.items:
            raise ValidationException("Order has no items", field="items")

        products = Product.objects.in_bulk({line.product_id for line in request.items})
        lines = []
        for line in request.items:
            product = products.get(line.product_id)
            if product is None:
                raise ValidationException(f"Product {line.product_id} not found", field="items")
            if line.quantity < 1:
                raise ValidationException(f"Invalid quantity for {product.name}", field="items")
            lines.append(_Line(product=product, quantity=line.quantity, unit_price=line.unit_price))

        self._check_stock(lines)
        total = self._check_total(lines, request.total_amount)

        placeholder = self.config.guest_placeholder
        shipping = ShippingDetails(
            full_name=request.full_name,
            phone=request.phone,
            email=request.email,
            province=placeholder,
            canton=placeholder,
            district=placeholder,
            address_details=request.address,
            shipping_method=self.config.guest_shipping_method,
        )
        payment_method = request.payment_method or self.config.guest_payment_method

        with transaction.atomic():
            order = self._write_order(user=None, cart=None, lines=lines, total=total)
            self._write_shipping(order, shipping)
            self._write_payment(order, payment_method, total)
            self._decrement_stock(lines)

        logger.info(f"Guest order {order.pk} placed: {len(lines)} lines, total {total}")
        return self.get_order(order.pk)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_order(self, order_id: int) -> Order:
        try:
            return order_queryset().get(pk=order_id)
        except Order.DoesNotExist:
            raise NotFoundException("Order", order_id)

    def get_user_order(self, user: User, order_id: int) -> Order:
        order = self.get_order(order_id)
        if order.user_id != user.pk:
            raise ForbiddenException("You do not have access to this order")
        return order

    def list_user_orders(self, user: User) -> List[Order]:
        return list(order_queryset().filter(user=user))

    def list_all_orders(self) -> List[Order]:
        return list(order_queryset())

    # ------------------------------------------------------------------
    # Admin
    # ------------------------------------------------------------------

    def update_status(self, order_id: int, status: str) -> Order:
        if status not in OrderStatus.values:
            raise ValidationException(f"Unknown order status: {status}", field="status")

        order = self.get_order(order_id)
        if not order.can_transition_to(status):
            raise ValidationException(
                f"Cannot move order from {order.status} to {status}",
                field="status"
            )

        updated = Order.objects.filter(pk=order.pk, status=order.status).update(
            status=status, updated_at=timezone.now()
        )
        if not updated:
            raise ConflictException("Order status was changed by another request")

        logger.info(f"Order {order.pk} status {order.status} -> {status}")
        return self.get_order(order.pk)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @staticmethod
    def _requested(lines: List[_Line]) -> Dict[int, int]:
        """Total quantity per product, duplicate lines merged."""
        requested = OrderedDict()
        for line in lines:
            requested[line.product.pk] = requested.get(line.product.pk, 0) + line.quantity
        return requested

    def _check_stock(self, lines: List[_Line]) -> None:
        products = {line.product.pk: line.product for line in lines}
        for product_id, quantity in self._requested(lines).items():
            product = products[product_id]
            if product.stock < quantity:
                logger.info(f"Stock shortfall for product {product_id}: {product.stock} < {quantity}")
                raise InsufficientStockException(product.name, product.stock, quantity)

    def _check_total(self, lines: List[_Line], declared) -> Decimal:
        total = sum_line_totals((line.quantity, line.unit_price) for line in lines)
        if declared is not None and quantize_money(declared) != total:
            raise ValidationException(
                f"total_amount {quantize_money(declared)} does not match the order lines ({total})",
                field="total_amount"
            )
        return total

    def _write_order(self, user, cart, lines: List[_Line], total: Decimal) -> Order:
        order = Order.objects.create(
            user=user,
            cart=cart,
            total_amount=total,
            status=OrderStatus.PENDING,
        )
        OrderItem.objects.bulk_create([
            OrderItem(
                order=order,
                product=line.product,
                quantity=line.quantity,
                unit_price=quantize_money(line.unit_price),
            )
            for line in lines
        ])
        return order

    def _write_shipping(self, order: Order, shipping: ShippingDetails) -> ShippingInfo:
        return ShippingInfo.objects.create(
            order=order,
            full_name=shipping.full_name,
            identification=shipping.identification,
            phone=shipping.phone,
            email=shipping.email,
            province=shipping.province,
            canton=shipping.canton,
            district=shipping.district,
            address_details=shipping.address_details,
            delivery_notes=shipping.delivery_notes,
            shipping_method=shipping.shipping_method,
        )

    def _write_payment(self, order: Order, payment_method: str, amount: Decimal) -> Payment:
        return Payment.objects.create(
            order=order,
            payment_method=payment_method,
            amount=amount,
        )

    def _decrement_stock(self, lines: List[_Line]) -> None:
        """
        ``stock = stock - q WHERE stock >= q``. Zero rows means another
        checkout got there first; raising aborts the enclosing transaction.
        """
        names = {line.product.pk: line.product.name for line in lines}
        for product_id, quantity in sorted(self._requested(lines).items()):
            updated = Product.objects.filter(pk=product_id, stock__gte=quantity).update(
                stock=F('stock') - quantity
            )
            if not updated:
                available = Product.objects.filter(pk=product_id).values_list('stock', flat=True).first() or 0
                logger.warning(f"Stock for product {product_id} ran out during checkout")
                raise InsufficientStockException(names[product_id], available, quantity)

    def _close_cart(self, cart: Cart) -> None:
        updated = Cart.objects.filter(pk=cart.pk, status=CartStatus.OPEN).update(
            status=CartStatus.CHECKED_OUT, updated_at=timezone.now()
        )
        if not updated:
            raise AuthorizationException("Invalid cart", code="INVALID_CART")
