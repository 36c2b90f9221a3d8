"""
Cart service: the per-user mutable item list consumed by checkout.
"""
import logging

from django.db import transaction

from apps.catalog.models import Product
from apps.core.config import StoreConfig
from apps.core.exceptions import (
    AuthorizationException,
    InsufficientStockException,
    NotFoundException,
    ValidationException,
)
from .models import Cart, CartItem, CartStatus

logger = logging.getLogger(__name__)


class CartService:
    """
    Every operation works on the caller's single OPEN cart. Checked-out carts
    are invisible here.
    """

    def __init__(self, config: StoreConfig):
        self.config = config

    def get_open_cart(self, user) -> Cart:
        cart, created = Cart.objects.get_or_create(user=user, status=CartStatus.OPEN)
        if created:
            logger.debug(f"Opened cart {cart.pk} for user {user.pk}")
        return Cart.objects.prefetch_related('items__product__category').get(pk=cart.pk)

    @transaction.atomic
    def add_item(self, user, product_id: int, quantity: int) -> Cart:
        if quantity < 1:
            raise ValidationException("Quantity must be at least 1", field="quantity")

        try:
            product = Product.objects.get(pk=product_id)
        except Product.DoesNotExist:
            raise NotFoundException("Product", product_id)
        if not product.is_active:
            raise ValidationException(f"{product.name} is not available", field="id_product")

        cart = self.get_open_cart(user)
        item = cart.items.filter(product=product).first()
        wanted = quantity + (item.quantity if item else 0)
        if wanted > product.stock:
            raise InsufficientStockException(product.name, product.stock, wanted)

        if item:
            item.quantity = wanted
            item.unit_price = product.price
            item.save(update_fields=['quantity', 'unit_price', 'updated_at'])
        else:
            CartItem.objects.create(cart=cart, product=product, quantity=quantity, unit_price=product.price)

        return self.get_open_cart(user)

    @transaction.atomic
    def update_item(self, user, item_id: int, quantity: int) -> Cart:
        if quantity < 1:
            raise ValidationException("Quantity must be at least 1", field="quantity")

        item = self._own_item(user, item_id)
        if quantity > item.product.stock:
            raise InsufficientStockException(item.product.name, item.product.stock, quantity)

        item.quantity = quantity
        item.save(update_fields=['quantity', 'updated_at'])
        return self.get_open_cart(user)

    def remove_item(self, user, item_id: int) -> Cart:
        self._own_item(user, item_id).delete()
        return self.get_open_cart(user)

    def clear(self, user, cart_id: int) -> Cart:
        cart = Cart.objects.filter(pk=cart_id, user=user, status=CartStatus.OPEN).first()
        if cart is None:
            raise AuthorizationException("Invalid cart")
        cart.items.all().delete()
        return self.get_open_cart(user)

    def _own_item(self, user, item_id: int) -> CartItem:
        item = (
            CartItem.objects.select_related('cart', 'product')
            .filter(pk=item_id, cart__user=user, cart__status=CartStatus.OPEN)
            .first()
        )
        if item is None:
            raise NotFoundException("Cart item", item_id)
        return item
