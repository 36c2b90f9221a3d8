"""
Cart Models - per-user shopping carts
Tables: carts, cart_items
"""
from django.db import models

from apps.core.models import BaseModel
from apps.core.utils import sum_line_totals


class CartStatus(models.TextChoices):
    OPEN = 'OPEN', 'Open'
    CHECKED_OUT = 'CHECKED_OUT', 'Checked out'


class Cart(BaseModel):
    """
    A user's open selection. Flips to CHECKED_OUT once, when an order is
    placed from it, and is never used again afterwards.
    """
    user = models.ForeignKey('accounts.User', on_delete=models.CASCADE, related_name='carts')
    status = models.CharField(max_length=12, choices=CartStatus.choices, default=CartStatus.OPEN)

    class Meta:
        db_table = 'carts'
        verbose_name = 'Cart'
        verbose_name_plural = 'Carts'
        constraints = [
            models.UniqueConstraint(
                fields=['user'],
                condition=models.Q(status='OPEN'),
                name='one_open_cart_per_user',
            ),
        ]

    def __str__(self):
        return f"Cart {self.pk} - {self.status}"

    @property
    def is_open(self) -> bool:
        return self.status == CartStatus.OPEN

    @property
    def total(self):
        return sum_line_totals((item.quantity, item.unit_price) for item in self.items.all())


class CartItem(BaseModel):
    cart = models.ForeignKey(Cart, on_delete=models.CASCADE, related_name='items')
    product = models.ForeignKey('catalog.Product', on_delete=models.CASCADE, related_name='cart_items')
    quantity = models.PositiveIntegerField(default=1)
    unit_price = models.DecimalField(max_digits=10, decimal_places=2)

    class Meta:
        db_table = 'cart_items'
        verbose_name = 'Cart Item'
        verbose_name_plural = 'Cart Items'
        ordering = ['created_at', 'pk']
        constraints = [
            models.UniqueConstraint(fields=['cart', 'product'], name='one_line_per_product'),
        ]

    def __str__(self):
        return f"{self.quantity} x {self.product_id} @ {self.unit_price}"
