"""
Order Models - checkout records
Tables: orders, order_items, shipping_info, payments

An order, its items, its shipping record and its first payment are written
together in one transaction and never deleted.
"""
from django.db import models

from apps.core.models import BaseModel


class OrderStatus(models.TextChoices):
    PENDING = 'PENDING', 'Pending'
    PAID = 'PAID', 'Paid'
    SHIPPED = 'SHIPPED', 'Shipped'
    COMPLETED = 'COMPLETED', 'Completed'
    CANCELLED = 'CANCELLED', 'Cancelled'


# Allowed admin moves; anything absent is rejected.
ORDER_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.PAID, OrderStatus.CANCELLED},
    OrderStatus.PAID: {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.COMPLETED},
    OrderStatus.COMPLETED: set(),
    OrderStatus.CANCELLED: set(),
}


class ShippingMethod(models.TextChoices):
    STANDARD = 'STANDARD', 'Standard'
    EXPRESS = 'EXPRESS', 'Express'
    OVERNIGHT = 'OVERNIGHT', 'Overnight'


class PaymentMethod(models.TextChoices):
    CREDIT_CARD = 'CREDIT_CARD', 'Credit card'
    DEBIT_CARD = 'DEBIT_CARD', 'Debit card'
    PAYPAL = 'PAYPAL', 'PayPal'
    BANK_TRANSFER = 'BANK_TRANSFER', 'Bank transfer'
    CASH_ON_DELIVERY = 'CASH_ON_DELIVERY', 'Cash on delivery'


class PaymentStatus(models.TextChoices):
    PENDING = 'PENDING', 'Pending'
    APPROVED = 'APPROVED', 'Approved'
    FAILED = 'FAILED', 'Failed'
    REFUNDED = 'REFUNDED', 'Refunded'


class Order(BaseModel):
    """
    Completed checkout. ``user`` is null for guest orders.
    """
    user = models.ForeignKey(
        'accounts.User',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='orders'
    )
    cart = models.OneToOneField(
        'cart.Cart',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='order'
    )
    total_amount = models.DecimalField(max_digits=12, decimal_places=2)
    status = models.CharField(max_length=12, choices=OrderStatus.choices, default=OrderStatus.PENDING)

    class Meta:
        db_table = 'orders'
        verbose_name = 'Order'
        verbose_name_plural = 'Orders'
        ordering = ['-created_at', '-pk']

    def __str__(self):
        owner = self.user_id or 'guest'
        return f"Order {self.pk} - {owner} - {self.status}"

    @property
    def is_guest(self) -> bool:
        return self.user_id is None

    def can_transition_to(self, status: str) -> bool:
        return status in ORDER_TRANSITIONS.get(self.status, set())


class OrderItem(models.Model):
    """
    Line of an order. ``unit_price`` is the price captured at checkout.
    """
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name='items')
    product = models.ForeignKey('catalog.Product', on_delete=models.PROTECT, related_name='order_items')
    quantity = models.PositiveIntegerField()
    unit_price = models.DecimalField(max_digits=10, decimal_places=2)

    class Meta:
        db_table = 'order_items'
        verbose_name = 'Order Item'
        verbose_name_plural = 'Order Items'
        ordering = ['pk']

    def __str__(self):
        return f"{self.quantity} x {self.product_id} @ {self.unit_price}"

    @property
    def line_total(self):
        return self.unit_price * self.quantity


class ShippingInfo(BaseModel):
    order = models.OneToOneField(Order, on_delete=models.CASCADE, related_name='shipping')
    full_name = models.CharField(max_length=255)
    identification = models.CharField(max_length=50, blank=True, null=True)
    phone = models.CharField(max_length=30)
    email = models.EmailField()
    province = models.CharField(max_length=100)
    canton = models.CharField(max_length=100)
    district = models.CharField(max_length=100)
    address_details = models.TextField()
    delivery_notes = models.TextField(blank=True, null=True)
    shipping_method = models.CharField(
        max_length=12,
        choices=ShippingMethod.choices,
        default=ShippingMethod.STANDARD
    )

    class Meta:
        db_table = 'shipping_info'
        verbose_name = 'Shipping Info'
        verbose_name_plural = 'Shipping Info'

    def __str__(self):
        return f"Shipping for order {self.order_id} - {self.full_name}"


class Payment(BaseModel):
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name='payments')
    payment_method = models.CharField(max_length=20, choices=PaymentMethod.choices)
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    payment_status = models.CharField(
        max_length=12,
        choices=PaymentStatus.choices,
        default=PaymentStatus.PENDING
    )
    payment_reference = models.CharField(max_length=100, blank=True, null=True)

    class Meta:
        db_table = 'payments'
        verbose_name = 'Payment'
        verbose_name_plural = 'Payments'
        ordering = ['created_at', 'pk']

    def __str__(self):
        return f"{self.payment_method} - {self.amount} ({self.payment_status})"
