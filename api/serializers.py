"""
API Serializers for Request/Response handling

Request serializers list every accepted field explicitly; anything else in a
payload is ignored rather than written through to a model.
"""
from rest_framework import serializers

from apps.accounts.models import User
from apps.cart.models import Cart, CartItem
from apps.catalog.models import Category, Product
from apps.core.models import Status
from apps.orders.models import (
    Order,
    OrderItem,
    OrderStatus,
    Payment,
    PaymentMethod,
    ShippingInfo,
    ShippingMethod,
)


# =============================================================================
# AUTH
# =============================================================================

class RegisterRequestSerializer(serializers.Serializer):
    full_name = serializers.CharField(max_length=255)
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True)
    phone = serializers.CharField(max_length=30, required=False, allow_blank=True, allow_null=True)


class LoginRequestSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True)


class ProfileUpdateSerializer(serializers.Serializer):
    full_name = serializers.CharField(max_length=255, required=False)
    phone = serializers.CharField(max_length=30, required=False, allow_blank=True)
    avatar = serializers.URLField(max_length=500, required=False, allow_blank=True)


class ChangePasswordSerializer(serializers.Serializer):
    currentPassword = serializers.CharField(write_only=True)
    newPassword = serializers.CharField(write_only=True)


class UserSerializer(serializers.ModelSerializer):
    id_user = serializers.IntegerField(source='pk', read_only=True)

    class Meta:
        model = User
        fields = ['id_user', 'email', 'full_name', 'phone', 'avatar', 'role', 'status', 'created_at']
        read_only_fields = fields


class AuthResponseSerializer(serializers.Serializer):
    """
    Response serializer for register and login.
    """
    id_user = serializers.IntegerField()
    email = serializers.EmailField()
    full_name = serializers.CharField()
    role = serializers.CharField()
    access_token = serializers.CharField()


# =============================================================================
# CATALOG
# =============================================================================

class CategorySerializer(serializers.ModelSerializer):
    id_category = serializers.IntegerField(source='pk', read_only=True)

    class Meta:
        model = Category
        fields = ['id_category', 'name', 'description', 'image_url', 'status', 'created_at', 'updated_at']
        read_only_fields = fields


class CategoryWriteSerializer(serializers.Serializer):
    """
    Multipart or JSON body for category create/update. ``image`` is an optional upload.
    """
    name = serializers.CharField(max_length=120)
    description = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    image_url = serializers.URLField(max_length=500, required=False, allow_null=True)
    status = serializers.ChoiceField(choices=Status.choices, required=False)
    image = serializers.FileField(required=False, write_only=True)


class ProductSerializer(serializers.ModelSerializer):
    id_product = serializers.IntegerField(source='pk', read_only=True)
    id_category = serializers.IntegerField(source='category_id', read_only=True)
    category = CategorySerializer(read_only=True)

    class Meta:
        model = Product
        fields = [
            'id_product', 'name', 'description', 'price', 'stock', 'image_url',
            'status', 'id_category', 'category', 'created_at', 'updated_at',
        ]
        read_only_fields = fields


class ProductWriteSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255)
    description = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    price = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0)
    stock = serializers.IntegerField(min_value=0, required=False)
    image_url = serializers.URLField(max_length=500, required=False, allow_null=True)
    id_category = serializers.IntegerField()
    status = serializers.ChoiceField(choices=Status.choices, required=False)
    image = serializers.FileField(required=False, write_only=True)


class ProductFilterSerializer(serializers.Serializer):
    id_category = serializers.IntegerField(required=False)
    search = serializers.CharField(required=False, allow_blank=True)
    status = serializers.ChoiceField(choices=Status.choices, required=False)


# =============================================================================
# CART
# =============================================================================

class CartItemSerializer(serializers.ModelSerializer):
    id_cart_item = serializers.IntegerField(source='pk', read_only=True)
    id_cart = serializers.IntegerField(source='cart_id', read_only=True)
    id_product = serializers.IntegerField(source='product_id', read_only=True)
    product = ProductSerializer(read_only=True)

    class Meta:
        model = CartItem
        fields = ['id_cart_item', 'id_cart', 'id_product', 'quantity', 'unit_price', 'product']
        read_only_fields = fields


class CartSerializer(serializers.ModelSerializer):
    id_cart = serializers.IntegerField(source='pk', read_only=True)
    id_user = serializers.IntegerField(source='user_id', read_only=True)
    items = CartItemSerializer(many=True, read_only=True)
    total = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)

    class Meta:
        model = Cart
        fields = ['id_cart', 'id_user', 'status', 'items', 'total', 'created_at', 'updated_at']
        read_only_fields = fields


class CartItemAddSerializer(serializers.Serializer):
    id_product = serializers.IntegerField()
    quantity = serializers.IntegerField(min_value=1, default=1)


class CartItemUpdateSerializer(serializers.Serializer):
    quantity = serializers.IntegerField(min_value=1)


# =============================================================================
# ORDERS
# =============================================================================

class OrderCreateSerializer(serializers.Serializer):
    """
    Checkout of the authenticated user's cart.
    """
    id_cart = serializers.IntegerField()
    full_name = serializers.CharField(max_length=255)
    identification = serializers.CharField(max_length=50, required=False, allow_blank=True, allow_null=True)
    phone = serializers.CharField(max_length=30)
    email = serializers.EmailField()
    province = serializers.CharField(max_length=100)
    canton = serializers.CharField(max_length=100)
    district = serializers.CharField(max_length=100)
    address_details = serializers.CharField()
    delivery_notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    shipping_method = serializers.ChoiceField(choices=ShippingMethod.choices)
    payment_method = serializers.ChoiceField(choices=PaymentMethod.choices)
    total_amount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0)


class GuestOrderItemSerializer(serializers.Serializer):
    id_product = serializers.IntegerField()
    quantity = serializers.IntegerField(min_value=1)
    unit_price = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0)


class GuestOrderCreateSerializer(serializers.Serializer):
    full_name = serializers.CharField(max_length=255)
    phone = serializers.CharField(max_length=30)
    email = serializers.EmailField()
    address = serializers.CharField()
    items = GuestOrderItemSerializer(many=True, allow_empty=False)
    total_amount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0)
    payment_method = serializers.ChoiceField(choices=PaymentMethod.choices, required=False)


class OrderStatusUpdateSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=OrderStatus.choices)


class OrderItemSerializer(serializers.ModelSerializer):
    id_order_item = serializers.IntegerField(source='pk', read_only=True)
    id_order = serializers.IntegerField(source='order_id', read_only=True)
    id_product = serializers.IntegerField(source='product_id', read_only=True)
    product = ProductSerializer(read_only=True)

    class Meta:
        model = OrderItem
        fields = ['id_order_item', 'id_order', 'id_product', 'quantity', 'unit_price', 'product']
        read_only_fields = fields


class ShippingInfoSerializer(serializers.ModelSerializer):
    id_shipping = serializers.IntegerField(source='pk', read_only=True)
    id_order = serializers.IntegerField(source='order_id', read_only=True)

    class Meta:
        model = ShippingInfo
        fields = [
            'id_shipping', 'id_order', 'full_name', 'identification', 'phone', 'email',
            'province', 'canton', 'district', 'address_details', 'delivery_notes',
            'shipping_method',
        ]
        read_only_fields = fields


class PaymentSerializer(serializers.ModelSerializer):
    id_payment = serializers.IntegerField(source='pk', read_only=True)
    id_order = serializers.IntegerField(source='order_id', read_only=True)

    class Meta:
        model = Payment
        fields = [
            'id_payment', 'id_order', 'payment_method', 'amount', 'payment_status',
            'payment_reference', 'created_at', 'updated_at',
        ]
        read_only_fields = fields


class OrderCustomerSerializer(serializers.ModelSerializer):
    id_user = serializers.IntegerField(source='pk', read_only=True)

    class Meta:
        model = User
        fields = ['id_user', 'email', 'full_name', 'phone']
        read_only_fields = fields


class OrderSerializer(serializers.ModelSerializer):
    id_order = serializers.IntegerField(source='pk', read_only=True)
    id_user = serializers.IntegerField(source='user_id', read_only=True, allow_null=True)
    user = OrderCustomerSerializer(read_only=True, allow_null=True)
    items = OrderItemSerializer(many=True, read_only=True)
    shipping_info = ShippingInfoSerializer(source='shipping', read_only=True)
    payments = PaymentSerializer(many=True, read_only=True)

    class Meta:
        model = Order
        fields = [
            'id_order', 'id_user', 'user', 'total_amount', 'status', 'items',
            'shipping_info', 'payments', 'created_at', 'updated_at',
        ]
        read_only_fields = fields


# =============================================================================
# HEALTH
# =============================================================================

class HealthCheckSerializer(serializers.Serializer):
    """
    Response serializer for health check.
    """
    status = serializers.CharField()
    version = serializers.CharField()
    database = serializers.CharField()
    image_store = serializers.CharField()
    timestamp = serializers.CharField()
