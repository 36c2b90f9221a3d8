"""
API Views for the Gazel storefront

This module provides REST API endpoints for:
- Auth: registration, login, profile and password changes
- Catalog: categories and products (admin-only mutation, public reads)
- Cart: the authenticated user's open cart
- Orders: checkout (authenticated and guest), order history, admin status changes
- Health Check: system health and status
"""
import logging
from datetime import datetime, timezone

from django.db import connection
from drf_spectacular.utils import extend_schema, OpenApiExample
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.accounts.services import AuthService, ProfileUpdate, Registration
from apps.cart.services import CartService
from apps.catalog.images import build_image_store
from apps.catalog.services import (
    CatalogService,
    CategoryCreate,
    CategoryUpdate,
    ProductCreate,
    ProductFilter,
    ProductUpdate,
)
from apps.core.config import get_store_config
from apps.orders.services import (
    GuestLine,
    GuestOrderRequest,
    OrderRequest,
    OrderService,
    ShippingDetails,
)
from .permissions import IsAdminRole, IsAuthenticatedUser
from .serializers import (
    AuthResponseSerializer,
    CartItemAddSerializer,
    CartItemUpdateSerializer,
    CartSerializer,
    CategorySerializer,
    CategoryWriteSerializer,
    ChangePasswordSerializer,
    GuestOrderCreateSerializer,
    HealthCheckSerializer,
    LoginRequestSerializer,
    OrderCreateSerializer,
    OrderSerializer,
    OrderStatusUpdateSerializer,
    ProductFilterSerializer,
    ProductSerializer,
    ProductWriteSerializer,
    ProfileUpdateSerializer,
    RegisterRequestSerializer,
    UserSerializer,
)

logger = logging.getLogger(__name__)


def catalog_service() -> CatalogService:
    config = get_store_config()
    return CatalogService(config, build_image_store(config))


def _auth_payload(result) -> dict:
    return AuthResponseSerializer({
        "id_user": result.user.pk,
        "email": result.user.email,
        "full_name": result.user.full_name,
        "role": result.user.role,
        "access_token": result.access_token,
    }).data


class AdminWriteMixin:
    """Public reads, admin-only writes."""

    def get_permissions(self):
        if self.request.method in ('GET', 'HEAD', 'OPTIONS'):
            return [AllowAny()]
        return [IsAdminRole()]


# =============================================================================
# AUTH
# =============================================================================

class RegisterView(APIView):
    permission_classes = [AllowAny]

    @extend_schema(
        request=RegisterRequestSerializer,
        responses={201: AuthResponseSerializer},
        description="Create a customer account and return an access token",
        examples=[
            OpenApiExample(
                "Registration",
                value={
                    "full_name": "Ana Mora",
                    "email": "ana@example.com",
                    "password": "secret123",
                    "phone": "8888-0000"
                },
                request_only=True
            ),
        ]
    )
    def post(self, request):
        serializer = RegisterRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        result = AuthService(get_store_config()).register(Registration(
            email=data['email'],
            password=data['password'],
            full_name=data['full_name'],
            phone=data.get('phone') or None,
        ))
        return Response(_auth_payload(result), status=status.HTTP_201_CREATED)


class LoginView(APIView):
    permission_classes = [AllowAny]

    @extend_schema(
        request=LoginRequestSerializer,
        responses={200: AuthResponseSerializer},
        description="Exchange email and password for an access token"
    )
    def post(self, request):
        serializer = LoginRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        result = AuthService(get_store_config()).login(data['email'], data['password'])
        return Response(_auth_payload(result), status=status.HTTP_200_OK)


class ProfileView(APIView):
    permission_classes = [IsAuthenticatedUser]

    @extend_schema(responses={200: UserSerializer}, description="Current user's profile")
    def get(self, request):
        return Response(UserSerializer(request.user).data)

    @extend_schema(
        request=ProfileUpdateSerializer,
        responses={200: UserSerializer},
        description="Update name, phone or avatar of the current user"
    )
    def put(self, request):
        serializer = ProfileUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        user = AuthService(get_store_config()).update_profile(request.user, ProfileUpdate(
            full_name=data.get('full_name'),
            phone=data.get('phone'),
            avatar=data.get('avatar'),
        ))
        return Response(UserSerializer(user).data)


class ChangePasswordView(APIView):
    permission_classes = [IsAuthenticatedUser]

    @extend_schema(request=ChangePasswordSerializer, description="Change the current user's password")
    def post(self, request):
        serializer = ChangePasswordSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        AuthService(get_store_config()).change_password(
            request.user, data['currentPassword'], data['newPassword']
        )
        return Response({"message": "Password updated successfully"})


# =============================================================================
# CATEGORIES
# =============================================================================

class CategoryListView(AdminWriteMixin, APIView):

    @extend_schema(responses={200: CategorySerializer(many=True)}, description="All categories by name")
    def get(self, request):
        return Response(CategorySerializer(catalog_service().list_categories(), many=True).data)

    @extend_schema(request=CategoryWriteSerializer, responses={201: CategorySerializer})
    def post(self, request):
        serializer = CategoryWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)
        image = data.pop('image', None)

        category = catalog_service().create_category(CategoryCreate(**data), image=image)
        return Response(CategorySerializer(category).data, status=status.HTTP_201_CREATED)


class CategoryDetailView(AdminWriteMixin, APIView):

    @extend_schema(responses={200: CategorySerializer})
    def get(self, request, pk):
        return Response(CategorySerializer(catalog_service().get_category(pk)).data)

    @extend_schema(request=CategoryWriteSerializer, responses={200: CategorySerializer})
    def put(self, request, pk):
        serializer = CategoryWriteSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)
        image = data.pop('image', None)

        category = catalog_service().update_category(pk, CategoryUpdate(**data), image=image)
        return Response(CategorySerializer(category).data)

    def delete(self, request, pk):
        catalog_service().delete_category(pk)
        return Response(status=status.HTTP_204_NO_CONTENT)


# =============================================================================
# PRODUCTS
# =============================================================================

class ProductListView(AdminWriteMixin, APIView):

    @extend_schema(
        parameters=[ProductFilterSerializer],
        responses={200: ProductSerializer(many=True)},
        description="Products, optionally filtered by category, status and free-text search"
    )
    def get(self, request):
        filters = ProductFilterSerializer(data=request.query_params)
        filters.is_valid(raise_exception=True)
        data = filters.validated_data

        products = catalog_service().list_products(ProductFilter(
            category_id=data.get('id_category'),
            search=data.get('search') or None,
            status=data.get('status'),
        ))
        return Response(ProductSerializer(products, many=True).data)

    @extend_schema(request=ProductWriteSerializer, responses={201: ProductSerializer})
    def post(self, request):
        serializer = ProductWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)
        image = data.pop('image', None)
        data['category_id'] = data.pop('id_category')

        product = catalog_service().create_product(ProductCreate(**data), image=image)
        return Response(ProductSerializer(product).data, status=status.HTTP_201_CREATED)


class ProductDetailView(AdminWriteMixin, APIView):

    @extend_schema(responses={200: ProductSerializer})
    def get(self, request, pk):
        return Response(ProductSerializer(catalog_service().get_product(pk)).data)

    @extend_schema(request=ProductWriteSerializer, responses={200: ProductSerializer})
    def put(self, request, pk):
        serializer = ProductWriteSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)
        image = data.pop('image', None)
        if 'id_category' in data:
            data['category_id'] = data.pop('id_category')

        product = catalog_service().update_product(pk, ProductUpdate(**data), image=image)
        return Response(ProductSerializer(product).data)

    def delete(self, request, pk):
        catalog_service().delete_product(pk)
        return Response(status=status.HTTP_204_NO_CONTENT)


class ProductsByCategoryView(APIView):
    permission_classes = [AllowAny]

    @extend_schema(responses={200: ProductSerializer(many=True)}, description="Active products of a category")
    def get(self, request, pk):
        return Response(ProductSerializer(catalog_service().products_by_category(pk), many=True).data)


# =============================================================================
# CART
# =============================================================================

class CartView(APIView):
    permission_classes = [IsAuthenticatedUser]

    @extend_schema(responses={200: CartSerializer}, description="The caller's open cart")
    def get(self, request):
        cart = CartService(get_store_config()).get_open_cart(request.user)
        return Response(CartSerializer(cart).data)


class CartItemListView(APIView):
    permission_classes = [IsAuthenticatedUser]

    @extend_schema(request=CartItemAddSerializer, responses={201: CartSerializer})
    def post(self, request):
        serializer = CartItemAddSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        cart = CartService(get_store_config()).add_item(request.user, data['id_product'], data['quantity'])
        return Response(CartSerializer(cart).data, status=status.HTTP_201_CREATED)


class CartItemDetailView(APIView):
    permission_classes = [IsAuthenticatedUser]

    @extend_schema(request=CartItemUpdateSerializer, responses={200: CartSerializer})
    def put(self, request, pk):
        serializer = CartItemUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        cart = CartService(get_store_config()).update_item(request.user, pk, serializer.validated_data['quantity'])
        return Response(CartSerializer(cart).data)

    @extend_schema(responses={200: CartSerializer})
    def delete(self, request, pk):
        cart = CartService(get_store_config()).remove_item(request.user, pk)
        return Response(CartSerializer(cart).data)


class CartClearView(APIView):
    permission_classes = [IsAuthenticatedUser]

    @extend_schema(responses={200: CartSerializer})
    def delete(self, request, pk):
        cart = CartService(get_store_config()).clear(request.user, pk)
        return Response(CartSerializer(cart).data)


# =============================================================================
# ORDERS
# =============================================================================

class OrderListView(APIView):
    """
    GET lists the caller's orders; POST checks out the caller's cart.
    """
    permission_classes = [IsAuthenticatedUser]

    @extend_schema(responses={200: OrderSerializer(many=True)})
    def get(self, request):
        orders = OrderService(get_store_config()).list_user_orders(request.user)
        return Response(OrderSerializer(orders, many=True).data)

    @extend_schema(
        request=OrderCreateSerializer,
        responses={201: OrderSerializer},
        description="Place an order from the caller's open cart",
        examples=[
            OpenApiExample(
                "Checkout",
                value={
                    "id_cart": 7,
                    "full_name": "Ana Mora",
                    "identification": "1-2345-6789",
                    "phone": "8888-0000",
                    "email": "ana@example.com",
                    "province": "San José",
                    "canton": "Escazú",
                    "district": "San Rafael",
                    "address_details": "200m norte del parque",
                    "shipping_method": "STANDARD",
                    "payment_method": "CREDIT_CARD",
                    "total_amount": "2500.00"
                },
                request_only=True
            ),
        ]
    )
    def post(self, request):
        serializer = OrderCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        order = OrderService(get_store_config()).place_order(request.user, OrderRequest(
            cart_id=data['id_cart'],
            shipping=ShippingDetails(
                full_name=data['full_name'],
                identification=data.get('identification') or None,
                phone=data['phone'],
                email=data['email'],
                province=data['province'],
                canton=data['canton'],
                district=data['district'],
                address_details=data['address_details'],
                delivery_notes=data.get('delivery_notes') or None,
                shipping_method=data['shipping_method'],
            ),
            payment_method=data['payment_method'],
            total_amount=data['total_amount'],
        ))
        return Response(OrderSerializer(order).data, status=status.HTTP_201_CREATED)


class GuestOrderView(APIView):
    permission_classes = [AllowAny]

    @extend_schema(
        request=GuestOrderCreateSerializer,
        responses={201: OrderSerializer},
        description="Place an order without an account"
    )
    def post(self, request):
        serializer = GuestOrderCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        order = OrderService(get_store_config()).place_guest_order(GuestOrderRequest(
            full_name=data['full_name'],
            phone=data['phone'],
            email=data['email'],
            address=data['address'],
            items=[
                GuestLine(
                    product_id=item['id_product'],
                    quantity=item['quantity'],
                    unit_price=item['unit_price'],
                )
                for item in data['items']
            ],
            total_amount=data['total_amount'],
            payment_method=data.get('payment_method'),
        ))
        return Response(OrderSerializer(order).data, status=status.HTTP_201_CREATED)


class OrderDetailView(APIView):
    permission_classes = [IsAuthenticatedUser]

    @extend_schema(responses={200: OrderSerializer})
    def get(self, request, pk):
        order = OrderService(get_store_config()).get_user_order(request.user, pk)
        return Response(OrderSerializer(order).data)


class AdminOrderListView(APIView):
    permission_classes = [IsAdminRole]

    @extend_schema(responses={200: OrderSerializer(many=True)}, description="Every order, newest first")
    def get(self, request):
        orders = OrderService(get_store_config()).list_all_orders()
        return Response(OrderSerializer(orders, many=True).data)


class OrderStatusView(APIView):
    permission_classes = [IsAdminRole]

    @extend_schema(request=OrderStatusUpdateSerializer, responses={200: OrderSerializer})
    def put(self, request, pk):
        serializer = OrderStatusUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        order = OrderService(get_store_config()).update_status(pk, serializer.validated_data['status'])
        return Response(OrderSerializer(order).data)


# =============================================================================
# HEALTH
# =============================================================================

class HealthCheckView(APIView):
    """
    System health check endpoint.

    Returns the status of the API, database connectivity
    and whether the image store has credentials.
    """
    permission_classes = [AllowAny]

    @extend_schema(
        responses={200: HealthCheckSerializer},
        description="Check system health status"
    )
    def get(self, request):
        # Check database connectivity
        db_status = "healthy"
        try:
            with connection.cursor() as cursor:
                cursor.execute("SELECT 1")
        except Exception as e:
            logger.error(f"Health check database failure: {e}")
            db_status = "unhealthy"

        config = get_store_config()
        response_data = {
            "status": "healthy" if db_status == "healthy" else "degraded",
            "version": "1.0.0",
            "database": db_status,
            "image_store": "configured" if config.image_store_configured else "not configured",
            "timestamp": datetime.now(timezone.utc).isoformat()
        }

        return Response(response_data, status=status.HTTP_200_OK)
