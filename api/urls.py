"""
API URL Configuration
"""
from django.urls import path
from .views import (
    RegisterView,
    LoginView,
    ProfileView,
    ChangePasswordView,
    CategoryListView,
    CategoryDetailView,
    ProductListView,
    ProductDetailView,
    ProductsByCategoryView,
    CartView,
    CartItemListView,
    CartItemDetailView,
    CartClearView,
    OrderListView,
    GuestOrderView,
    AdminOrderListView,
    OrderDetailView,
    OrderStatusView,
    HealthCheckView,
)

app_name = 'api'

urlpatterns = [
    # Auth
    path('auth/register', RegisterView.as_view(), name='register'),
    path('auth/login', LoginView.as_view(), name='login'),
    path('auth/profile', ProfileView.as_view(), name='profile'),
    path('auth/change-password', ChangePasswordView.as_view(), name='change-password'),

    # Catalog
    path('categories', CategoryListView.as_view(), name='category-list'),
    path('categories/<int:pk>', CategoryDetailView.as_view(), name='category-detail'),
    path('products', ProductListView.as_view(), name='product-list'),
    path('products/category/<int:pk>', ProductsByCategoryView.as_view(), name='products-by-category'),
    path('products/<int:pk>', ProductDetailView.as_view(), name='product-detail'),

    # Cart
    path('cart', CartView.as_view(), name='cart'),
    path('cart/items', CartItemListView.as_view(), name='cart-items'),
    path('cart/items/<int:pk>', CartItemDetailView.as_view(), name='cart-item-detail'),
    path('cart/<int:pk>/clear', CartClearView.as_view(), name='cart-clear'),

    # Orders
    path('orders', OrderListView.as_view(), name='order-list'),
    path('orders/guest', GuestOrderView.as_view(), name='order-guest'),
    path('orders/admin/all', AdminOrderListView.as_view(), name='order-admin-list'),
    path('orders/<int:pk>', OrderDetailView.as_view(), name='order-detail'),
    path('orders/<int:pk>/status', OrderStatusView.as_view(), name='order-status'),

    # Health check
    path('health', HealthCheckView.as_view(), name='health'),
]
