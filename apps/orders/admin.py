from django.contrib import admin

from .models import Order, OrderItem, Payment, ShippingInfo


class ReadOnlyInline:
    """Order children are written once at checkout and never edited."""
    extra = 0
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False

    def has_change_permission(self, request, obj=None):
        return False


class OrderItemInline(ReadOnlyInline, admin.TabularInline):
    model = OrderItem


class ShippingInfoInline(ReadOnlyInline, admin.StackedInline):
    model = ShippingInfo


class PaymentInline(ReadOnlyInline, admin.TabularInline):
    model = Payment


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    """
    Read-only view of orders. Status changes go through ``PUT /orders/:id/status``
    so the transition rules in ``OrderService.update_status`` always apply.
    """
    list_display = ('id', 'user', 'total_amount', 'status', 'created_at')
    list_filter = ('status',)
    readonly_fields = ('user', 'cart', 'total_amount', 'status', 'created_at', 'updated_at')
    inlines = [OrderItemInline, ShippingInfoInline, PaymentInline]

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False
