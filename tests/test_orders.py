from decimal import Decimal

import pytest

from apps.cart.models import Cart, CartStatus
from apps.catalog.models import Product
from apps.core.exceptions import (
    AuthorizationException,
    ConflictException,
    ForbiddenException,
    InsufficientStockException,
    NotFoundException,
    ValidationException,
)
from apps.orders.models import Order, OrderItem, OrderStatus, Payment, PaymentStatus, ShippingInfo
from apps.orders.services import (
    GuestLine,
    GuestOrderRequest,
    OrderRequest,
    OrderService,
    ShippingDetails,
)

pytestmark = pytest.mark.django_db


def shipping(**overrides):
    values = dict(
        full_name="Ana Mora",
        identification="1-2345-6789",
        phone="8888-0000",
        email="ana@example.com",
        province="San José",
        canton="Escazú",
        district="San Rafael",
        address_details="200m norte del parque",
        shipping_method="EXPRESS",
    )
    values.update(overrides)
    return ShippingDetails(**values)


def order_request(cart, total, payment_method="CREDIT_CARD"):
    return OrderRequest(
        cart_id=cart.pk,
        shipping=shipping(),
        payment_method=payment_method,
        total_amount=Decimal(total),
    )


def assert_nothing_written():
    assert Order.objects.count() == 0
    assert OrderItem.objects.count() == 0
    assert ShippingInfo.objects.count() == 0
    assert Payment.objects.count() == 0


@pytest.fixture
def service(config):
    return OrderService(config)


class TestPlaceOrder:

    def test_two_item_cart_is_checked_out(self, service, user, make_product, make_cart):
        product_a = make_product("ProductA", price="1000.00", stock=10)
        product_b = make_product("ProductB", price="500.00", stock=4)
        cart = make_cart(user, [(product_a, 2), (product_b, 1)])

        order = service.place_order(user, order_request(cart, "2500"))

        assert order.user_id == user.pk
        assert order.status == OrderStatus.PENDING
        assert order.total_amount == Decimal("2500.00")

        items = {item.product_id: item for item in order.items.all()}
        assert items[product_a.pk].quantity == 2
        assert items[product_a.pk].unit_price == Decimal("1000.00")
        assert items[product_b.pk].quantity == 1
        assert items[product_b.pk].unit_price == Decimal("500.00")

        payment = order.payments.get()
        assert payment.amount == Decimal("2500.00")
        assert payment.payment_status == PaymentStatus.PENDING
        assert payment.payment_method == "CREDIT_CARD"
        assert order.shipping.province == "San José"
        assert order.shipping.shipping_method == "EXPRESS"

        product_a.refresh_from_db()
        product_b.refresh_from_db()
        assert product_a.stock == 8
        assert product_b.stock == 3

        cart.refresh_from_db()
        assert cart.status == CartStatus.CHECKED_OUT

    def test_stock_drop_matches_ordered_quantity(self, service, user, make_product, make_cart):
        products = [make_product(f"P{i}", price="10.00", stock=20) for i in range(3)]
        quantities = [1, 4, 7]
        cart = make_cart(user, list(zip(products, quantities)))

        service.place_order(user, order_request(cart, "120"))

        remaining = sum(Product.objects.filter(pk__in=[p.pk for p in products]).values_list("stock", flat=True))
        assert 60 - remaining == sum(quantities)

    def test_empty_cart_is_rejected(self, service, user):
        cart = Cart.objects.create(user=user)

        with pytest.raises(ValidationException) as exc:
            service.place_order(user, order_request(cart, "0"))

        assert exc.value.message == "Cart is empty"
        assert_nothing_written()

    def test_foreign_cart_is_rejected(self, service, user, other_user, make_product, make_cart):
        cart = make_cart(other_user, [(make_product(), 1)])

        with pytest.raises(AuthorizationException) as exc:
            service.place_order(user, order_request(cart, "1000"))

        assert exc.value.message == "Invalid cart"
        assert_nothing_written()

    def test_unknown_cart_is_rejected(self, service, user):
        with pytest.raises(AuthorizationException):
            service.place_order(user, OrderRequest(
                cart_id=999, shipping=shipping(), payment_method="PAYPAL", total_amount=Decimal("1")
            ))

    def test_insufficient_stock_fails_before_any_write(self, service, user, make_product, make_cart):
        plenty = make_product("Plenty", price="100.00", stock=10)
        scarce = make_product("Scarce", price="100.00", stock=1)
        cart = make_cart(user, [(plenty, 2), (scarce, 3)])

        with pytest.raises(InsufficientStockException) as exc:
            service.place_order(user, order_request(cart, "500"))

        assert "Scarce" in exc.value.message
        assert_nothing_written()
        plenty.refresh_from_db()
        scarce.refresh_from_db()
        assert (plenty.stock, scarce.stock) == (10, 1)
        cart.refresh_from_db()
        assert cart.status == CartStatus.OPEN

    def test_checked_out_cart_cannot_be_reused(self, service, user, make_product, make_cart):
        cart = make_cart(user, [(make_product(stock=10), 1)])
        service.place_order(user, order_request(cart, "1000"))

        with pytest.raises(AuthorizationException):
            service.place_order(user, order_request(cart, "1000"))

        assert Order.objects.count() == 1

    def test_mismatched_total_is_rejected(self, service, user, make_product, make_cart):
        product = make_product(price="1000.00", stock=5)
        cart = make_cart(user, [(product, 2)])

        with pytest.raises(ValidationException) as exc:
            service.place_order(user, order_request(cart, "1500"))

        assert exc.value.field == "total_amount"
        assert_nothing_written()
        product.refresh_from_db()
        assert product.stock == 5

    def test_failure_mid_transaction_rolls_everything_back(
        self, service, user, make_product, make_cart, monkeypatch
    ):
        product_a = make_product("ProductA", price="1000.00", stock=10)
        product_b = make_product("ProductB", price="500.00", stock=4)
        cart = make_cart(user, [(product_a, 2), (product_b, 1)])

        def boom(*args, **kwargs):
            raise RuntimeError("payment table unavailable")

        monkeypatch.setattr(OrderService, "_write_payment", boom)

        with pytest.raises(RuntimeError):
            service.place_order(user, order_request(cart, "2500"))

        assert_nothing_written()
        product_a.refresh_from_db()
        product_b.refresh_from_db()
        assert (product_a.stock, product_b.stock) == (10, 4)
        cart.refresh_from_db()
        assert cart.status == CartStatus.OPEN

    def test_conditional_decrement_guards_against_oversell(
        self, service, user, make_product, make_cart, monkeypatch
    ):
        first = make_product("First", price="10.00", stock=5)
        second = make_product("Second", price="10.00", stock=5)
        cart = make_cart(user, [(first, 2), (second, 3)])

        # Another checkout drains the second product after the snapshot read
        original_check = OrderService._check_stock

        def check_then_drain(self, lines):
            original_check(self, lines)
            Product.objects.filter(pk=second.pk).update(stock=1)

        monkeypatch.setattr(OrderService, "_check_stock", check_then_drain)

        with pytest.raises(InsufficientStockException) as exc:
            service.place_order(user, order_request(cart, "50"))

        assert "Second" in exc.value.message
        assert_nothing_written()
        first.refresh_from_db()
        second.refresh_from_db()
        assert (first.stock, second.stock) == (5, 1)


class TestGuestOrder:

    def guest_request(self, lines, total, payment_method=None):
        return GuestOrderRequest(
            full_name="Invitado",
            phone="7000-0000",
            email="guest@example.com",
            address="Frente a la iglesia",
            items=lines,
            total_amount=Decimal(total),
            payment_method=payment_method,
        )

    def test_guest_order_has_no_user_and_defaults(self, service, make_product):
        product = make_product(price="750.00", stock=3)

        order = service.place_guest_order(self.guest_request(
            [GuestLine(product_id=product.pk, quantity=2, unit_price=Decimal("750.00"))], "1500"
        ))

        assert order.user_id is None
        assert order.cart_id is None
        assert order.shipping.province == "N/A"
        assert order.shipping.canton == "N/A"
        assert order.shipping.district == "N/A"
        assert order.shipping.address_details == "Frente a la iglesia"
        assert order.shipping.shipping_method == "STANDARD"
        assert order.payments.get().payment_method == "CASH_ON_DELIVERY"
        product.refresh_from_db()
        assert product.stock == 1

    def test_explicit_payment_method_is_kept(self, service, make_product):
        product = make_product(price="10.00", stock=3)

        order = service.place_guest_order(self.guest_request(
            [GuestLine(product_id=product.pk, quantity=1, unit_price=Decimal("10.00"))],
            "10",
            payment_method="PAYPAL",
        ))

        assert order.payments.get().payment_method == "PAYPAL"

    def test_quantity_above_stock_names_the_product(self, service, make_product):
        product = make_product("Reloj clásico", price="100.00", stock=3)

        with pytest.raises(InsufficientStockException) as exc:
            service.place_guest_order(self.guest_request(
                [GuestLine(product_id=product.pk, quantity=5, unit_price=Decimal("100.00"))], "500"
            ))

        assert "Reloj clásico" in exc.value.message
        product.refresh_from_db()
        assert product.stock == 3
        assert_nothing_written()

    def test_duplicate_lines_are_checked_together(self, service, make_product):
        product = make_product(price="100.00", stock=3)
        line = GuestLine(product_id=product.pk, quantity=2, unit_price=Decimal("100.00"))

        with pytest.raises(InsufficientStockException):
            service.place_guest_order(self.guest_request([line, line], "400"))

        product.refresh_from_db()
        assert product.stock == 3

    def test_unknown_product_is_rejected(self, service):
        with pytest.raises(ValidationException) as exc:
            service.place_guest_order(self.guest_request(
                [GuestLine(product_id=4242, quantity=1, unit_price=Decimal("1.00"))], "1"
            ))

        assert "4242" in exc.value.message
        assert_nothing_written()


class TestOrderQueries:

    def test_user_sees_only_own_orders(self, service, user, other_user, make_product, make_cart):
        product = make_product(stock=10)
        own = service.place_order(user, order_request(make_cart(user, [(product, 1)]), "1000"))
        service.place_order(other_user, order_request(make_cart(other_user, [(product, 1)]), "1000"))

        assert [o.pk for o in service.list_user_orders(user)] == [own.pk]
        assert len(service.list_all_orders()) == 2

    def test_foreign_order_is_forbidden(self, service, user, other_user, make_product, make_cart):
        order = service.place_order(other_user, order_request(make_cart(other_user, [(make_product(), 1)]), "1000"))

        with pytest.raises(ForbiddenException):
            service.get_user_order(user, order.pk)

    def test_missing_order_is_not_found(self, service, user):
        with pytest.raises(NotFoundException):
            service.get_user_order(user, 12345)


class TestStatusTransitions:

    @pytest.fixture
    def order(self, service, make_product):
        product = make_product(price="10.00", stock=10)
        return service.place_guest_order(GuestOrderRequest(
            full_name="Invitado", phone="1", email="g@example.com", address="x",
            items=[GuestLine(product_id=product.pk, quantity=1, unit_price=Decimal("10.00"))],
            total_amount=Decimal("10.00"),
        ))

    def test_happy_path(self, service, order):
        for status in ("PAID", "SHIPPED", "COMPLETED"):
            order = service.update_status(order.pk, status)
            assert order.status == status

    @pytest.mark.parametrize("path", [["CANCELLED"], ["PAID", "CANCELLED"]])
    def test_cancellation(self, service, order, path):
        for status in path:
            order = service.update_status(order.pk, status)
        assert order.status == OrderStatus.CANCELLED

    @pytest.mark.parametrize("path,illegal", [
        ([], "SHIPPED"),
        ([], "COMPLETED"),
        ([], "PENDING"),
        (["PAID", "SHIPPED"], "CANCELLED"),
        (["CANCELLED"], "PAID"),
    ])
    def test_illegal_moves_are_rejected(self, service, order, path, illegal):
        for status in path:
            service.update_status(order.pk, status)

        with pytest.raises(ValidationException):
            service.update_status(order.pk, illegal)

    def test_unknown_status(self, service, order):
        with pytest.raises(ValidationException):
            service.update_status(order.pk, "LOST")

    def test_unknown_order(self, service):
        with pytest.raises(NotFoundException):
            service.update_status(999, "PAID")

    def test_concurrent_change_is_detected(self, service, order, monkeypatch):
        stale = Order.objects.get(pk=order.pk)
        Order.objects.filter(pk=order.pk).update(status=OrderStatus.PAID)
        monkeypatch.setattr(OrderService, "get_order", lambda self, order_id: stale)

        with pytest.raises(ConflictException):
            service.update_status(order.pk, "CANCELLED")
