"""
Synthetic Data Generator for the Gazel storefront

Seeds an administrator, demo customers, categories, products and a handful
of orders. Orders go through OrderService so stock is reconciled exactly as
a real checkout would.

Run: python scripts/generate_data.py
"""
import os
import sys
import random
from decimal import Decimal

# Add the project root to the path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# Setup Django
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings')

import django
django.setup()

from faker import Faker
from apps.accounts.models import Role, User
from apps.cart.models import Cart, CartItem
from apps.catalog.models import Category, Product
from apps.core.config import get_store_config
from apps.core.exceptions import StorefrontException
from apps.orders.models import Order, OrderItem, Payment, PaymentMethod, ShippingInfo, ShippingMethod
from apps.orders.services import GuestLine, GuestOrderRequest, OrderRequest, OrderService, ShippingDetails

fake = Faker()

ADMIN_EMAIL = os.getenv('SEED_ADMIN_EMAIL', 'admin@gazel.local')
ADMIN_PASSWORD = os.getenv('SEED_ADMIN_PASSWORD', 'admin123')
DEMO_PASSWORD = 'demo1234'

CATEGORY_TEMPLATES = {
    'Collares': [('Collar de plata', 15000, 45000), ('Gargantilla', 9000, 25000)],
    'Anillos': [('Anillo de compromiso', 80000, 250000), ('Anillo ajustable', 6000, 18000)],
    'Aretes': [('Aretes de perla', 12000, 38000), ('Argollas', 7000, 22000)],
    'Pulseras': [('Pulsera tejida', 4000, 12000), ('Esclava de acero', 9000, 30000)],
    'Relojes': [('Reloj clásico', 35000, 120000), ('Reloj deportivo', 25000, 90000)],
}


def generate_users(count=10):
    """Generate the administrator and dummy customers."""
    print(f"Generating administrator and {count} customers...")

    admin = User(email=ADMIN_EMAIL, full_name='Store Admin', role=Role.ADMIN)
    admin.set_password(ADMIN_PASSWORD)
    admin.save()

    users = []
    for _ in range(count):
        user = User(
            email=fake.unique.email(),
            full_name=fake.name(),
            phone=fake.phone_number()[:30],
        )
        user.set_password(DEMO_PASSWORD)
        user.save()
        users.append(user)

    print(f"Created {len(users)} customers (password: {DEMO_PASSWORD})")
    return admin, users


def generate_catalog(products_per_template=3):
    """Generate categories and products."""
    print("Generating categories and products...")
    categories, products = [], []

    for category_name, templates in CATEGORY_TEMPLATES.items():
        category = Category.objects.create(
            name=category_name,
            description=fake.sentence(nb_words=10),
        )
        categories.append(category)

        for name_base, min_price, max_price in templates:
            for _ in range(products_per_template):
                variation = random.choice(['Oro', 'Plata', 'Rosé', 'Clásico', ''])
                products.append(Product.objects.create(
                    name=f"{name_base} {variation}".strip(),
                    description=fake.paragraph(nb_sentences=2),
                    price=Decimal(random.randrange(min_price, max_price, 500)),
                    stock=random.randint(0, 40),
                    category=category,
                ))

    print(f"Created {len(categories)} categories and {len(products)} products")
    return categories, products


def _pick_lines(products, max_lines=3):
    in_stock = [p for p in products if p.stock > 0]
    chosen = random.sample(in_stock, k=min(len(in_stock), random.randint(1, max_lines)))
    return [(p, random.randint(1, min(3, p.stock))) for p in chosen]


def generate_orders(users, products, count=20):
    """Place a mix of customer and guest orders."""
    print(f"Generating {count} orders...")
    service = OrderService(get_store_config())
    orders = []

    for _ in range(count):
        for product in products:
            product.refresh_from_db(fields=['stock'])
        lines = _pick_lines(products)
        if not lines:
            break
        total = sum(p.price * q for p, q in lines)

        try:
            if random.random() < 0.3:
                order = service.place_guest_order(GuestOrderRequest(
                    full_name=fake.name(),
                    phone=fake.phone_number()[:30],
                    email=fake.email(),
                    address=fake.address(),
                    items=[GuestLine(product_id=p.pk, quantity=q, unit_price=p.price) for p, q in lines],
                    total_amount=total,
                ))
            else:
                user = random.choice(users)
                cart, _ = Cart.objects.get_or_create(user=user, status='OPEN')
                cart.items.all().delete()
                for product, quantity in lines:
                    CartItem.objects.create(cart=cart, product=product, quantity=quantity, unit_price=product.price)
                order = service.place_order(user, OrderRequest(
                    cart_id=cart.pk,
                    shipping=ShippingDetails(
                        full_name=user.full_name,
                        phone=user.phone or fake.phone_number()[:30],
                        email=user.email,
                        province=fake.state(),
                        canton=fake.city(),
                        district=fake.city_suffix(),
                        address_details=fake.street_address(),
                        shipping_method=random.choice(ShippingMethod.values),
                    ),
                    payment_method=random.choice(PaymentMethod.values[:4]),
                    total_amount=total,
                ))
        except StorefrontException as e:
            print(f"  skipped order: {e.message}")
            continue
        orders.append(order)

    print(f"Created {len(orders)} orders")
    return orders


def clear_all_data():
    """Clear all existing data."""
    print("Clearing existing data...")

    Payment.objects.all().delete()
    ShippingInfo.objects.all().delete()
    OrderItem.objects.all().delete()
    Order.objects.all().delete()
    CartItem.objects.all().delete()
    Cart.objects.all().delete()
    Product.objects.all().delete()
    Category.objects.all().delete()
    User.objects.all().delete()

    print("All data cleared")


def main():
    """Main function to generate all data."""
    print("\n" + "="*60)
    print("Gazel Storefront Data Generator")
    print("="*60 + "\n")

    # Clear existing data
    clear_all_data()

    # Generate data in order of dependencies
    admin, users = generate_users(10)
    categories, products = generate_catalog()
    orders = generate_orders(users, products, 20)

    print("\n" + "="*60)
    print("Data Generation Complete!")
    print("="*60)
    print(f"\nSummary:")
    print(f"  - Admin: {admin.email} / {ADMIN_PASSWORD}")
    print(f"  - Customers: {len(users)}")
    print(f"  - Categories: {len(categories)}")
    print(f"  - Products: {len(products)}")
    print(f"  - Orders: {len(orders)}")
    print()


if __name__ == '__main__':
    main()
