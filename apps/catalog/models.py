"""
Catalog Models - Categories and Products
Tables: categories, products
"""
from django.db import models

from apps.core.models import BaseModel, Status


class Category(BaseModel):
    """
    Product category shown in the storefront navigation.
    """
    name = models.CharField(max_length=120, unique=True)
    description = models.TextField(blank=True, null=True)
    image_url = models.URLField(max_length=500, blank=True, null=True)
    status = models.CharField(max_length=10, choices=Status.choices, default=Status.ACTIVE)

    class Meta:
        db_table = 'categories'
        verbose_name = 'Category'
        verbose_name_plural = 'Categories'
        ordering = ['name']

    def __str__(self):
        return self.name


class Product(BaseModel):
    """
    Product in the catalog.

    ``stock`` is only ever decremented through a conditional update
    (see ``apps.orders.services``), so it cannot drop below zero.
    """
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True, null=True)
    price = models.DecimalField(max_digits=10, decimal_places=2)
    stock = models.PositiveIntegerField(default=0)
    image_url = models.URLField(max_length=500, blank=True, null=True)
    category = models.ForeignKey(Category, on_delete=models.PROTECT, related_name='products')
    status = models.CharField(max_length=10, choices=Status.choices, default=Status.ACTIVE)

    class Meta:
        db_table = 'products'
        verbose_name = 'Product'
        verbose_name_plural = 'Products'

    def __str__(self):
        return f"{self.name} (${self.price})"

    @property
    def is_active(self) -> bool:
        return self.status == Status.ACTIVE
