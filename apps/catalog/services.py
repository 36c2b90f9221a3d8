"""
Catalog service: category and product CRUD with optional image attachment.
"""
import logging
from dataclasses import dataclass, fields
from decimal import Decimal
from typing import List, Optional

from django.db import IntegrityError, transaction
from django.db.models import ProtectedError, Q

from apps.core.config import StoreConfig
from apps.core.exceptions import ConflictException, NotFoundException
from apps.core.models import Status
from .images import ImageReplacement, ImageStore, extract_public_id, validate_image
from .models import Category, Product

logger = logging.getLogger(__name__)


# Unset fields stay ``None`` and are left untouched by updates.

@dataclass(frozen=True)
class CategoryCreate:
    name: str
    description: Optional[str] = None
    image_url: Optional[str] = None
    status: str = Status.ACTIVE


@dataclass(frozen=True)
class CategoryUpdate:
    name: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = None
    status: Optional[str] = None


@dataclass(frozen=True)
class ProductCreate:
    name: str
    price: Decimal
    category_id: int
    description: Optional[str] = None
    stock: int = 0
    image_url: Optional[str] = None
    status: str = Status.ACTIVE


@dataclass(frozen=True)
class ProductUpdate:
    name: Optional[str] = None
    description: Optional[str] = None
    price: Optional[Decimal] = None
    stock: Optional[int] = None
    image_url: Optional[str] = None
    category_id: Optional[int] = None
    status: Optional[str] = None


@dataclass(frozen=True)
class ProductFilter:
    category_id: Optional[int] = None
    search: Optional[str] = None
    status: Optional[str] = None


def _provided(update) -> dict:
    return {f.name: getattr(update, f.name) for f in fields(update) if getattr(update, f.name) is not None}


class CatalogService:
    """
    Categories and products. New images are pushed to the image store before the
    row is written; the previous image is deleted only once the row is saved.
    """
    CATEGORY_FOLDER = "categories"
    PRODUCT_FOLDER = "products"

    def __init__(self, config: StoreConfig, image_store: ImageStore):
        self.config = config
        self.image_store = image_store

    # ------------------------------------------------------------------
    # Categories
    # ------------------------------------------------------------------

    def list_categories(self) -> List[Category]:
        return list(Category.objects.order_by('name'))

    def get_category(self, category_id: int) -> Category:
        try:
            return Category.objects.get(pk=category_id)
        except Category.DoesNotExist:
            raise NotFoundException("Category", category_id)

    def create_category(self, data: CategoryCreate, image=None) -> Category:
        self._check_category_name(data.name)
        category = self._create(Category(), _provided(data), image, self.CATEGORY_FOLDER)
        logger.info(f"Created category {category.pk} '{category.name}'")
        return category

    def update_category(self, category_id: int, data: CategoryUpdate, image=None) -> Category:
        category = self.get_category(category_id)
        if data.name is not None:
            self._check_category_name(data.name, exclude=category.pk)

        self._update(category, _provided(data), image, self.CATEGORY_FOLDER)
        return category

    def delete_category(self, category_id: int) -> None:
        category = self.get_category(category_id)
        image_url = category.image_url
        try:
            category.delete()
        except ProtectedError:
            raise ConflictException("Category still has products assigned")
        self._discard(image_url)
        logger.info(f"Deleted category {category_id}")

    # ------------------------------------------------------------------
    # Products
    # ------------------------------------------------------------------

    def list_products(self, filters: Optional[ProductFilter] = None) -> List[Product]:
        queryset = Product.objects.select_related('category')
        filters = filters or ProductFilter()

        if filters.category_id:
            queryset = queryset.filter(category_id=filters.category_id)
        if filters.status:
            queryset = queryset.filter(status=filters.status)
        if filters.search:
            queryset = queryset.filter(
                Q(name__icontains=filters.search) | Q(description__icontains=filters.search)
            )

        return list(queryset.order_by('-created_at', '-pk'))

    def get_product(self, product_id: int) -> Product:
        try:
            return Product.objects.select_related('category').get(pk=product_id)
        except Product.DoesNotExist:
            raise NotFoundException("Product", product_id)

    def products_by_category(self, category_id: int) -> List[Product]:
        return list(
            Product.objects.select_related('category')
            .filter(category_id=category_id, status=Status.ACTIVE)
            .order_by('name')
        )

    def create_product(self, data: ProductCreate, image=None) -> Product:
        self.get_category(data.category_id)

        product = self._create(Product(), _provided(data), image, self.PRODUCT_FOLDER)
        logger.info(f"Created product {product.pk} '{product.name}' stock={product.stock}")
        return product

    def update_product(self, product_id: int, data: ProductUpdate, image=None) -> Product:
        product = self.get_product(product_id)
        if data.category_id is not None:
            self.get_category(data.category_id)

        self._update(product, _provided(data), image, self.PRODUCT_FOLDER)
        return self.get_product(product_id)

    def delete_product(self, product_id: int) -> None:
        product = self.get_product(product_id)
        image_url = product.image_url
        try:
            product.delete()
        except ProtectedError:
            raise ConflictException("Product is referenced by existing orders")
        self._discard(image_url)
        logger.info(f"Deleted product {product_id}")

    # ------------------------------------------------------------------
    # Persistence and images
    # ------------------------------------------------------------------

    def _check_category_name(self, name: str, exclude: Optional[int] = None) -> None:
        taken = Category.objects.filter(name=name)
        if exclude is not None:
            taken = taken.exclude(pk=exclude)
        if taken.exists():
            raise ConflictException(f"Category '{name}' already exists")

    def _write(self, instance, values: dict) -> None:
        for name, value in values.items():
            setattr(instance, name, value)
        try:
            with transaction.atomic():
                instance.save()
        except IntegrityError:
            # Lost a race on a unique column
            raise ConflictException(f"{instance._meta.verbose_name.capitalize()} conflicts with an existing record")

    def _create(self, instance, values: dict, image, folder: str):
        """Upload first; an upload whose row never lands is discarded."""
        if image is None:
            self._write(instance, values)
            return instance

        url = self._upload(image, folder)
        try:
            self._write(instance, dict(values, image_url=url))
        except Exception:
            self._discard(url)
            raise
        return instance

    def _update(self, instance, values: dict, image, folder: str) -> None:
        """The previous image is only retired after the row points at the new one."""
        if image is None:
            self._write(instance, values)
            return

        validate_image(image, self.config)
        result = self.image_store.replace(
            image,
            instance.image_url,
            lambda url: self._write(instance, dict(values, image_url=url)),
            folder,
        )
        self._log_replacement(result)

    def _upload(self, image, folder: str) -> str:
        validate_image(image, self.config)
        return self.image_store.upload(image, folder).url

    def _log_replacement(self, result: ImageReplacement) -> None:
        if result.previous_url is None:
            return
        if result.previous_deleted:
            logger.info(f"Removed previous image {result.previous_url}")
        else:
            logger.warning(
                f"Previous image {result.previous_url} left in place: {result.previous_error}"
            )

    def _discard(self, image_url: Optional[str]) -> None:
        """Best-effort removal of an image whose owner row is gone."""
        if not image_url:
            return
        try:
            self.image_store.delete(extract_public_id(image_url))
        except Exception as e:
            logger.warning(f"Could not delete image {image_url}: {e}")
