"""
Image store gateway.

Product and category pictures live in a remote object store (Cloudinary).
The store hands back a delivery URL and an opaque public id per upload.
"""
import logging
from dataclasses import dataclass
from typing import Callable, Optional

import cloudinary
import cloudinary.uploader
from django.utils.module_loading import import_string

from apps.core.config import StoreConfig
from apps.core.exceptions import UpstreamServiceException, ValidationException

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UploadedImage:
    url: str
    public_id: str


@dataclass(frozen=True)
class ImageReplacement:
    """
    Outcome of uploading a new image and retiring the previous one.

    The upload is authoritative; deletion of the previous image is best effort
    and its result is reported here for the caller to log.
    """
    url: str
    public_id: str
    previous_url: Optional[str] = None
    previous_deleted: bool = False
    previous_error: Optional[str] = None


def extract_public_id(url: str) -> str:
    """
    Derive the public id from a delivery URL such as
    ``https://res.cloudinary.com/<cloud>/image/upload/v1712/gazel/products/abc.jpg``
    which yields ``gazel/products/abc``.
    """
    parts = url.split('/')
    if 'upload' not in parts:
        raise ValueError(f"Not an image store URL: {url}")

    path = parts[parts.index('upload') + 1:]
    if path and path[0].startswith('v') and path[0][1:].isdigit():
        path = path[1:]
    if not path:
        raise ValueError(f"Not an image store URL: {url}")

    full_path = '/'.join(path)
    stem, dot, _ = full_path.rpartition('.')
    return stem if dot else full_path


def validate_image(image, config: StoreConfig) -> None:
    """
    Reject anything that is not a JPEG/PNG/WEBP upload within the size limit.
    """
    if image is None:
        raise ValidationException("No file was provided", field="image")

    content_type = getattr(image, 'content_type', None)
    if content_type not in config.image_mime_types:
        raise ValidationException(
            "Invalid file type. Allowed: JPEG, JPG, PNG, WEBP",
            field="image"
        )

    if image.size > config.image_max_bytes:
        raise ValidationException(
            f"File is too large. Maximum size: {config.image_max_size_mb}MB",
            field="image"
        )


class ImageStore:
    """
    Interface for the remote image host.
    """

    def __init__(self, config: StoreConfig):
        self.config = config

    def upload(self, image, folder: Optional[str] = None) -> UploadedImage:
        raise NotImplementedError

    def delete(self, public_id: str) -> None:
        raise NotImplementedError

    def replace(self, image, previous_url: Optional[str], persist: Callable[[str], None],
                folder: Optional[str] = None) -> ImageReplacement:
        """
        Upload ``image``, hand its URL to ``persist`` (which writes the owning
        row), and only then try to delete ``previous_url``.

        If ``persist`` raises, the previous image is left untouched and the
        error propagates. Deletion failures are captured in the result, never
        raised.
        """
        uploaded = self.upload(image, folder)
        persist(uploaded.url)
        if not previous_url:
            return ImageReplacement(url=uploaded.url, public_id=uploaded.public_id)

        try:
            self.delete(extract_public_id(previous_url))
        except Exception as e:
            return ImageReplacement(
                url=uploaded.url,
                public_id=uploaded.public_id,
                previous_url=previous_url,
                previous_deleted=False,
                previous_error=str(e),
            )

        return ImageReplacement(
            url=uploaded.url,
            public_id=uploaded.public_id,
            previous_url=previous_url,
            previous_deleted=True,
        )

    def _folder(self, folder: Optional[str]) -> str:
        base = self.config.image_folder
        return f"{base}/{folder}" if folder else base


class CloudinaryImageStore(ImageStore):
    """
    Image store backed by the Cloudinary SDK.
    """
    name = "Cloudinary"

    def __init__(self, config: StoreConfig):
        super().__init__(config)
        cloudinary.config(
            cloud_name=config.cloudinary_cloud_name,
            api_key=config.cloudinary_api_key,
            api_secret=config.cloudinary_api_secret,
            secure=True,
        )

    def upload(self, image, folder: Optional[str] = None) -> UploadedImage:
        target = self._folder(folder)
        try:
            result = cloudinary.uploader.upload(
                image,
                folder=target,
                resource_type='image',
                transformation=[
                    {'width': 1000, 'height': 1000, 'crop': 'limit'},
                    {'quality': 'auto'},
                    {'fetch_format': 'auto'},
                ],
            )
        except Exception as e:
            logger.error(f"Image upload to {target} failed: {e}")
            raise UpstreamServiceException(self.name, "image upload failed")

        logger.info(f"Uploaded image {result['public_id']}")
        return UploadedImage(url=result['secure_url'], public_id=result['public_id'])

    def delete(self, public_id: str) -> None:
        try:
            result = cloudinary.uploader.destroy(public_id)
        except Exception as e:
            raise UpstreamServiceException(self.name, f"could not delete {public_id}: {e}")
        if result.get('result') not in ('ok', 'not found'):
            raise UpstreamServiceException(self.name, f"could not delete {public_id}: {result}")


def build_image_store(config: StoreConfig) -> ImageStore:
    """Instantiate the image store backend named by the configuration."""
    store_class = import_string(config.image_backend)
    return store_class(config)
