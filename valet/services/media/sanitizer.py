"""
Product sanitizer - local trust checks on curated products.
"""

import logging
from typing import List

from valet.models import Product
from .validator import is_blocked_host, is_good_media_url, is_http_url, is_same_site

logger = logging.getLogger(__name__)


def _has_trusted_image(product: Product) -> bool:
    image_url = product.image_url
    return is_good_media_url(image_url) and (not image_url or is_same_site(product.url, image_url))


def sanitize_products(products: List[Product]) -> List[Product]:
    """
    Keep only products with a trusted page URL and a trusted image.

    Untrusted or cross-site images are removed first; a product left without
    an image is then dropped along with any product whose URL is not http(s)
    or sits on a blocked host.

    Args:
        products: Curated products

    Returns:
        Sanitized products, in input order
    """
    cleaned = []

    for product in products:
        if product.image_url and not _has_trusted_image(product):
            product = product.model_copy(update={"image_url": None})

        if not product.image_url:
            logger.debug(f"Dropping product without trusted image: {product.url}")
            continue
        if not is_http_url(product.url) or is_blocked_host(product.url):
            logger.debug(f"Dropping product with untrusted URL: {product.url}")
            continue

        cleaned.append(product)

    if len(cleaned) < len(products):
        logger.info(f"Sanitizer kept {len(cleaned)} of {len(products)} products")

    return cleaned
