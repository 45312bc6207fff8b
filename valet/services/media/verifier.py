"""
Link verifier - network existence checks for curated products.

All probes of one ``verify`` call share a single deadline. Products whose
probes fail, error or are still pending when the deadline passes are
dropped; the others are kept in their original order.
"""

import asyncio
import logging
from typing import List, Optional

import aiohttp

from valet.models import Product

logger = logging.getLogger(__name__)


class LinkVerifier:
    """Verify that product pages and media URLs resolve"""

    USER_AGENT = "Mozilla/5.0 (compatible; ValetLinkCheck/1.0)"

    def __init__(self, timeout: float = 5.0):
        self.timeout = timeout

    async def verify(self, products: List[Product]) -> List[Product]:
        """
        Keep products whose links answer a HEAD request.

        Args:
            products: Sanitized products

        Returns:
            Products whose page URL (and media URL, when present) resolved
        """
        if not products:
            return []

        async with aiohttp.ClientSession(headers={"User-Agent": self.USER_AGENT}) as session:
            tasks = [
                asyncio.create_task(self._check_product(session, product))
                for product in products
            ]
            done, pending = await asyncio.wait(tasks, timeout=self.timeout)

            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)
                logger.warning(
                    f"Link verification deadline of {self.timeout}s reached, "
                    f"{len(pending)} product(s) unverified"
                )

        verified = [
            product
            for product, task in zip(products, tasks)
            if task in done
            and not task.cancelled()
            and task.exception() is None
            and task.result()
        ]
        logger.info(f"{len(verified)} of {len(products)} products verified as accessible")
        return verified

    async def _check_product(self, session: aiohttp.ClientSession, product: Product) -> bool:
        urls = [product.url]
        if product.image_url:
            urls.append(product.image_url)

        results = await asyncio.gather(*(self._probe(session, url) for url in urls))
        return all(results)

    async def _probe(self, session: aiohttp.ClientSession, url: str) -> bool:
        """HEAD the URL following redirects; any error counts as a failure."""
        try:
            async with session.head(url, allow_redirects=True) as response:
                return 200 <= response.status < 400
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            logger.debug(f"Probe failed for {url}: {e}")
            return False


def build_verifier(enabled: bool, timeout: float) -> Optional[LinkVerifier]:
    """Return a verifier when link verification is enabled."""
    return LinkVerifier(timeout=timeout) if enabled else None
