"""
Curation prompts

These prompts instruct the model to turn raw search candidates into a
strict JSON product list.
"""

import json
from typing import List

from valet.models import MAX_PRODUCTS, SearchCandidate


def build_system_prompt(max_products: int = MAX_PRODUCTS) -> str:
    """Build the system prompt for product curation."""

    return f"""You are a product curation expert. From the provided search results, extract and format the TOP {max_products} most relevant products for purchase.

SEARCH RESULT TYPES:
- Shopping results: Direct product listings with prices and images
- Organic results: General web pages that may contain product information

OUTPUT FORMAT:
Return ONLY a single JSON object, no markdown and no explanation:
{{"description": string, "products": [{{"id": string, "name": string, "price": number, "currency": string, "url": string, "source": string, "imageUrl": string, "snippet": string}}]}}

STRICT REQUIREMENTS:
- At most {max_products} products, best first
- "description" is one short sentence summarizing the selection, in the user's language
- For shopping results: use the provided price, title and thumbnail
- For organic results: extract product info from the title, snippet and any price mentions
- Price must be numeric: strip currency symbols and thousands separators ("$1,299.99" -> 1299.99, "49,90 €" -> 49.9, "€50" -> 50)
- If no price is found, set "price" to null
- Currency must be an ISO code (USD, EUR, GBP, MAD, ...)
- Keep snippets under 150 characters
- Source must be the bare domain name of the product page (e.g. "amazon.com", "ebay.fr"), never a marketplace label or a full URL
- "imageUrl" must be a direct image URL hosted on the same site as "url"; omit it rather than guessing
- Never invent URLs: every "url" must come from the search results

QUALITY FILTERS:
- Prioritize results with clear product names and prices
- Ensure URLs lead to actual product pages, not search or category pages
- Prefer results with images when available"""


def build_user_prompt(
    query: str,
    country: str,
    engine: str,
    candidates: List[SearchCandidate],
    max_products: int = MAX_PRODUCTS
) -> str:
    """Build the user message carrying the normalized search results."""

    kind = "shopping" if engine == "google_shopping" else "organic"
    results = json.dumps(
        [c.model_dump(exclude_none=True) for c in candidates],
        indent=2,
        ensure_ascii=False
    )

    return f"""Query: "{query}"
Country: {country}
Search Engine: {engine}

Search Results:
{results}

Extract and format the best {max_products} products from these {kind} results."""
