"""
Tolerant parser for curation model output.

Parsing runs in two phases: a strict JSON parse of the (fence-stripped) text,
then a brace-matched extraction of the first balanced JSON object embedded in
surrounding prose. Reaching the second phase means the model drifted from
the prompt and is logged as such.
"""

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, List, Optional, Tuple

from pydantic import ValidationError

from valet.error_handling import CurationParseError
from valet.models import Product

logger = logging.getLogger(__name__)


@dataclass
class CurationOutput:
    """Parsed curation response"""
    products: List[Product] = field(default_factory=list)
    description: Optional[str] = None
    used_fallback: bool = False


def strip_code_fences(text: str) -> str:
    """Remove a surrounding ```json ... ``` fence if present."""
    cleaned = re.sub(r"^```(?:json)?\s*\n?", "", text.strip())
    return re.sub(r"\n?```\s*$", "", cleaned)


def extract_json_object(text: str) -> Optional[str]:
    """
    Return the first balanced ``{...}`` block in text.

    Braces inside JSON strings are ignored. Returns None when no balanced
    block exists.
    """
    start = text.find("{")
    while start != -1:
        depth = 0
        in_string = False
        escaped = False

        for index in range(start, len(text)):
            char = text[index]
            if in_string:
                if escaped:
                    escaped = False
                elif char == "\\":
                    escaped = True
                elif char == '"':
                    in_string = False
            elif char == '"':
                in_string = True
            elif char == "{":
                depth += 1
            elif char == "}":
                depth -= 1
                if depth == 0:
                    candidate = text[start:index + 1]
                    try:
                        json.loads(candidate)
                        return candidate
                    except json.JSONDecodeError:
                        break

        start = text.find("{", start + 1)

    return None


def load_json_tolerant(text: Optional[str]) -> Tuple[Any, bool]:
    """
    Parse JSON strictly, then fall back to the first embedded object.

    Returns:
        Tuple of (parsed value, whether the fallback was used)

    Raises:
        CurationParseError: If neither phase yields JSON
    """
    if not text or not text.strip():
        raise CurationParseError("Empty response from curation model")

    cleaned = strip_code_fences(text)
    try:
        return json.loads(cleaned), False
    except json.JSONDecodeError as e:
        strict_error = e

    embedded = extract_json_object(text)
    if embedded is None:
        raise CurationParseError(f"Curation output is not JSON: {strict_error}")

    logger.warning(
        "Curation output was not pure JSON; recovered an embedded object "
        f"({len(embedded)} of {len(text)} chars). Check the curation prompt."
    )
    return json.loads(embedded), True


def parse_curation_output(text: Optional[str]) -> CurationOutput:
    """
    Parse model output into products.

    Raises:
        CurationParseError: If the output is not JSON, not an object, or has
            no ``products`` array
    """
    data, used_fallback = load_json_tolerant(text)

    if not isinstance(data, dict):
        raise CurationParseError("Curation output is not a JSON object")

    raw_products = data.get("products")
    if not isinstance(raw_products, list):
        raise CurationParseError("Curation output has no products array")

    products = []
    for index, raw in enumerate(raw_products):
        if not isinstance(raw, dict):
            logger.warning(f"Skipping non-object product entry at position {index}")
            continue

        if raw.get("id") in (None, ""):
            raw = {**raw, "id": str(index + 1)}

        try:
            products.append(Product.model_validate(raw))
        except ValidationError as e:
            logger.warning(f"Skipping invalid product entry at position {index}: {e.error_count()} error(s)")

    description = data.get("description")
    return CurationOutput(
        products=products,
        description=description if isinstance(description, str) else None,
        used_fallback=used_fallback
    )
