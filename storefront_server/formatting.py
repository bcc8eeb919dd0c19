"""Turn Shopify GraphQL nodes into flat storefront models."""

from decimal import Decimal, InvalidOperation
from typing import Any, Optional, Union

from babel.numbers import format_currency

from .models import Product, Variant

PRODUCT_GID_PREFIX = "gid://shopify/Product/"
PLACEHOLDER_IMAGE = "/placeholder-product.png"

Amount = Union[int, float, str, Decimal]


def to_decimal(amount: Amount) -> Decimal:
    """Parse a price amount, accepting decimal strings."""
    if isinstance(amount, Decimal):
        return amount
    try:
        return Decimal(str(amount).strip())
    except InvalidOperation as e:
        raise ValueError(f"Invalid price amount: {amount!r}") from e


def format_price(amount: Amount, currency_code: str = "USD", locale: str = "en_US") -> str:
    """
    Format a price with its currency symbol.

    Args:
        amount: The price amount (number or decimal string)
        currency_code: ISO currency code (e.g. USD)
        locale: Locale used for symbol placement and separators

    Returns:
        Formatted price string, e.g. "$10.50"
    """
    return format_currency(to_decimal(amount), currency_code, locale=locale)


def short_id(gid: Optional[str]) -> str:
    """Return the trailing path segment of a Shopify global ID."""
    if not gid:
        return ""
    return gid.rstrip("/").split("/")[-1]


def to_product_gid(product_id: str) -> str:
    """Normalize a numeric product ID to its gid:// form."""
    if product_id.startswith("gid://"):
        return product_id
    return f"{PRODUCT_GID_PREFIX}{product_id}"


def _nodes(connection: Any) -> list[dict]:
    """Accept either a connection object or its edges list."""
    if isinstance(connection, dict):
        connection = connection.get("edges") or []
    return [edge["node"] for edge in connection or [] if edge and edge.get("node")]


def flatten_images(edges: Any) -> list[str]:
    """Extract image URLs from image edges, keeping their order."""
    return [node["url"] for node in _nodes(edges) if node.get("url")]


def _money_amount(value: Any) -> Optional[str]:
    # Storefront API returns MoneyV2 objects, Admin API returns plain strings
    if value is None:
        return None
    if isinstance(value, dict):
        return value.get("amount")
    return str(value)


def flatten_variants(edges: Any) -> list[Variant]:
    """Convert variant edges to Variant models."""
    variants = []
    for node in _nodes(edges):
        options = {
            option["name"]: option["value"]
            for option in node.get("selectedOptions") or []
        }
        variants.append(
            Variant(
                id=short_id(node.get("id")),
                title=node.get("title", ""),
                price=_money_amount(node.get("price")) or "0",
                compare_at_price=_money_amount(node.get("compareAtPrice")),
                available=node.get("availableForSale", True),
                sku=node.get("sku") or None,
                options=options,
            )
        )
    return variants


def _min_variant_price(node: dict, field: str) -> Optional[dict]:
    price_range = node.get(field) or {}
    return price_range.get("minVariantPrice")


def compute_compare_at_price(node: dict) -> Optional[str]:
    """Return the compare-at amount only if it is greater than the price."""
    price = _min_variant_price(node, "priceRange")
    compare_at = _min_variant_price(node, "compareAtPriceRange")
    if not price or not compare_at or compare_at.get("amount") is None:
        return None

    if to_decimal(compare_at["amount"]) > to_decimal(price["amount"]):
        return compare_at["amount"]
    return None


def format_product(node: dict, locale: str = "en_US") -> Product:
    """Convert a raw GraphQL product node into a Product."""
    price = _min_variant_price(node, "priceRange") or {"amount": "0", "currencyCode": "USD"}
    currency_code = price.get("currencyCode") or "USD"
    compare_at_price = compute_compare_at_price(node)

    images = flatten_images(node.get("images"))
    featured = node.get("featuredImage") or {}
    image = featured.get("url") or (images[0] if images else PLACEHOLDER_IMAGE)

    options = {
        option["name"]: list(option.get("values") or [])
        for option in node.get("options") or []
    }
    tags = node.get("tags") or []

    return Product(
        id=short_id(node.get("id")),
        gid=node.get("id"),
        title=node.get("title", ""),
        handle=node.get("handle", ""),
        description=node.get("description"),
        description_html=node.get("descriptionHtml"),
        price=price["amount"],
        compare_at_price=compare_at_price,
        currency_code=currency_code,
        formatted_price=format_price(price["amount"], currency_code, locale),
        formatted_compare_at_price=(
            format_price(compare_at_price, currency_code, locale) if compare_at_price else None
        ),
        available=node.get("availableForSale", True),
        image=image,
        image_alt=featured.get("altText") or node.get("title"),
        images=images,
        variants=flatten_variants(node.get("variants")),
        options=options,
        tags=tags,
        vendor=node.get("vendor"),
        product_type=node.get("productType"),
        is_featured="featured" in tags,
    )
