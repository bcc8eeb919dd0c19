"""Product catalog services backed by Shopify or by canned demo data."""

import logging
from abc import ABC, abstractmethod
from typing import Optional

from .config import StorefrontConfig
from .formatting import format_price, format_product, short_id, to_product_gid
from .graphql_client import GraphQLClient
from .models import PageInfo, Product, ProductPage, Variant

logger = logging.getLogger(__name__)

MIN_SEARCH_LENGTH = 2

PRODUCT_CARD_FIELDS = """
    id
    title
    handle
    description
    availableForSale
    productType
    priceRange {
      minVariantPrice { amount currencyCode }
    }
    compareAtPriceRange {
      minVariantPrice { amount currencyCode }
    }
    featuredImage { url altText width height }
    tags
    vendor
"""

PRODUCT_DETAIL_FIELDS = PRODUCT_CARD_FIELDS + """
    descriptionHtml
    images(first: 10) {
      edges { node { url altText width height } }
    }
    variants(first: 25) {
      edges {
        node {
          id
          title
          sku
          availableForSale
          price { amount currencyCode }
          compareAtPrice { amount currencyCode }
          selectedOptions { name value }
        }
      }
    }
    options { name values }
"""

GET_PRODUCT_BY_ID = f"""
query GetProductById($id: ID!) {{
  product(id: $id) {{{PRODUCT_DETAIL_FIELDS}  }}
}}
"""

GET_PRODUCT_BY_HANDLE = f"""
query GetProductByHandle($handle: String!) {{
  product(handle: $handle) {{{PRODUCT_DETAIL_FIELDS}  }}
}}
"""

SEARCH_PRODUCTS = f"""
query SearchProducts($query: String!, $first: Int!) {{
  products(first: $first, query: $query) {{
    edges {{ node {{{PRODUCT_CARD_FIELDS}    }} }}
  }}
}}
"""

LIST_PRODUCTS = f"""
query ListProducts($first: Int!, $after: String, $query: String, $sortKey: ProductSortKeys, $reverse: Boolean) {{
  products(first: $first, after: $after, query: $query, sortKey: $sortKey, reverse: $reverse) {{
    edges {{ node {{{PRODUCT_CARD_FIELDS}    }} }}
    pageInfo {{ hasNextPage endCursor }}
  }}
}}
"""


class ProductService(ABC):
    """Read operations over the product catalog."""

    @abstractmethod
    def get_by_id(self, product_id: str) -> Optional[Product]:
        """Fetch a product by numeric ID or gid:// URI. Returns None if it doesn't exist."""

    @abstractmethod
    def get_by_handle(self, handle: str) -> Optional[Product]:
        """Fetch a product by handle. Returns None if it doesn't exist."""

    @abstractmethod
    def search(self, term: str, limit: int = 5) -> list[Product]:
        """Search products. Terms shorter than two characters return no results."""

    @abstractmethod
    def list_products(self, limit: int = 10, after: Optional[str] = None) -> ProductPage:
        """List one page of products, continuing after `after` when given."""

    @abstractmethod
    def get_featured(self, count: int = 3) -> list[Product]:
        """Products tagged as featured."""

    @abstractmethod
    def get_recent(self, count: int = 4) -> list[Product]:
        """Most recently created products."""

    def close(self) -> None:
        pass


class ShopifyProductService(ProductService):
    """Product service querying the Shopify GraphQL API."""

    def __init__(self, client: GraphQLClient, config: StorefrontConfig) -> None:
        self.client = client
        self.config = config

    def _format(self, node: dict) -> Product:
        return format_product(node, locale=self.config.locale)

    def _format_edges(self, data: dict) -> list[Product]:
        connection = data.get("products") or {}
        return [self._format(edge["node"]) for edge in connection.get("edges") or []]

    def _format_page(self, data: dict) -> ProductPage:
        page_info = (data.get("products") or {}).get("pageInfo") or {}
        return ProductPage(
            products=self._format_edges(data),
            page_info=PageInfo(
                has_next_page=bool(page_info.get("hasNextPage")),
                end_cursor=page_info.get("endCursor"),
            ),
        )

    def get_by_id(self, product_id: str) -> Optional[Product]:
        gid = to_product_gid(product_id)
        data = self.client.execute(GET_PRODUCT_BY_ID, {"id": gid})
        node = data.get("product")
        if not node:
            logger.info(f"Product not found: {gid}")
            return None
        return self._format(node)

    def get_by_handle(self, handle: str) -> Optional[Product]:
        if not handle:
            return None
        data = self.client.execute(GET_PRODUCT_BY_HANDLE, {"handle": handle})
        node = data.get("product")
        if not node:
            logger.info(f"Product not found for handle: {handle}")
            return None
        return self._format(node)

    def search(self, term: str, limit: int = 5) -> list[Product]:
        term = (term or "").strip()
        if len(term) < MIN_SEARCH_LENGTH:
            return []
        data = self.client.execute(SEARCH_PRODUCTS, {"query": term, "first": limit})
        return self._format_edges(data)

    def list_products(self, limit: int = 10, after: Optional[str] = None) -> ProductPage:
        data = self.client.execute(LIST_PRODUCTS, {"first": limit, "after": after})
        return self._format_page(data)

    def get_featured(self, count: int = 3) -> list[Product]:
        data = self.client.execute(LIST_PRODUCTS, {"first": count, "query": "tag:featured"})
        return self._format_edges(data)

    def get_recent(self, count: int = 4) -> list[Product]:
        data = self.client.execute(
            LIST_PRODUCTS, {"first": count, "sortKey": "CREATED_AT", "reverse": True}
        )
        return self._format_edges(data)

    def close(self) -> None:
        self.client.close()


DEMO_CATALOG_SIZE = 12
DEMO_IMAGE = "https://via.placeholder.com/500x500.png?text=Demo+Product"


def build_demo_product(product_id: str = "12345678", locale: str = "en_US") -> Product:
    """Canned product served when Shopify credentials are not configured."""
    return Product(
        id=short_id(product_id),
        title="Demo Product",
        handle="demo-product",
        description=(
            "This is a demo product that appears when Shopify credentials aren't configured. "
            "Set SHOPIFY_DOMAIN and SHOPIFY_ACCESS_TOKEN to see real products."
        ),
        price="99.99",
        compare_at_price="129.99",
        currency_code="USD",
        formatted_price=format_price("99.99", "USD", locale),
        formatted_compare_at_price=format_price("129.99", "USD", locale),
        available=True,
        image=DEMO_IMAGE,
        image_alt="Demo Product",
        images=[
            DEMO_IMAGE,
            "https://via.placeholder.com/500x500.png?text=Demo+Product+2",
            "https://via.placeholder.com/500x500.png?text=Demo+Product+3",
        ],
        variants=[
            Variant(
                id="1",
                title="Default",
                price="99.99",
                compare_at_price="129.99",
                available=True,
                sku="DEMO-SKU",
            )
        ],
        tags=["demo", "featured"],
        vendor="Demo Vendor",
        product_type="Demo",
        is_featured=True,
    )


class DemoProductService(ProductService):
    """Product service returning mock data, for running without Shopify credentials."""

    def __init__(self, locale: str = "en_US") -> None:
        self.locale = locale

    def _demo(self, product_id: str = "12345678") -> Product:
        return build_demo_product(product_id, self.locale)

    def get_by_id(self, product_id: str) -> Optional[Product]:
        if not product_id:
            return None
        return self._demo(product_id)

    def get_by_handle(self, handle: str) -> Optional[Product]:
        if handle != "demo-product":
            return None
        return self._demo()

    def search(self, term: str, limit: int = 5) -> list[Product]:
        term = (term or "").strip()
        if len(term) < MIN_SEARCH_LENGTH:
            return []
        product = self._demo()
        haystack = f"{product.title} {product.description} {' '.join(product.tags)}".lower()
        return [product][:limit] if term.lower() in haystack else []

    def list_products(self, limit: int = 10, after: Optional[str] = None) -> ProductPage:
        # Cursors are the offset of the next product; unknown cursors restart at 0
        start = int(after) if after and after.isdigit() else 0
        end = min(start + limit, DEMO_CATALOG_SIZE)
        return ProductPage(
            products=[self._demo(str(i + 1)) for i in range(start, end)],
            page_info=PageInfo(
                has_next_page=end < DEMO_CATALOG_SIZE,
                end_cursor=str(end) if end > start else None,
            ),
        )

    def get_featured(self, count: int = 3) -> list[Product]:
        return self.list_products(limit=count).products

    def get_recent(self, count: int = 4) -> list[Product]:
        return self.list_products(limit=count).products


def create_product_service(config: StorefrontConfig) -> ProductService:
    """Pick the Shopify-backed or demo service once, at startup."""
    config.log_status()
    if not config.is_configured:
        return DemoProductService(locale=config.locale)
    return ShopifyProductService(GraphQLClient(config), config)
