"""Data models for storefront entities."""

from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field


class Variant(BaseModel):
    """Represents a purchasable variant of a product."""

    id: str = Field(description="Short variant ID")
    title: str = Field(description="Variant title")
    price: str = Field(description="Variant price as a decimal string")
    compare_at_price: Optional[str] = Field(None, description="Original price if discounted")
    available: bool = Field(default=True, description="Variant availability")
    sku: Optional[str] = Field(None, description="Stock keeping unit")
    options: dict[str, str] = Field(default_factory=dict, description="Option name to selected value")


class Product(BaseModel):
    """Represents a product from the Shopify catalog."""

    id: str = Field(description="Short product ID")
    gid: Optional[str] = Field(None, description="Full Shopify global ID")
    title: str = Field(description="Product title")
    handle: str = Field(description="URL slug")
    description: Optional[str] = Field(None, description="Plain text description")
    description_html: Optional[str] = Field(None, description="Rich text description")
    price: str = Field(description="Minimum variant price as a decimal string")
    compare_at_price: Optional[str] = Field(None, description="Compare-at price if greater than price")
    currency_code: str = Field(default="USD", description="ISO currency code")
    formatted_price: Optional[str] = Field(None, description="Price formatted for display")
    formatted_compare_at_price: Optional[str] = Field(None, description="Compare-at price formatted for display")
    available: bool = Field(default=True, description="Product availability")
    image: Optional[str] = Field(None, description="Primary image URL")
    image_alt: Optional[str] = Field(None, description="Primary image alt text")
    images: list[str] = Field(default_factory=list, description="Additional image URLs")
    variants: list[Variant] = Field(default_factory=list, description="Product variants")
    options: dict[str, list[str]] = Field(default_factory=dict, description="Option name to values")
    tags: list[str] = Field(default_factory=list, description="Product tags")
    vendor: Optional[str] = Field(None, description="Product vendor/brand")
    product_type: Optional[str] = Field(None, description="Product type")
    is_featured: bool = Field(default=False, description="Tagged as featured")


class CartItem(BaseModel):
    """Represents an item in the shopping cart."""

    id: str = Field(description="Product ID")
    title: str = Field(description="Product title")
    price: Decimal = Field(description="Unit price")
    image: Optional[str] = Field(None, description="Product image URL")
    quantity: int = Field(gt=0, description="Quantity of the product")

    @property
    def subtotal(self) -> Decimal:
        return self.price * self.quantity


class Notification(BaseModel):
    """Transient message shown after a cart mutation."""

    type: str = Field(description="success, info or error")
    message: str
    expires_at: float = Field(description="Epoch seconds after which the notification is hidden")


class Cart(BaseModel):
    """Represents the shopping cart."""

    id: str = Field(description="Client-generated cart ID")
    items: list[CartItem] = Field(default_factory=list, description="Cart items")
    total: Decimal = Field(default=Decimal("0"), description="Total cart value")
    is_open: bool = Field(default=False, description="Cart drawer open state")
    notification: Optional[Notification] = Field(None, description="Transient notification")

    @property
    def item_count(self) -> int:
        return sum(item.quantity for item in self.items)


class AddToCartEvent(BaseModel):
    """Payload of a product:added-to-cart event."""

    product_id: str
    product_title: Optional[str] = None
    product_price: Optional[Decimal] = None
    product_image: Optional[str] = None


class PageInfo(BaseModel):
    """Cursor state of a paginated product listing."""

    has_next_page: bool = Field(default=False, description="More products follow this page")
    end_cursor: Optional[str] = Field(None, description="Opaque cursor to pass back as `after`")


class ProductPage(BaseModel):
    """One page of a product listing."""

    products: list[Product] = Field(default_factory=list)
    page_info: PageInfo = Field(default_factory=PageInfo)
