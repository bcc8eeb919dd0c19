"""MCP Server for the Shopify storefront."""

import asyncio
import json
import logging
from decimal import Decimal
from typing import Any, Optional

from mcp.server import Server
from mcp.types import Resource, Tool, TextContent
from pydantic import AnyUrl

from .cart import CartStore
from .config import StorefrontConfig
from .errors import StorefrontError
from .models import AddToCartEvent, Cart, Product
from .product_service import ProductService, create_product_service
from .search import SearchWidget
from .storage import LocalStorage

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("storefront-mcp-server")

# Initialize server
app = Server("storefront-mcp-server")

# Global state
product_service: Optional[ProductService] = None
cart_store: Optional[CartStore] = None
search_widget: Optional[SearchWidget] = None

CART_URI = "storefront://cart"
RECENT_SEARCHES_URI = "storefront://recent-searches"


def format_product_lines(product: Product, index: Optional[int] = None) -> list[str]:
    """Render a product as readable text lines."""
    prefix = f"{index}. " if index is not None else ""
    lines = [f"{prefix}{product.title}"]
    lines.append(f"   ID: {product.id}")
    lines.append(f"   Handle: {product.handle}")
    if product.vendor:
        lines.append(f"   Vendor: {product.vendor}")
    lines.append(f"   Price: {product.formatted_price or product.price}")
    if product.compare_at_price:
        lines.append(
            f"   Compare at: {product.formatted_compare_at_price or product.compare_at_price} (DISCOUNTED)"
        )
    lines.append(f"   Available: {'Yes' if product.available else 'No'}")
    for variant in product.variants:
        availability = "" if variant.available else " (sold out)"
        lines.append(f"   - Variant {variant.id}: {variant.title} @ {variant.price}{availability}")
    return lines


def format_cart(cart: Cart) -> str:
    if not cart.items:
        return "Your cart is empty"

    result_lines = [f"Shopping Cart ({cart.item_count} items):\n"]
    for i, item in enumerate(cart.items, 1):
        result_lines.append(f"\n{i}. {item.title}")
        result_lines.append(f"   Product ID: {item.id}")
        result_lines.append(f"   Price: ${item.price:.2f}")
        result_lines.append(f"   Quantity: {item.quantity}")
        result_lines.append(f"   Subtotal: ${item.subtotal:.2f}")

    result_lines.append(f"\n{'='*50}")
    result_lines.append(f"Total: ${cart.total:.2f}")
    return "\n".join(result_lines)


@app.list_resources()
async def list_resources() -> list[Resource]:
    """List available resources."""
    return [
        Resource(
            uri=AnyUrl(CART_URI),
            name="Shopping Cart",
            mimeType="application/json",
            description="Current shopping cart contents",
        ),
        Resource(
            uri=AnyUrl(RECENT_SEARCHES_URI),
            name="Recent Searches",
            mimeType="application/json",
            description="Last five search terms that returned products, newest first",
        ),
    ]


@app.read_resource()
async def read_resource(uri: AnyUrl) -> str:
    """Read a resource by URI."""
    if str(uri) == CART_URI:
        return cart_store.cart.model_dump_json(indent=2)
    if str(uri) == RECENT_SEARCHES_URI:
        return json.dumps(search_widget.recent_searches, indent=2)

    raise ValueError(f"Unknown resource: {uri}")


@app.list_tools()
async def list_tools() -> list[Tool]:
    """List available tools."""
    return [
        Tool(
            name="storefront_get_product",
            description="Get a product by numeric ID or gid://shopify/Product/... URI",
            inputSchema={
                "type": "object",
                "properties": {
                    "product_id": {"type": "string", "description": "Product ID or gid URI"},
                },
                "required": ["product_id"],
            },
        ),
        Tool(
            name="storefront_get_product_by_handle",
            description="Get a product by its URL handle",
            inputSchema={
                "type": "object",
                "properties": {
                    "handle": {"type": "string", "description": "Product handle (slug)"},
                },
                "required": ["handle"],
            },
        ),
        Tool(
            name="storefront_search_products",
            description="Search for products. Terms shorter than 2 characters return nothing.",
            inputSchema={
                "type": "object",
                "properties": {
                    "query": {"type": "string", "description": "Search term"},
                    "limit": {
                        "type": "integer",
                        "description": "Maximum number of results (default: 5)",
                        "default": 5,
                    },
                },
                "required": ["query"],
            },
        ),
        Tool(
            name="storefront_add_to_cart",
            description="Add one unit of a product to the shopping cart",
            inputSchema={
                "type": "object",
                "properties": {
                    "product_id": {"type": "string", "description": "Product ID to add to cart"},
                    "title": {"type": "string", "description": "Product title"},
                    "price": {"type": "number", "description": "Unit price"},
                    "image": {"type": "string", "description": "Product image URL"},
                },
                "required": ["product_id"],
            },
        ),
        Tool(
            name="storefront_remove_from_cart",
            description="Remove a product from the shopping cart",
            inputSchema={
                "type": "object",
                "properties": {
                    "product_id": {"type": "string", "description": "Product ID to remove from cart"},
                },
                "required": ["product_id"],
            },
        ),
        Tool(
            name="storefront_update_cart_quantity",
            description="Update the quantity of a product in the shopping cart",
            inputSchema={
                "type": "object",
                "properties": {
                    "product_id": {"type": "string", "description": "Product ID to update"},
                    "quantity": {"type": "integer", "description": "New quantity to set"},
                },
                "required": ["product_id", "quantity"],
            },
        ),
        Tool(
            name="storefront_get_cart",
            description="Get current shopping cart contents with all items and total",
            inputSchema={"type": "object", "properties": {}},
        ),
        Tool(
            name="storefront_checkout",
            description="Start a (simulated) checkout of the current cart",
            inputSchema={"type": "object", "properties": {}},
        ),
    ]


@app.call_tool()
async def call_tool(name: str, arguments: Any) -> list[TextContent]:
    """Handle tool calls."""
    arguments = arguments or {}
    try:
        if name == "storefront_get_product":
            product_id = arguments["product_id"]
            product = await asyncio.to_thread(product_service.get_by_id, product_id)
            if product is None:
                return [TextContent(type="text", text=f"Product {product_id} not found")]
            return [TextContent(type="text", text="\n".join(format_product_lines(product)))]

        elif name == "storefront_get_product_by_handle":
            handle = arguments["handle"]
            product = await asyncio.to_thread(product_service.get_by_handle, handle)
            if product is None:
                return [TextContent(type="text", text=f"No product with handle: {handle}")]
            return [TextContent(type="text", text="\n".join(format_product_lines(product)))]

        elif name == "storefront_search_products":
            query = arguments["query"]
            limit = arguments.get("limit", 5)
            products = await search_widget.submit(query, limit)

            if not products:
                return [TextContent(type="text", text=f"No products found for: {query}")]

            result_lines = [f"Found {len(products)} product(s):\n"]
            for i, product in enumerate(products, 1):
                result_lines.append("")
                result_lines.extend(format_product_lines(product, i))
            return [TextContent(type="text", text="\n".join(result_lines))]

        elif name == "storefront_add_to_cart":
            price = arguments.get("price")
            event = AddToCartEvent(
                product_id=arguments["product_id"],
                product_title=arguments.get("title"),
                product_price=Decimal(str(price)) if price is not None else None,
                product_image=arguments.get("image"),
            )
            cart = cart_store.add_item(event)
            return [
                TextContent(
                    type="text",
                    text=f"{cart.notification.message}. Cart total: ${cart.total:.2f}",
                )
            ]

        elif name == "storefront_remove_from_cart":
            cart = cart_store.remove_item(arguments["product_id"])
            return [TextContent(type="text", text=cart.notification.message)]

        elif name == "storefront_update_cart_quantity":
            product_id = arguments["product_id"]
            quantity = arguments["quantity"]
            if quantity < 1:
                return [
                    TextContent(
                        type="text",
                        text="Quantity must be at least 1. Use storefront_remove_from_cart to remove items.",
                    )
                ]
            cart_store.update_quantity(product_id, quantity)
            return [
                TextContent(
                    type="text",
                    text=f"Successfully updated product {product_id} to quantity {quantity}",
                )
            ]

        elif name == "storefront_get_cart":
            return [TextContent(type="text", text=format_cart(cart_store.cart))]

        elif name == "storefront_checkout":
            message = await cart_store.checkout()
            return [TextContent(type="text", text=message or "Your cart is empty")]

        else:
            return [TextContent(type="text", text=f"Unknown tool: {name}")]

    except StorefrontError as e:
        logger.error(f"Error executing tool {name}: {e!r}")
        return [TextContent(type="text", text=f"Error: {e.user_message} ({e})")]
    except Exception as e:
        logger.error(f"Error executing tool {name}: {e}", exc_info=True)
        return [
            TextContent(
                type="text",
                text=f"Error: {str(e)}",
            )
        ]


def initialize(settings: Optional[StorefrontConfig] = None) -> None:
    """Create the product service, cart store and search widget."""
    global product_service, cart_store, search_widget

    config = settings or StorefrontConfig.from_env()
    storage = LocalStorage(config.storage_file)
    product_service = create_product_service(config)
    cart_store = CartStore(storage)
    cart_store.load()
    search_widget = SearchWidget(product_service, storage)


async def main(settings: Optional[StorefrontConfig] = None) -> None:
    """Main entry point for the MCP server."""
    initialize(settings)

    logger.info("Starting Storefront MCP Server...")

    # Import and run the server
    from mcp.server.stdio import stdio_server

    try:
        async with stdio_server() as (read_stream, write_stream):
            await app.run(
                read_stream,
                write_stream,
                app.create_initialization_options(),
            )
    finally:
        product_service.close()


if __name__ == "__main__":
    asyncio.run(main())
