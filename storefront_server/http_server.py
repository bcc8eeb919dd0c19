"""HTTP server exposing the storefront product catalog and cart."""

import asyncio
import logging
from contextlib import asynccontextmanager
from decimal import Decimal
from typing import Optional

from fastapi import FastAPI, Query, Request
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, Field

from .cart import CartStore
from .config import StorefrontConfig
from .errors import ProductNotFoundError, StorefrontError, UpstreamError
from .models import AddToCartEvent, Cart, Product, ProductPage
from .product_service import ProductService, create_product_service
from .search import SearchWidget
from .storage import LocalStorage

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("storefront-http-server")

PRODUCTS_PREFIX = "/api/shopify/products"
CACHE_TIME = 3600

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
}
CACHE_HEADERS = {"Cache-Control": f"public, max-age={CACHE_TIME}"}

# Global state
config: Optional[StorefrontConfig] = None
product_service: Optional[ProductService] = None
cart_store: Optional[CartStore] = None
search_widget: Optional[SearchWidget] = None


def initialize(settings: Optional[StorefrontConfig] = None) -> None:
    """Create the product service, cart store and search widget once per process."""
    global config, product_service, cart_store, search_widget

    if product_service is not None and cart_store is not None and search_widget is not None:
        return

    config = settings or StorefrontConfig.from_env()
    # Cart and recent searches share one file, so they share one store
    storage = cart_store.storage if cart_store is not None else LocalStorage(config.storage_file)
    if product_service is None:
        product_service = create_product_service(config)
    if cart_store is None:
        cart_store = CartStore(storage)
        cart_store.load()
    if search_widget is None:
        search_widget = SearchWidget(product_service, storage)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown."""
    # Startup
    logger.info("Starting Storefront HTTP Server...")
    initialize()

    yield

    # Shutdown
    logger.info("Shutting down Storefront HTTP Server...")
    if product_service is not None:
        product_service.close()


app = FastAPI(
    title="Storefront Server",
    description="HTTP API for browsing a Shopify catalog and managing a local cart",
    version="0.1.0",
    lifespan=lifespan,
)


# Request/Response Models
class AddToCartRequest(BaseModel):
    product_id: str
    product_title: Optional[str] = None
    product_price: Optional[Decimal] = None
    product_image: Optional[str] = None


class RemoveFromCartRequest(BaseModel):
    product_id: str


class UpdateQuantityRequest(BaseModel):
    product_id: str
    quantity: int = Field(description="New quantity; values below 1 are ignored")


@app.middleware("http")
async def product_routes_cors(request: Request, call_next):
    """Answer CORS preflights on product routes and tag GET responses with CORS headers."""
    if not request.url.path.startswith(PRODUCTS_PREFIX):
        return await call_next(request)

    if request.method == "OPTIONS":
        return Response(status_code=204, headers=CORS_HEADERS)

    # Other methods fall through to the rest of the app untouched
    response = await call_next(request)
    if request.method == "GET":
        response.headers.update(CORS_HEADERS)
    return response


def error_response(error: StorefrontError) -> JSONResponse:
    """Translate a storefront error into a JSON error body."""
    if isinstance(error, UpstreamError):
        logger.error(f"Shopify request failed: {error!r}")
    else:
        logger.warning(str(error))

    return JSONResponse(
        status_code=error.status_code,
        content={
            "status": "error",
            "message": error.user_message,
            "details": str(error),
        },
    )


def product_response(product: Optional[Product], identifier: str) -> JSONResponse:
    if product is None:
        return error_response(ProductNotFoundError(identifier))
    return JSONResponse(
        content={"product": product.model_dump(mode="json")},
        headers=CACHE_HEADERS,
    )


def products_response(products: list[Product]) -> JSONResponse:
    return JSONResponse(
        content={"products": [product.model_dump(mode="json") for product in products]},
        headers=CACHE_HEADERS,
    )


def page_response(page: ProductPage) -> JSONResponse:
    return JSONResponse(content=page.model_dump(mode="json"), headers=CACHE_HEADERS)


def cart_payload(cart: Cart) -> dict:
    payload = cart.model_dump(mode="json")
    payload["item_count"] = cart.item_count
    return payload


# Root endpoint
@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "name": "Storefront Server",
        "version": "0.1.0",
        "description": "HTTP API for browsing a Shopify catalog and managing a local cart",
        "endpoints": {
            "docs": "/docs",
            "health": "/health",
            "products": {
                "list": f"GET {PRODUCTS_PREFIX}?q=&limit=&after=",
                "recent_searches": f"GET {PRODUCTS_PREFIX}/recent-searches",
                "featured": f"GET {PRODUCTS_PREFIX}/featured",
                "recent": f"GET {PRODUCTS_PREFIX}/recent",
                "by_handle": f"GET {PRODUCTS_PREFIX}/handle/{{handle}}",
                "by_id": f"GET {PRODUCTS_PREFIX}/{{id}}",
            },
            "cart": {
                "get": "GET /api/cart",
                "add": "POST /api/cart/add",
                "remove": "POST /api/cart/remove",
                "quantity": "POST /api/cart/quantity",
                "toggle": "POST /api/cart/toggle",
                "checkout": "POST /api/cart/checkout",
            },
        },
        "demo_mode": not config.is_configured if config else True,
    }


# Health check endpoint
@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "shopify_configured": config.is_configured if config else False,
    }


# Product endpoints
@app.get(PRODUCTS_PREFIX)
async def list_products(
    q: Optional[str] = Query(None, description="Search term"),
    limit: int = Query(10, ge=1, le=50),
    after: Optional[str] = Query(None, description="Cursor from a previous page's page_info.end_cursor"),
):
    """Search products when a term is given, list one page of them otherwise."""
    try:
        if q is not None:
            return products_response(await search_widget.submit(q, limit))
        page = await asyncio.to_thread(product_service.list_products, limit, after)
        return page_response(page)
    except StorefrontError as e:
        return error_response(e)


@app.get(f"{PRODUCTS_PREFIX}/recent-searches")
async def recent_searches():
    """Terms of the last successful searches, newest first."""
    return {"recent_searches": search_widget.recent_searches}


@app.get(f"{PRODUCTS_PREFIX}/featured")
def featured_products(count: int = Query(3, ge=1, le=50)):
    """Products tagged as featured."""
    try:
        return products_response(product_service.get_featured(count))
    except StorefrontError as e:
        return error_response(e)


@app.get(f"{PRODUCTS_PREFIX}/recent")
def recent_products(count: int = Query(4, ge=1, le=50)):
    """Most recently created products."""
    try:
        return products_response(product_service.get_recent(count))
    except StorefrontError as e:
        return error_response(e)


@app.get(f"{PRODUCTS_PREFIX}/handle/{{handle}}")
def get_product_by_handle(handle: str):
    """Get a single product by handle."""
    try:
        return product_response(product_service.get_by_handle(handle), handle)
    except StorefrontError as e:
        return error_response(e)


@app.get(f"{PRODUCTS_PREFIX}/{{product_id:path}}")
def get_product(product_id: str):
    """Get a single product by numeric ID or gid:// URI."""
    if not product_id.strip("/"):
        return JSONResponse(
            status_code=400,
            content={"status": "error", "message": "Product ID is required"},
        )
    try:
        return product_response(product_service.get_by_id(product_id), product_id)
    except StorefrontError as e:
        return error_response(e)


# Cart endpoints
@app.get("/api/cart")
async def get_cart():
    """Get the current shopping cart."""
    return cart_payload(cart_store.cart)


@app.post("/api/cart/add")
async def add_to_cart(request: AddToCartRequest):
    """Add one unit of a product to the cart."""
    cart = cart_store.add_item(AddToCartEvent(**request.model_dump()))
    return cart_payload(cart)


@app.post("/api/cart/remove")
async def remove_from_cart(request: RemoveFromCartRequest):
    """Remove a product from the cart."""
    return cart_payload(cart_store.remove_item(request.product_id))


@app.post("/api/cart/quantity")
async def update_cart_quantity(request: UpdateQuantityRequest):
    """Set the quantity of a product in the cart."""
    return cart_payload(cart_store.update_quantity(request.product_id, request.quantity))


@app.post("/api/cart/toggle")
async def toggle_cart():
    """Open or close the cart drawer."""
    return cart_payload(cart_store.toggle())


@app.post("/api/cart/checkout")
async def checkout():
    """Simulated checkout; no payment integration."""
    message = await cart_store.checkout()
    if message is None:
        return {"success": False, "message": "Your cart is empty"}
    return {"success": True, "message": message}


def run_http_server(host: str = "0.0.0.0", port: int = 8000, settings: Optional[StorefrontConfig] = None):
    """Run the HTTP server."""
    import uvicorn

    if settings is not None:
        initialize(settings)
    uvicorn.run(app, host=host, port=port, log_level="info")


if __name__ == "__main__":
    run_http_server()
