"""Shopping cart kept in local storage."""

import asyncio
import logging
import time
from decimal import Decimal
from enum import Enum
from typing import Callable, Optional

from pydantic import ValidationError

from .errors import CartNotReadyError
from .models import AddToCartEvent, Cart, CartItem, Notification
from .storage import CART_KEY, LocalStorage

logger = logging.getLogger(__name__)

NOTIFICATION_TTL = 3.0
CHECKOUT_DELAY = 1.0
DEFAULT_ITEM_PRICE = Decimal("29.99")
PLACEHOLDER_IMAGE = "/placeholder-product.png"
CHECKOUT_MESSAGE = "In a real implementation, this would redirect to Shopify checkout"


class CartState(str, Enum):
    LOADING = "loading"
    READY = "ready"


def compute_total(items: list[CartItem]) -> Decimal:
    return sum((item.price * item.quantity for item in items), Decimal("0"))


class CartStore:
    """Cart state machine: every mutation rewrites the whole cart to storage."""

    def __init__(
        self,
        storage: LocalStorage,
        clock: Callable[[], float] = time.time,
        checkout_delay: float = CHECKOUT_DELAY,
    ) -> None:
        self.storage = storage
        self.clock = clock
        self.checkout_delay = checkout_delay
        self.state = CartState.LOADING
        self.is_checking_out = False
        self._cart: Optional[Cart] = None

    def load(self) -> Cart:
        """Read the cart back from storage, or create a fresh one."""
        saved = self.storage.get_item(CART_KEY)
        cart = None
        if saved:
            try:
                cart = Cart.model_validate(saved)
            except ValidationError as e:
                logger.error(f"Error initializing cart, starting a new one: {e}")

        if cart is None:
            cart = Cart(id=f"checkout_{int(self.clock() * 1000)}")
            logger.info(f"Created new cart {cart.id}")

        self._cart = cart
        self.state = CartState.READY
        return self.cart

    @property
    def cart(self) -> Cart:
        """Current cart, with expired notifications hidden."""
        cart = self._require_ready()
        if cart.notification and cart.notification.expires_at <= self.clock():
            cart.notification = None
        return cart

    def _require_ready(self) -> Cart:
        if self.state is not CartState.READY or self._cart is None:
            raise CartNotReadyError("Cart is still loading")
        return self._cart

    def _notify(self, cart: Cart, type_: str, message: str) -> None:
        cart.notification = Notification(
            type=type_, message=message, expires_at=self.clock() + NOTIFICATION_TTL
        )

    def _persist(self, cart: Cart) -> Cart:
        cart.total = compute_total(cart.items)
        self.storage.set_item(CART_KEY, cart.model_dump(mode="json"))
        return cart

    def _find(self, cart: Cart, product_id: str) -> Optional[CartItem]:
        return next((item for item in cart.items if item.id == product_id), None)

    def add_item(self, event: AddToCartEvent) -> Cart:
        """Add one unit of a product, incrementing its quantity if already in the cart."""
        cart = self._require_ready()
        existing = self._find(cart, event.product_id)

        if existing:
            existing.quantity += 1
            title = existing.title
        else:
            title = event.product_title or f"Product {event.product_id}"
            cart.items.append(
                CartItem(
                    id=event.product_id,
                    title=title,
                    price=event.product_price if event.product_price is not None else DEFAULT_ITEM_PRICE,
                    image=event.product_image or PLACEHOLDER_IMAGE,
                    quantity=1,
                )
            )

        cart.is_open = True
        self._notify(cart, "success", f"{title} added to cart")
        logger.info(f"Added product {event.product_id} to cart {cart.id}")
        return self._persist(cart)

    def update_quantity(self, product_id: str, quantity: int) -> Cart:
        """Set an item's quantity. Quantities below 1 are ignored."""
        cart = self._require_ready()
        if quantity < 1:
            return cart

        item = self._find(cart, product_id)
        if item:
            item.quantity = quantity
        return self._persist(cart)

    def remove_item(self, product_id: str) -> Cart:
        """Remove an item entirely."""
        cart = self._require_ready()
        removed = self._find(cart, product_id)
        cart.items = [item for item in cart.items if item.id != product_id]

        message = f"{removed.title} removed from cart" if removed else "Item removed"
        self._notify(cart, "info", message)
        return self._persist(cart)

    def toggle(self) -> Cart:
        cart = self._require_ready()
        cart.is_open = not cart.is_open
        return self._persist(cart)

    async def checkout(self) -> Optional[str]:
        """
        Simulate a checkout.

        There is no payment integration: after a short delay a placeholder
        message is returned. Empty carts do nothing and return None.
        """
        cart = self._require_ready()
        if not cart.items:
            return None

        self.is_checking_out = True
        try:
            await asyncio.sleep(self.checkout_delay)
        finally:
            self.is_checking_out = False
        logger.info(f"Checkout requested for cart {cart.id} ({cart.item_count} items)")
        return CHECKOUT_MESSAGE
