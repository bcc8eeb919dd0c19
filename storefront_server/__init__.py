"""Storefront Server - Shopify catalog proxy, local cart and product search."""

__version__ = "0.1.0"
