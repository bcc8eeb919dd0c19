"""Shared fixtures for storefront tests."""

import json
from typing import Callable

import httpx
import pytest

from storefront_server.config import StorefrontConfig
from storefront_server.graphql_client import GraphQLClient
from storefront_server.storage import LocalStorage

TEST_TOKEN = "shpat_" + "0123456789abcdef" * 2


def product_node(**overrides) -> dict:
    """A Storefront API product node as returned by the detail query."""
    node = {
        "id": "gid://shopify/Product/7982853619953",
        "title": "Canvas Sneaker",
        "handle": "canvas-sneaker",
        "description": "Lightweight canvas sneaker.",
        "descriptionHtml": "<p>Lightweight canvas sneaker.</p>",
        "availableForSale": True,
        "productType": "Shoes",
        "priceRange": {"minVariantPrice": {"amount": "49.0", "currencyCode": "USD"}},
        "compareAtPriceRange": {"minVariantPrice": {"amount": "65.0", "currencyCode": "USD"}},
        "featuredImage": {"url": "https://cdn.shopify.com/sneaker.png", "altText": "Sneaker"},
        "images": {
            "edges": [
                {"node": {"url": "https://cdn.shopify.com/sneaker.png", "altText": "Sneaker"}},
                {"node": {"url": "https://cdn.shopify.com/sneaker-side.png", "altText": None}},
            ]
        },
        "variants": {
            "edges": [
                {
                    "node": {
                        "id": "gid://shopify/ProductVariant/44001",
                        "title": "White / 42",
                        "sku": "SNK-W-42",
                        "availableForSale": True,
                        "price": {"amount": "49.0", "currencyCode": "USD"},
                        "compareAtPrice": {"amount": "65.0", "currencyCode": "USD"},
                        "selectedOptions": [
                            {"name": "Color", "value": "White"},
                            {"name": "Size", "value": "42"},
                        ],
                    }
                },
                {
                    "node": {
                        "id": "gid://shopify/ProductVariant/44002",
                        "title": "Black / 43",
                        "sku": None,
                        "availableForSale": False,
                        "price": {"amount": "52.0", "currencyCode": "USD"},
                        "compareAtPrice": None,
                        "selectedOptions": [
                            {"name": "Color", "value": "Black"},
                            {"name": "Size", "value": "43"},
                        ],
                    }
                },
            ]
        },
        "options": [
            {"name": "Color", "values": ["White", "Black"]},
            {"name": "Size", "values": ["42", "43"]},
        ],
        "tags": ["featured", "summer"],
        "vendor": "Acme",
    }
    node.update(overrides)
    return node


@pytest.fixture
def config(tmp_path) -> StorefrontConfig:
    return StorefrontConfig(
        domain="test-store.myshopify.com",
        access_token=TEST_TOKEN,
        storage_file=str(tmp_path / "storage.json"),
    )


@pytest.fixture
def storage(tmp_path) -> LocalStorage:
    return LocalStorage(str(tmp_path / "storage.json"))


class RecordingUpstream:
    """Fake Shopify endpoint recording every GraphQL request it receives."""

    def __init__(self, responder: Callable[[dict], httpx.Response]) -> None:
        self.responder = responder
        self.requests: list[httpx.Request] = []

    @property
    def bodies(self) -> list[dict]:
        return [json.loads(request.content) for request in self.requests]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.responder(json.loads(request.content))


@pytest.fixture
def make_client(config):
    """Build a GraphQLClient talking to a fake upstream."""
    created = []

    def _make(responder, settings: StorefrontConfig = None, sleeps: list = None):
        upstream = RecordingUpstream(responder)
        http_client = httpx.Client(transport=httpx.MockTransport(upstream))
        sleep = sleeps.append if sleeps is not None else (lambda seconds: None)
        client = GraphQLClient(settings or config, http_client=http_client, sleep=sleep)
        created.append(client)
        return client, upstream

    yield _make

    for client in created:
        client.close()


def data_response(data: dict) -> httpx.Response:
    return httpx.Response(200, json={"data": data})
