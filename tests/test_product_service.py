"""Tests for the Shopify-backed and demo product services."""

import httpx
import pytest

from storefront_server.config import StorefrontConfig
from storefront_server.errors import UpstreamError, UpstreamErrorKind
from storefront_server.product_service import (
    DemoProductService,
    ShopifyProductService,
    create_product_service,
)

from .conftest import data_response, product_node


@pytest.fixture
def make_service(make_client, config):
    def _make(responder):
        client, upstream = make_client(responder)
        return ShopifyProductService(client, config), upstream

    return _make


def products_response(*nodes):
    return data_response({"products": {"edges": [{"node": node} for node in nodes]}})


class TestGetById:
    def test_numeric_id_is_normalized(self, make_service):
        service, upstream = make_service(lambda body: data_response({"product": product_node()}))

        product = service.get_by_id("7982853619953")

        assert upstream.bodies[0]["variables"] == {"id": "gid://shopify/Product/7982853619953"}
        assert product.id == "7982853619953"
        assert product.title == "Canvas Sneaker"

    def test_gid_is_passed_through(self, make_service):
        service, upstream = make_service(lambda body: data_response({"product": product_node()}))

        service.get_by_id("gid://shopify/Product/7982853619953")

        assert upstream.bodies[0]["variables"]["id"] == "gid://shopify/Product/7982853619953"

    def test_variants_present_when_upstream_has_edges(self, make_service):
        service, _ = make_service(lambda body: data_response({"product": product_node()}))
        product = service.get_by_id("1")
        assert len(product.variants) == 2

    def test_missing_product_returns_none(self, make_service):
        service, _ = make_service(lambda body: data_response({"product": None}))
        assert service.get_by_id("404") is None

    def test_graphql_error_propagates(self, make_service):
        service, _ = make_service(
            lambda body: httpx.Response(200, json={"errors": [{"message": "Not found"}]})
        )

        with pytest.raises(UpstreamError) as exc_info:
            service.get_by_id("1")

        assert exc_info.value.kind is UpstreamErrorKind.GRAPHQL_ERROR
        assert exc_info.value.message == "Not found"


class TestGetByHandle:
    def test_found(self, make_service):
        service, upstream = make_service(lambda body: data_response({"product": product_node()}))

        product = service.get_by_handle("canvas-sneaker")

        assert upstream.bodies[0]["variables"] == {"handle": "canvas-sneaker"}
        assert product.handle == "canvas-sneaker"

    def test_missing_returns_none(self, make_service):
        service, _ = make_service(lambda body: data_response({"product": None}))
        assert service.get_by_handle("nope") is None

    def test_empty_handle_skips_network(self, make_service):
        service, upstream = make_service(lambda body: data_response({"product": None}))
        assert service.get_by_handle("") is None
        assert upstream.requests == []


class TestSearch:
    def test_short_term_skips_network(self, make_service):
        service, upstream = make_service(lambda body: products_response(product_node()))

        assert service.search("a") == []
        assert service.search(" b ") == []
        assert upstream.requests == []

    def test_term_sent_as_variable(self, make_service):
        service, upstream = make_service(lambda body: products_response(product_node()))
        term = 'sneaker" OR title:*'

        results = service.search(term, limit=3)

        body = upstream.bodies[0]
        assert body["variables"] == {"query": term, "first": 3}
        assert term not in body["query"]
        assert [p.handle for p in results] == ["canvas-sneaker"]

    def test_no_results(self, make_service):
        service, _ = make_service(lambda body: products_response())
        assert service.search("zzz") == []


class TestListings:
    def test_list_products_with_cursor(self, make_service):
        service, upstream = make_service(lambda body: products_response(product_node(), product_node()))

        page = service.list_products(limit=2, after="cursor-1")

        assert upstream.bodies[0]["variables"] == {"first": 2, "after": "cursor-1"}
        assert len(page.products) == 2
        assert page.page_info.has_next_page is False
        assert page.page_info.end_cursor is None

    def test_list_products_exposes_page_info(self, make_service):
        def responder(body):
            return data_response(
                {
                    "products": {
                        "edges": [{"node": product_node()}],
                        "pageInfo": {"hasNextPage": True, "endCursor": "eyJsYXN0X2lkIjo3fQ=="},
                    }
                }
            )

        service, _ = make_service(responder)

        page = service.list_products(limit=1)

        assert page.page_info.has_next_page is True
        assert page.page_info.end_cursor == "eyJsYXN0X2lkIjo3fQ=="

    def test_featured_filters_by_tag(self, make_service):
        service, upstream = make_service(lambda body: products_response(product_node()))

        service.get_featured(3)

        assert upstream.bodies[0]["variables"] == {"first": 3, "query": "tag:featured"}

    def test_recent_sorts_by_creation(self, make_service):
        service, upstream = make_service(lambda body: products_response(product_node()))

        service.get_recent(4)

        assert upstream.bodies[0]["variables"] == {
            "first": 4,
            "sortKey": "CREATED_AT",
            "reverse": True,
        }


class TestDemoService:
    def test_get_by_id_echoes_id(self):
        product = DemoProductService().get_by_id("42")
        assert product.id == "42"
        assert product.title == "Demo Product"
        assert product.variants

    def test_get_by_handle(self):
        service = DemoProductService()
        assert service.get_by_handle("demo-product").handle == "demo-product"
        assert service.get_by_handle("other") is None

    def test_search(self):
        service = DemoProductService()
        assert service.search("d") == []
        assert len(service.search("demo")) == 1
        assert service.search("sneaker") == []

    def test_list_products_pages_through_catalog(self):
        service = DemoProductService()

        first = service.list_products(limit=5)
        assert [p.id for p in first.products] == ["1", "2", "3", "4", "5"]
        assert first.page_info.has_next_page is True

        second = service.list_products(limit=5, after=first.page_info.end_cursor)
        assert [p.id for p in second.products] == ["6", "7", "8", "9", "10"]

        last = service.list_products(limit=5, after=second.page_info.end_cursor)
        assert [p.id for p in last.products] == ["11", "12"]
        assert last.page_info.has_next_page is False


class TestCreateProductService:
    def test_demo_when_unconfigured(self, tmp_path, caplog):
        settings = StorefrontConfig(storage_file=str(tmp_path / "s.json"))

        service = create_product_service(settings)

        assert isinstance(service, DemoProductService)
        assert "demo mode" in caplog.text

    def test_shopify_when_configured(self, config):
        service = create_product_service(config)
        try:
            assert isinstance(service, ShopifyProductService)
        finally:
            service.close()
