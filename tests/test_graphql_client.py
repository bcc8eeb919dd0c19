"""Tests for the Shopify GraphQL client."""

import httpx
import pytest

from storefront_server.errors import UpstreamError, UpstreamErrorKind

from .conftest import TEST_TOKEN, data_response


class TestExecute:
    def test_posts_query_and_variables_with_token(self, make_client):
        client, upstream = make_client(lambda body: data_response({"shop": {"name": "Test"}}))

        data = client.execute("query { shop { name } }", {"first": 3})

        assert data == {"shop": {"name": "Test"}}
        request = upstream.requests[0]
        assert request.method == "POST"
        assert str(request.url) == "https://test-store.myshopify.com/api/2023-10/graphql.json"
        assert request.headers["X-Shopify-Storefront-Access-Token"] == TEST_TOKEN
        assert upstream.bodies[0] == {"query": "query { shop { name } }", "variables": {"first": 3}}

    def test_missing_variables_sent_as_empty_object(self, make_client):
        client, upstream = make_client(lambda body: data_response({}))
        client.execute("{ shop { name } }")
        assert upstream.bodies[0]["variables"] == {}

    def test_custom_token_header(self, make_client, config):
        settings = config.model_copy(update={"token_header": "X-Shopify-Access-Token"})
        client, upstream = make_client(lambda body: data_response({}), settings=settings)
        client.execute("{ shop { name } }")
        assert upstream.requests[0].headers["X-Shopify-Access-Token"] == TEST_TOKEN


class TestErrors:
    @pytest.mark.parametrize("status", [403, 404, 429])
    def test_passthrough_statuses(self, make_client, status):
        client, _ = make_client(lambda body: httpx.Response(status, text="nope"))

        with pytest.raises(UpstreamError) as exc_info:
            client.execute("{ shop { name } }")

        error = exc_info.value
        assert error.kind is UpstreamErrorKind.HTTP_STATUS
        assert error.code == status
        assert error.status_code == status

    def test_other_statuses_map_to_500(self, make_client):
        client, _ = make_client(lambda body: httpx.Response(401, text="unauthorized"))

        with pytest.raises(UpstreamError) as exc_info:
            client.execute("{ shop { name } }")

        assert exc_info.value.code == 401
        assert exc_info.value.status_code == 500

    def test_invalid_json(self, make_client):
        client, _ = make_client(lambda body: httpx.Response(200, text="<html>oops</html>"))

        with pytest.raises(UpstreamError) as exc_info:
            client.execute("{ shop { name } }")

        assert exc_info.value.kind is UpstreamErrorKind.INVALID_PAYLOAD
        assert exc_info.value.status_code == 500

    def test_graphql_errors_use_first_message(self, make_client):
        client, _ = make_client(
            lambda body: httpx.Response(
                200, json={"errors": [{"message": "Not found"}, {"message": "second"}]}
            )
        )

        with pytest.raises(UpstreamError) as exc_info:
            client.execute("{ shop { name } }")

        error = exc_info.value
        assert error.kind is UpstreamErrorKind.GRAPHQL_ERROR
        assert error.message == "Not found"
        # No message sniffing: a GraphQL error is never a 404
        assert error.status_code == 500

    def test_empty_errors_list_is_not_an_error(self, make_client):
        client, _ = make_client(lambda body: httpx.Response(200, json={"errors": [], "data": {"a": 1}}))
        assert client.execute("{ a }") == {"a": 1}

    def test_missing_data(self, make_client):
        client, _ = make_client(lambda body: httpx.Response(200, json={"extensions": {}}))

        with pytest.raises(UpstreamError) as exc_info:
            client.execute("{ shop { name } }")

        assert exc_info.value.kind is UpstreamErrorKind.EMPTY_RESPONSE

    def test_transport_error(self, make_client):
        def refuse(body):
            raise httpx.ConnectError("connection refused")

        client, _ = make_client(refuse)

        with pytest.raises(UpstreamError) as exc_info:
            client.execute("{ shop { name } }")

        assert exc_info.value.kind is UpstreamErrorKind.TRANSPORT


class TestRetries:
    def test_no_retry_by_default(self, make_client):
        client, upstream = make_client(lambda body: httpx.Response(503))

        with pytest.raises(UpstreamError):
            client.execute("{ shop { name } }")

        assert len(upstream.requests) == 1

    def test_retries_with_exponential_backoff(self, make_client, config):
        responses = [httpx.Response(503), httpx.Response(429), data_response({"ok": True})]
        sleeps = []
        settings = config.model_copy(update={"max_retries": 2})
        client, upstream = make_client(lambda body: responses.pop(0), settings=settings, sleeps=sleeps)

        assert client.execute("{ ok }") == {"ok": True}
        assert len(upstream.requests) == 3
        assert sleeps == [2, 4]

    def test_gives_up_after_max_retries(self, make_client, config):
        sleeps = []
        settings = config.model_copy(update={"max_retries": 2})
        client, upstream = make_client(lambda body: httpx.Response(502), settings=settings, sleeps=sleeps)

        with pytest.raises(UpstreamError) as exc_info:
            client.execute("{ ok }")

        assert exc_info.value.code == 502
        assert len(upstream.requests) == 3

    def test_graphql_errors_are_not_retried(self, make_client, config):
        settings = config.model_copy(update={"max_retries": 2})
        client, upstream = make_client(
            lambda body: httpx.Response(200, json={"errors": [{"message": "bad query"}]}),
            settings=settings,
        )

        with pytest.raises(UpstreamError):
            client.execute("{ ok }")

        assert len(upstream.requests) == 1
