"""Shopify GraphQL API client."""

import json
import logging
import time
from typing import Any, Callable, Optional

import httpx

from .config import StorefrontConfig
from .errors import UpstreamError, UpstreamErrorKind

logger = logging.getLogger(__name__)


class GraphQLClient:
    """Thin httpx wrapper for the Shopify GraphQL API."""

    def __init__(
        self,
        config: StorefrontConfig,
        http_client: Optional[httpx.Client] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """
        Initialize the GraphQL client.

        Args:
            config: Storefront configuration with domain and access token
            http_client: Pre-built httpx client (tests pass one with a mock transport)
            sleep: Function used to wait between retries
        """
        self.config = config
        self.endpoint = config.endpoint
        self._sleep = sleep
        self.client = http_client or httpx.Client(timeout=config.timeout)
        self.headers = {
            "Content-Type": "application/json",
            config.token_header: config.access_token or "",
        }

    def execute(self, query: str, variables: Optional[dict[str, Any]] = None) -> dict[str, Any]:
        """
        Execute a GraphQL query and return its ``data`` payload.

        Args:
            query: GraphQL document
            variables: Query variables

        Returns:
            The ``data`` object of the response envelope

        Raises:
            UpstreamError: On HTTP, payload or GraphQL failures
        """
        variables = variables or {}
        attempt = 0

        while True:
            try:
                return self._execute_once(query, variables)
            except UpstreamError as e:
                if not e.retryable or attempt >= self.config.max_retries:
                    self._log_failure(e, query, variables)
                    raise
                attempt += 1
                delay = 2**attempt
                logger.warning(
                    f"Shopify request failed ({e.message}), retrying in {delay}s "
                    f"(attempt {attempt}/{self.config.max_retries})"
                )
                self._sleep(delay)

    def _execute_once(self, query: str, variables: dict[str, Any]) -> dict[str, Any]:
        try:
            response = self.client.post(
                self.endpoint,
                json={"query": query, "variables": variables},
                headers=self.headers,
            )
        except httpx.TransportError as e:
            raise UpstreamError(UpstreamErrorKind.TRANSPORT, f"Could not reach Shopify: {e}") from e

        if not response.is_success:
            logger.debug(f"Shopify GraphQL error {response.status_code}: {response.text}")
            raise UpstreamError(UpstreamErrorKind.HTTP_STATUS, code=response.status_code)

        try:
            result = response.json()
        except (json.JSONDecodeError, ValueError) as e:
            logger.debug(f"Failed to parse Shopify response as JSON: {response.text[:500]}")
            raise UpstreamError(UpstreamErrorKind.INVALID_PAYLOAD) from e

        if not isinstance(result, dict):
            raise UpstreamError(UpstreamErrorKind.INVALID_PAYLOAD)

        errors = result.get("errors")
        if errors:
            first = errors[0] if isinstance(errors, list) else errors
            message = first.get("message") if isinstance(first, dict) else None
            raise UpstreamError(UpstreamErrorKind.GRAPHQL_ERROR, message or "GraphQL error occurred")

        data = result.get("data")
        if data is None:
            raise UpstreamError(UpstreamErrorKind.EMPTY_RESPONSE)

        logger.debug(f"Shopify query succeeded: {query.strip()[:60]}")
        return data

    def _log_failure(self, error: UpstreamError, query: str, variables: dict[str, Any]) -> None:
        logger.error(f"GraphQL execution failed: {error.message}")
        logger.error(f"Endpoint: {self.endpoint}")
        logger.error(f"Query: {query.strip()[:100]}...")
        logger.error(f"Variables: {json.dumps(variables)}")
        if error.code is not None:
            logger.error(f"Status: {error.code}")
        if error.code == 403:
            logger.error("This appears to be an authentication issue. Check the access token, domain and API version")

    def close(self) -> None:
        """Close the underlying HTTP client."""
        self.client.close()
