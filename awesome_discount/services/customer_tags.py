from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

import requests
import structlog

logger = structlog.get_logger(__name__)

CUSTOMER_GID_PREFIX = "gid://shopify/Customer/"

GET_CUSTOMER_TAGS = """
  query GetCustomerTags($customerId: ID!) {
    customer(id: $customerId) {
      id
      tags
    }
  }
"""

LIST_STORE_TAGS = """
  query ListCustomerTags($first: Int!) {
    customers(first: $first) {
      edges {
        node {
          id
          tags
        }
      }
    }
  }
"""


class CustomerTagLookupError(RuntimeError):
    """Upstream customer tag lookup failed (transport, status or payload)."""


@dataclass(frozen=True)
class ShopifyCredentials:
    subdomain: str
    access_token: str
    api_version: str = "2024-01"

    def __post_init__(self) -> None:
        if not self.subdomain or not self.access_token:
            raise ValueError("ShopifyCredentials need both subdomain and access_token")

    @property
    def graphql_url(self) -> str:
        return f"https://{self.subdomain}.myshopify.com/admin/api/{self.api_version}/graphql.json"


def to_customer_gid(customer_id: str) -> str:
    """'123' -> 'gid://shopify/Customer/123'; gids pass through."""
    cid = str(customer_id).strip()
    if not cid:
        raise ValueError("customer_id is required")
    return cid if cid.startswith("gid://") else f"{CUSTOMER_GID_PREFIX}{cid}"


class CustomerTagClient:
    """Admin GraphQL client for customer tags. Credentials are passed in, never read from env."""

    def __init__(
        self,
        credentials: ShopifyCredentials,
        *,
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ):
        self.credentials = credentials
        self.timeout = timeout
        self.session = session or requests.Session()
        self.headers = {
            "X-Shopify-Access-Token": credentials.access_token,
            "Content-Type": "application/json",
        }

    def _query(self, query: str, variables: Dict[str, Any]) -> Dict[str, Any]:
        try:
            response = self.session.post(
                self.credentials.graphql_url,
                headers=self.headers,
                json={"query": query, "variables": variables},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise CustomerTagLookupError(f"Shopify GraphQL request failed: {e}") from e

        if response.status_code != 200:
            raise CustomerTagLookupError(
                f"Shopify GraphQL request failed with status {response.status_code}: {response.text}"
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise CustomerTagLookupError(f"Failed to parse Shopify GraphQL response: {e}") from e

        if payload.get("errors"):
            raise CustomerTagLookupError(f"Shopify GraphQL errors: {payload['errors']}")
        return payload.get("data") or {}

    def fetch_customer_tags(self, customer_id: str) -> Tuple[str, ...]:
        """Active tags of one customer, in the order the platform returns them."""
        gid = to_customer_gid(customer_id)
        data = self._query(GET_CUSTOMER_TAGS, {"customerId": gid})

        customer = data.get("customer")
        if not customer:
            logger.info("customer_not_found", customer_id=gid)
            return ()

        tags: List[str] = []
        for tag in customer.get("tags") or []:
            if tag and tag not in tags:
                tags.append(str(tag))
        logger.debug("customer_tags_fetched", customer_id=gid, tags=len(tags))
        return tuple(tags)

    def list_store_tags(self, first: int = 100) -> Tuple[str, ...]:
        """Unique, sorted tags across the first `first` customers (settings screen options)."""
        data = self._query(LIST_STORE_TAGS, {"first": int(first)})
        edges = ((data.get("customers") or {}).get("edges")) or []

        all_tags = set()
        for edge in edges:
            node = (edge or {}).get("node") or {}
            all_tags.update(t for t in node.get("tags") or [] if t)
        return tuple(sorted(all_tags))


def lookup_tags_or_empty(client: Optional[CustomerTagClient], customer_id: Optional[str]) -> Tuple[str, ...]:
    """
    Tag lookup failure is not fatal for discounting: the customer is treated
    as having no tags and volume / buy-X-get-Y still apply.
    """
    if client is None or not customer_id:
        return ()
    try:
        return client.fetch_customer_tags(customer_id)
    except (CustomerTagLookupError, ValueError) as e:
        logger.warning("customer_tag_lookup_failed", customer_id=customer_id, error=str(e))
        return ()
