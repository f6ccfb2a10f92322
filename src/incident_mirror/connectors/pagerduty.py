"""
PagerDuty REST API (v1) connector.

Provides offset/limit pagination over a single collection endpoint. The
client is synchronous and never retries: any non-200 response or transport
failure raises :class:`~incident_mirror.exceptions.RemoteError` and aborts
the current refresh.

Authentication uses the account API token:
    Authorization: Token token=<PAGERDUTY_API_KEY>
"""

import logging
from typing import Any, Dict, List, Mapping, Optional

import httpx

from incident_mirror.config import DEFAULT_PAGE_SIZE, DEFAULT_TIMEOUT, Settings
from incident_mirror.exceptions import AuthenticationError, RemoteError
from incident_mirror.utils.logging import log_event

logger = logging.getLogger(__name__)

API_PATH_PREFIX = "/api/v1"


class PagerDutyClient:
    """
    Blocking HTTP client for one PagerDuty account.

    One ``httpx.Client`` is held for the lifetime of the object; use it as a
    context manager or call :meth:`close`.
    """

    def __init__(
        self,
        subdomain: str,
        api_token: str,
        page_size: int = DEFAULT_PAGE_SIZE,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """
        Initialize the PagerDuty client.

        :param subdomain: Account subdomain (``<subdomain>.pagerduty.com``).
        :param api_token: API token.
        :param page_size: ``limit`` sent with every list request.
        :param timeout: Request timeout in seconds.
        :param transport: Optional transport override (used by tests).
        """
        self.subdomain = subdomain
        self.page_size = page_size
        self.base_url = f"https://{subdomain}.pagerduty.com"
        self._client = httpx.Client(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport,
            headers={
                "Authorization": f"Token token={api_token}",
                "Accept": "application/json",
            },
        )

    @classmethod
    def from_settings(
        cls, settings: Settings, transport: Optional[httpx.BaseTransport] = None
    ) -> "PagerDutyClient":
        return cls(
            subdomain=settings.subdomain,
            api_token=settings.api_token,
            page_size=settings.page_size,
            timeout=settings.timeout,
            transport=transport,
        )

    def __enter__(self) -> "PagerDutyClient":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def get(self, endpoint: str, params: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        """
        Issue one GET against ``/api/v1/{endpoint}``.

        :param endpoint: Endpoint path relative to the API prefix.
        :param params: Query parameters.
        :return: Decoded JSON body.
        :raises RemoteError: On a non-200 status or a transport failure.
        """
        path = f"{API_PATH_PREFIX}/{endpoint.lstrip('/')}"
        try:
            response = self._client.get(path, params=dict(params or {}))
        except httpx.RequestError as e:
            raise RemoteError(f"Request failed: {e}", endpoint=endpoint) from e

        if response.status_code == 401:
            raise AuthenticationError(
                "PagerDuty rejected the API token. Check PAGERDUTY_API_KEY.",
                status_code=401,
                endpoint=endpoint,
            )
        if response.status_code != 200:
            raise RemoteError(
                f"API error: {response.status_code} - {response.text[:500]}",
                status_code=response.status_code,
                endpoint=endpoint,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise RemoteError(
                f"Invalid JSON from {endpoint}", status_code=200, endpoint=endpoint
            ) from e
        if not isinstance(data, dict):
            raise RemoteError(
                f"Unexpected response body from {endpoint}",
                status_code=200,
                endpoint=endpoint,
            )
        return data

    def get_paginated(
        self,
        collection: str,
        endpoint: Optional[str] = None,
        params: Optional[Mapping[str, Any]] = None,
        log_progress: bool = True,
    ) -> List[Dict[str, Any]]:
        """
        Fetch every item of a collection, following offset/limit pagination.

        When a response omits ``total``, the item count of that page stands in
        for it. That stops pagination after at most two pages on endpoints
        that never report a total.

        :param collection: Key holding the items in each response body.
        :param endpoint: Endpoint path; defaults to the collection name.
        :param params: Extra query parameters, merged over offset/limit.
        :param log_progress: Emit one log line per page request.
        :return: All items in page order.
        """
        endpoint = endpoint or collection

        offset = 0
        total: Optional[int] = None
        items: List[Dict[str, Any]] = []
        while total is None or offset <= total:
            if log_progress:
                log_event(
                    logger,
                    "fetch.page",
                    collection=collection,
                    offset=offset,
                    total="?" if total is None else total,
                )
            query: Dict[str, Any] = {"offset": offset, "limit": self.page_size}
            query.update(params or {})
            data = self.get(endpoint, query)

            page = data.get(collection)
            if page is None:
                raise RemoteError(
                    f"Response from {endpoint} has no '{collection}' key",
                    status_code=200,
                    endpoint=endpoint,
                )
            reported = data.get("total")
            total = int(reported) if reported is not None else len(page)
            offset += self.page_size
            items.extend(page)

        if log_progress:
            log_event(logger, "fetch.done", collection=collection, total=len(items))
        return items
