"""HTTP client for the ``GetShoppingResults`` RPC."""

from __future__ import annotations

import logging

import httpx

from clovis_core.schemas import Itinerary, SearchRequest, SessionTokens, TripType
from clovis_crawler.config import CrawlerSettings
from clovis_crawler.config import settings as default_settings
from clovis_crawler.errors import RemoteCallError

from .rpc_parser import parse_flight_response
from .rpc_payload import RPC_HEADERS, build_form_body, build_query_params

logger = logging.getLogger(__name__)


class ShoppingRpcClient:
    """Thin async wrapper around one shopping RPC call.

    The caller owns the ``httpx.AsyncClient`` and the session tokens; this
    class only encodes the request, POSTs it and decodes the body.
    """

    def __init__(
        self,
        http: httpx.AsyncClient,
        *,
        config: CrawlerSettings | None = None,
    ) -> None:
        self._http = http
        self._config = config or default_settings

    async def fetch_raw(self, request: SearchRequest, tokens: SessionTokens) -> str:
        """POST the encoded request and return the undecoded response body."""
        one_way = request.trip_type == TripType.ONE_WAY
        params = build_query_params(tokens, include_region=one_way, config=self._config)
        timeout = (
            self._config.one_way_rpc_timeout if one_way else self._config.rpc_timeout
        )

        try:
            resp = await self._http.post(
                self._config.rpc_url,
                params=params,
                data=build_form_body(request),
                headers=RPC_HEADERS,
                timeout=timeout,
            )
        except httpx.TimeoutException as exc:
            raise RemoteCallError(f"Search timed out after {timeout:g}s") from exc
        except httpx.HTTPError as exc:
            raise RemoteCallError(f"Search failed: {exc}") from exc

        if not resp.is_success:
            raise RemoteCallError(
                f"Search failed: {resp.reason_phrase or resp.status_code}",
                status_code=resp.status_code,
            )

        logger.debug(
            "%s %s->%s returned %d chars",
            request.trip_type,
            request.origin,
            request.destination,
            len(resp.text),
        )
        return resp.text

    async def search(
        self, request: SearchRequest, tokens: SessionTokens
    ) -> list[Itinerary]:
        """Run one RPC call and decode it; an empty list means no results."""
        return parse_flight_response(await self.fetch_raw(request, tokens))
