"""Scrape the two session tokens that authorize shopping RPC calls.

The landing page embeds its bootstrap config as a flat JSON object; two of
its keys carry the values the RPC expects in its query string:

* ``FdrFJe`` -> ``f.sid`` (signed integer)
* ``cfb2h``  -> ``bl`` (frontend build label)

When Google serves a consent, captcha or interstitial page instead, neither
key is present.
"""

from __future__ import annotations

import logging
import re

import httpx

from clovis_core.schemas import SessionTokens
from clovis_crawler.config import CrawlerSettings
from clovis_crawler.config import settings as default_settings
from clovis_crawler.errors import AuthExtractionError, RemoteCallError

logger = logging.getLogger(__name__)

_SID_RE = re.compile(r'"FdrFJe":"(-?\d+)"')
_BL_RE = re.compile(r'"cfb2h":"([^"]+)"')

LANDING_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/121.0.0.0 Safari/537.36"
    ),
    "Accept": (
        "text/html,application/xhtml+xml,application/xml;q=0.9,"
        "image/avif,image/webp,*/*;q=0.8"
    ),
    "Accept-Language": "en-US,en;q=0.9",
    "sec-ch-ua": '"Not A(Brand";v="99", "Google Chrome";v="121", "Chromium";v="121"',
    "sec-ch-ua-mobile": "?0",
    "sec-ch-ua-platform": '"Windows"',
}


def extract_session_tokens(html: str) -> SessionTokens:
    """Pull ``sid`` and ``bl`` out of the landing page markup."""
    sid_match = _SID_RE.search(html)
    bl_match = _BL_RE.search(html)

    if sid_match is None:
        logger.warning("Landing page has no FdrFJe marker (consent/captcha page?)")
    if bl_match is None:
        logger.warning("Landing page has no cfb2h marker")
    if sid_match is None or bl_match is None:
        msg = (
            "Token extraction failed - Google may have served a "
            "Captcha/Consent page"
        )
        raise AuthExtractionError(msg)

    return SessionTokens(sid=sid_match.group(1), bl=bl_match.group(1))


class SessionTokenAcquirer:
    """Fetch the landing page and extract a fresh pair of session tokens.

    One GET per call, no retry. Tokens are never cached here; callers that
    want to share a session across a batch hold on to the returned value.
    """

    def __init__(
        self,
        http: httpx.AsyncClient,
        *,
        config: CrawlerSettings | None = None,
    ) -> None:
        self._http = http
        self._config = config or default_settings

    async def acquire(self) -> SessionTokens:
        url = self._config.landing_url
        try:
            resp = await self._http.get(
                url,
                headers=LANDING_HEADERS,
                timeout=self._config.token_timeout,
            )
        except httpx.TimeoutException as exc:
            raise RemoteCallError(f"Token request timed out: {url}") from exc
        except httpx.HTTPError as exc:
            raise RemoteCallError(f"Token request failed: {exc}") from exc

        if not resp.is_success:
            raise RemoteCallError(
                f"HTTP Error: {resp.status_code}", status_code=resp.status_code
            )

        logger.debug("Landing page fetched: %d chars", len(resp.text))
        tokens = extract_session_tokens(resp.text)
        logger.info("Session tokens acquired (sid=%s, bl=%s)", tokens.sid, tokens.bl)
        return tokens
