from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Optional

import httpx
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
)


DEFAULT_UAS = [
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 14_6) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/126.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/125.0.0.0 Safari/537.36",
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36",
]


@dataclass
class Fetcher:
    """Downloads product pages so their embedded pricing data can be read."""

    user_agent: Optional[str] = None
    proxy: Optional[str] = None
    timeout: float = 20.0
    transport: Optional[httpx.BaseTransport] = None

    def _headers(self) -> dict:
        return {
            "User-Agent": self.user_agent or random.choice(DEFAULT_UAS),
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
            "Cache-Control": "no-cache",
            "Pragma": "no-cache",
        }

    @retry(
        reraise=True,
        stop=stop_after_attempt(4),
        wait=wait_exponential(multiplier=0.8, min=1, max=8),
        retry=retry_if_exception_type(httpx.HTTPError),
    )
    def _get(self, client: httpx.Client, url: str) -> httpx.Response:
        r = client.get(url, headers=self._headers(), timeout=self.timeout)
        r.raise_for_status()
        return r

    def get_page(self, url: str) -> str:
        with httpx.Client(
            http2=False,
            follow_redirects=True,
            proxy=self.proxy,
            transport=self.transport,
        ) as client:
            return self._get(client, url).text
