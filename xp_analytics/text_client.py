"""
Activity log text source
─────────────────────────────────────────────────────────────────────────────
The analytics core only ever sees page text. This client gets that text from
one of two places:

  1. A text-extraction service:
       GET <endpoint>/<document>/text
       Response: text/plain page text, or {"text": "...", "pages": N}

  2. A local file that was already extracted to .txt

Auth: Bearer token (optional)

"""

from __future__ import annotations

import os
import logging
from pathlib import Path
from typing import Dict, Optional, Union
from urllib.parse import quote

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 60
DEFAULT_DOCUMENT = "activity_log.pdf"


class TextSourceClient:
    """
    Fetches extracted activity-log text from an extraction service or disk.

    """

    def __init__(
        self,
        endpoint: str = "",
        token: str = "",
        timeout: int = DEFAULT_TIMEOUT,
        max_retries: int = 3,
    ):
        self.endpoint = (endpoint or os.getenv("XP_TEXT_ENDPOINT", "")).rstrip("/")
        self.token = token or os.getenv("XP_TEXT_TOKEN", "")
        self.timeout = timeout

        self.session = requests.Session()
        retry = Retry(
            total=max_retries,
            backoff_factor=1.0,
            status_forcelist=[429, 500, 502, 503, 504],
            respect_retry_after_header=True,
        )
        adapter = HTTPAdapter(max_retries=retry)
        self.session.mount("https://", adapter)
        self.session.mount("http://", adapter)
        self.session.headers.update({"Accept": "text/plain, application/json"})
        if self.token:
            self.session.headers["Authorization"] = f"Bearer {self.token}"

    def _text_url(self, document: str) -> str:
        if not self.endpoint:
            raise ValueError("No extraction endpoint configured (set XP_TEXT_ENDPOINT)")
        return f"{self.endpoint}/{quote(document)}/text"

    def fetch_text(self, document: str = DEFAULT_DOCUMENT) -> str:
        """
        Page text of `document` as one string.
        Raises requests exceptions on transport or HTTP errors, ValueError
        when a JSON body has no usable text.
        """
        url = self._text_url(document)
        resp = self.session.get(url, timeout=self.timeout)
        resp.raise_for_status()

        if "json" in resp.headers.get("Content-Type", ""):
            body = resp.json()
            text = body.get("text") if isinstance(body, dict) else None
            if isinstance(text, list):
                # one entry per page
                text = "\n".join(str(page) for page in text)
            if not isinstance(text, str):
                raise ValueError(f"Extraction service returned no 'text' field from {url}")
            logger.info(f"Fetched {len(text):,} chars ({body.get('pages', '?')} pages) from {url}")
            return text

        logger.info(f"Fetched {len(resp.text):,} chars from {url}")
        return resp.text

    @staticmethod
    def load_file(path: Union[str, Path]) -> str:
        path = Path(path)
        text = path.read_text(encoding="utf-8", errors="replace")
        logger.info(f"Loaded {len(text):,} chars from {path}")
        return text

    def ping(self) -> bool:
        if not self.endpoint:
            return False
        try:
            resp = self.session.get(self.endpoint, timeout=10)
            return resp.status_code < 500
        except requests.RequestException:
            return False

    def get_source_info(self) -> Dict:
        return {
            "endpoint": self.endpoint or None,
            "connected": self.ping(),
            "auth": "bearer" if self.token else "none",
        }


def default_data_file() -> Optional[Path]:
    """XP_DATA_FILE if it points at an existing file."""
    value = os.getenv("XP_DATA_FILE", "")
    if value and Path(value).is_file():
        return Path(value)
    return None
