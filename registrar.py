"""
Registrar API client used when real credentials are configured.

Only the "list my domains" call is needed: the oracle reads the reserve, it
never places orders.
"""

import logging
from typing import List, Optional

import requests

from oracle_config import SourceConfig

logger = logging.getLogger("oracle")

PASSTHROUGH_PARAMS = ("statuses", "statusGroups", "includes")


class RegistrarAPIError(Exception):
    def __init__(self, message: str, status: Optional[int] = None, details=None):
        super().__init__(message)
        self.status = status
        self.details = details


def registrar_base_url(src: SourceConfig) -> str:
    if src.base_url:
        return src.base_url.rstrip("/")
    if src.env in ("ote", "test", "staging"):
        return "https://api.ote-godaddy.com"
    return "https://api.godaddy.com"


class RegistrarClient:
    def __init__(self, src: SourceConfig, session: Optional[requests.Session] = None):
        self.src = src
        self.base = registrar_base_url(src)
        self.session = session or requests.Session()

    @property
    def configured(self) -> bool:
        return bool(self.src.api_key and self.src.api_secret)

    def list_domains(self, params: Optional[dict] = None) -> List[dict]:
        query = {k: v for k, v in (params or {}).items() if k in PASSTHROUGH_PARAMS and v}
        url = f"{self.base}/v1/domains"
        headers = {
            "Accept": "application/json",
            "Authorization": f"sso-key {self.src.api_key}:{self.src.api_secret}",
        }
        try:
            r = self.session.get(url, params=query, headers=headers, timeout=self.src.timeout_seconds)
        except requests.RequestException as e:
            raise RegistrarAPIError(f"Registrar request failed: {e}", status=502) from e

        try:
            parsed = r.json() if r.text else None
        except ValueError:
            parsed = r.text

        if not r.ok:
            status = r.status_code if 400 <= r.status_code < 600 else 502
            logger.error("[REGISTRAR ERROR] status=%s url=%s", r.status_code, url)
            raise RegistrarAPIError("Registrar API request failed.", status=status, details=parsed)

        if not isinstance(parsed, list):
            raise RegistrarAPIError("Unexpected registrar API response shape (expected an array).",
                                    status=502, details=parsed)
        return parsed
