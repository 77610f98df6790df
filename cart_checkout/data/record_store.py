# cart_checkout/data/record_store.py
import re
import threading

import requests

from cart_checkout.utils.retry import http_retry
from cart_checkout.utils.settings import (
    HTTP_TIMEOUT_SECONDS,
    RECORD_STORE_TOKEN,
    RECORD_STORE_URL,
)
from cart_checkout.utils.logging import get_logger

logger = get_logger(__name__)

# OData-EntityId: https://host/api/data/v9.2/order_lines(5f1c...)
_ENTITY_ID_RE = re.compile(r"\(([^()]+)\)\s*$")


class RecordStoreError(Exception):
    pass


def odata_quote(value: str) -> str:
    return "'" + str(value).replace("'", "''") + "'"


class RecordStoreClient:
    """
    Thin client for the record store's OData-style HTTP API.
    One call = one network round-trip, there is no batch primitive.
    """

    def __init__(
        self,
        base_url: str | None = None,
        token: str | None = None,
        timeout: float | None = None,
        session: requests.Session | None = None,
    ):
        self.base_url = (base_url or RECORD_STORE_URL).rstrip("/")
        self.token = RECORD_STORE_TOKEN if token is None else token
        self.timeout = timeout or HTTP_TIMEOUT_SECONDS
        self._session = session
        self._local = threading.local()

    @property
    def session(self) -> requests.Session:
        """The injected session, else one per thread; checkout fans out over a thread pool."""
        if self._session is not None:
            return self._session
        if getattr(self._local, "session", None) is None:
            self._local.session = requests.Session()
        return self._local.session

    def _headers(self) -> dict:
        headers = {
            "Accept": "application/json",
            "Content-Type": "application/json; charset=utf-8",
            "OData-MaxVersion": "4.0",
            "OData-Version": "4.0",
        }
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _url(self, entity_set: str, record_id: str | None = None) -> str:
        if record_id is None:
            return f"{self.base_url}/{entity_set}"
        return f"{self.base_url}/{entity_set}({record_id})"

    @http_retry()
    def query(
        self,
        entity_set: str,
        where: str | None = None,
        top: int | None = None,
        orderby: str | None = None,
    ) -> list[dict]:
        params = {}
        if where:
            params["$filter"] = where
        if top:
            params["$top"] = str(top)
        if orderby:
            params["$orderby"] = orderby

        url = self._url(entity_set)
        logger.info(f"RecordStore GET {url} {params}")
        resp = self.session.get(url, params=params, headers=self._headers(), timeout=self.timeout)
        resp.raise_for_status()
        return resp.json().get("value", [])

    @http_retry()
    def get(self, entity_set: str, record_id: str) -> dict | None:
        url = self._url(entity_set, record_id)
        logger.info(f"RecordStore GET {url}")
        resp = self.session.get(url, headers=self._headers(), timeout=self.timeout)
        if resp.status_code == 404:
            return None
        resp.raise_for_status()
        return resp.json()

    # no retry: POST is not idempotent, a retried create could duplicate a line
    def create(self, entity_set: str, payload: dict) -> str:
        url = self._url(entity_set)
        logger.info(f"RecordStore POST {url}")
        resp = self.session.post(url, json=payload, headers=self._headers(), timeout=self.timeout)
        resp.raise_for_status()

        entity_id = resp.headers.get("OData-EntityId", "")
        match = _ENTITY_ID_RE.search(entity_id)
        if not match:
            raise RecordStoreError(f"Create on {entity_set} returned no entity id")
        return match.group(1)

    @http_retry()
    def update(self, entity_set: str, record_id: str, changes: dict) -> None:
        url = self._url(entity_set, record_id)
        logger.info(f"RecordStore PATCH {url}")
        resp = self.session.patch(url, json=changes, headers=self._headers(), timeout=self.timeout)
        resp.raise_for_status()

    @http_retry()
    def delete(self, entity_set: str, record_id: str) -> bool:
        url = self._url(entity_set, record_id)
        logger.info(f"RecordStore DELETE {url}")
        resp = self.session.delete(url, headers=self._headers(), timeout=self.timeout)
        if resp.status_code == 404:
            return False
        resp.raise_for_status()
        return True
