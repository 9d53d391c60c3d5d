# stores/firestore.py
import os
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import quote

import requests
from tenacity import (
    Retrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential_jitter,
)

from core.errors import InventoryError, StoreError
from core.logger import get_logger

from .base import DocumentStore, Fields

logger = get_logger(__name__)

PROJECT_ID = os.getenv("FIRESTORE_PROJECT_ID", "").strip()
DATABASE = os.getenv("FIRESTORE_DATABASE", "(default)").strip()
API_KEY = os.getenv("FIRESTORE_API_KEY", "").strip()
TOKEN = os.getenv("FIRESTORE_TOKEN", "").strip()
EMULATOR_HOST = os.getenv("FIRESTORE_EMULATOR_HOST", "").strip()
TIMEOUT = float(os.getenv("FIRESTORE_TIMEOUT", "30"))
PAGE_SIZE = int(os.getenv("FIRESTORE_PAGE_SIZE", "300"))
# 1 means a single attempt: failures surface immediately
RETRY_ATTEMPTS = max(1, int(os.getenv("STORE_RETRY_ATTEMPTS", "1")))

API_HOST = "https://firestore.googleapis.com"


def encode_value(value: Any) -> Dict[str, Any]:
    if value is None:
        return {"nullValue": None}
    if isinstance(value, bool):
        return {"booleanValue": value}
    if isinstance(value, int):
        return {"integerValue": str(value)}
    if isinstance(value, float):
        return {"doubleValue": value}
    return {"stringValue": str(value)}


def decode_value(value: Dict[str, Any]) -> Any:
    if "integerValue" in value:
        return int(value["integerValue"])
    if "doubleValue" in value:
        return float(value["doubleValue"])
    if "booleanValue" in value:
        return bool(value["booleanValue"])
    if "stringValue" in value:
        return value["stringValue"]
    return None


def encode_fields(fields: Fields) -> Dict[str, Any]:
    return {"fields": {k: encode_value(v) for k, v in fields.items()}}


def decode_document(doc: Dict[str, Any]) -> Tuple[str, Fields]:
    """Split a REST document into (document id, plain field mapping)."""
    key = doc.get("name", "").rsplit("/", 1)[-1]
    raw = doc.get("fields") or {}
    return key, {k: decode_value(v) for k, v in raw.items()}


def _is_transient(exc: BaseException) -> bool:
    if isinstance(exc, (requests.ConnectionError, requests.Timeout)):
        return True
    if isinstance(exc, requests.HTTPError) and exc.response is not None:
        return exc.response.status_code >= 500
    return False


def _error_detail(r: requests.Response) -> str:
    try:
        body = r.json()
    except ValueError:
        return r.text[:200]
    if isinstance(body, dict) and isinstance(body.get("error"), dict):
        return body["error"].get("message", "")
    return str(body)[:200]


class FirestoreStore(DocumentStore):
    """
    Cloud Firestore collection accessed through the v1 REST API.

    ``get`` maps HTTP 404 to None; ``set`` is a PATCH without an update mask,
    which replaces the document and creates it when missing. When
    FIRESTORE_EMULATOR_HOST is set, requests go to the local emulator over
    plain HTTP with the emulator's owner credentials.
    """

    def __init__(
        self,
        project_id: str = PROJECT_ID,
        collection: Optional[str] = None,
        database: str = DATABASE,
        api_key: str = API_KEY,
        token: str = TOKEN,
        emulator_host: str = EMULATOR_HOST,
        timeout: float = TIMEOUT,
        page_size: int = PAGE_SIZE,
        retry_attempts: int = RETRY_ATTEMPTS,
        session: Optional[requests.Session] = None,
    ):
        if not project_id:
            raise InventoryError(
                "FIRESTORE_PROJECT_ID must be set to use the firestore store."
            )
        if collection:
            self.collection = collection

        host = f"http://{emulator_host}" if emulator_host else API_HOST
        self.base_url = (
            f"{host}/v1/projects/{project_id}/databases/{database}"
            f"/documents/{self.collection}"
        )
        self.api_key = api_key
        self.timeout = timeout
        self.page_size = page_size
        self._retrying = Retrying(
            stop=stop_after_attempt(max(1, retry_attempts)),
            wait=wait_exponential_jitter(initial=1, max=30),
            retry=retry_if_exception(_is_transient),
            reraise=True,
        )

        self.session = session or requests.Session()
        if token:
            self.session.headers.update({"Authorization": f"Bearer {token}"})
        elif emulator_host:
            self.session.headers.update({"Authorization": "Bearer owner"})

    def _doc_url(self, key: str) -> str:
        return f"{self.base_url}/{quote(key, safe='')}"

    def _send(self, method: str, url: str, **kwargs) -> requests.Response:
        params = dict(kwargs.pop("params", None) or {})
        if self.api_key:
            params["key"] = self.api_key

        def do() -> requests.Response:
            r = self.session.request(
                method, url, params=params, timeout=self.timeout, **kwargs
            )
            if r.status_code >= 500:
                r.raise_for_status()
            return r

        logger.debug("Firestore %s %s", method, url)
        try:
            return self._retrying(do)
        except requests.RequestException as e:
            raise StoreError(f"Firestore {method} failed: {e}")

    def get(self, key: str) -> Optional[Fields]:
        r = self._send("GET", self._doc_url(key))
        if r.status_code == 404:
            return None
        if not r.ok:
            raise StoreError(
                f"Firestore GET returned HTTP {r.status_code}: {_error_detail(r)}",
                key=key,
            )
        _, fields = decode_document(r.json())
        return fields

    def list_all(self) -> List[Tuple[str, Fields]]:
        out: List[Tuple[str, Fields]] = []
        page_token = None
        while True:
            params: Dict[str, Any] = {"pageSize": self.page_size}
            if page_token:
                params["pageToken"] = page_token
            r = self._send("GET", self.base_url, params=params)
            if not r.ok:
                raise StoreError(
                    f"Firestore list returned HTTP {r.status_code}: {_error_detail(r)}"
                )
            body = r.json() or {}
            for doc in body.get("documents", []):
                out.append(decode_document(doc))
            page_token = body.get("nextPageToken")
            if not page_token:
                break
        return out

    def set(self, key: str, fields: Fields) -> None:
        r = self._send("PATCH", self._doc_url(key), json=encode_fields(fields))
        if not r.ok:
            raise StoreError(
                f"Firestore write returned HTTP {r.status_code}: {_error_detail(r)}",
                key=key,
            )

    def delete(self, key: str) -> None:
        r = self._send("DELETE", self._doc_url(key))
        if not r.ok and r.status_code != 404:
            raise StoreError(
                f"Firestore delete returned HTTP {r.status_code}: {_error_detail(r)}",
                key=key,
            )

    def close(self) -> None:
        self.session.close()
