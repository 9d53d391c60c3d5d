"""Unit tests for the document store backends."""

from __future__ import annotations

import time
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock

import pytest
import requests

from core.errors import InventoryError, StoreError
from stores import STORES, open_store
from stores.firestore import FirestoreStore, decode_document, encode_value
from stores.memory import MemoryStore
from stores.sqlite import SqliteStore

DOC_PREFIX = "projects/demo/databases/(default)/documents/inventory"


def _response(status: int, body: Any = None) -> MagicMock:
    r = MagicMock()
    r.status_code = status
    r.ok = status < 400
    r.json.return_value = body if body is not None else {}
    r.text = ""
    if status >= 500:
        r.raise_for_status.side_effect = requests.HTTPError(response=r)
    return r


def _doc(key: str, quantity: int, price: float) -> dict[str, Any]:
    return {
        "name": f"{DOC_PREFIX}/{key}",
        "fields": {
            "quantity": {"integerValue": str(quantity)},
            "price": {"doubleValue": price},
        },
    }


@pytest.fixture
def session() -> MagicMock:
    return MagicMock()


@pytest.fixture
def firestore(session: MagicMock) -> FirestoreStore:
    return FirestoreStore(project_id="demo", collection="inventory", session=session)


class TestMemoryStore:
    def test_crud(self) -> None:
        store = MemoryStore()
        assert store.get("bolt") is None
        store.set("bolt", {"quantity": 1, "price": 0.5})
        store.set("nut", {"quantity": 2, "price": 0.1})
        store.set("bolt", {"quantity": 3, "price": 0.6})
        assert store.list_all() == [
            ("bolt", {"quantity": 3, "price": 0.6}),
            ("nut", {"quantity": 2, "price": 0.1}),
        ]
        store.delete("bolt")
        store.delete("bolt")
        assert store.get("bolt") is None

    def test_returned_documents_are_copies(self) -> None:
        store = MemoryStore({"bolt": {"quantity": 1, "price": 0.5}})
        store.get("bolt")["quantity"] = 99
        assert store.get("bolt") == {"quantity": 1, "price": 0.5}


class TestSqliteStore:
    @pytest.fixture
    def sqlite_store(self, tmp_path: Path) -> SqliteStore:
        return SqliteStore(db_path=str(tmp_path / "db" / "inventory.sqlite3"))

    def test_get_missing(self, sqlite_store: SqliteStore) -> None:
        assert sqlite_store.get("bolt") is None

    def test_set_replaces_document(self, sqlite_store: SqliteStore) -> None:
        sqlite_store.set("bolt", {"quantity": 10, "price": 0.5})
        sqlite_store.set("bolt", {"quantity": 15, "price": 0.75})
        assert sqlite_store.get("bolt") == {"quantity": 15, "price": 0.75}

    def test_list_in_key_order(self, sqlite_store: SqliteStore) -> None:
        sqlite_store.set("widget", {"quantity": 4, "price": 2.5})
        sqlite_store.set("bolt", {"quantity": 10, "price": 0.5})
        assert [key for key, _ in sqlite_store.list_all()] == ["bolt", "widget"]

    def test_delete(self, sqlite_store: SqliteStore) -> None:
        sqlite_store.set("bolt", {"quantity": 10, "price": 0.5})
        sqlite_store.delete("bolt")
        sqlite_store.delete("bolt")
        assert sqlite_store.list_all() == []

    def test_collections_are_separate(self, tmp_path: Path) -> None:
        path = str(tmp_path / "shared.sqlite3")
        a = SqliteStore(db_path=path, collection="inventory")
        b = SqliteStore(db_path=path, collection="archive")
        a.set("bolt", {"quantity": 1, "price": 1.0})
        assert b.get("bolt") is None

    def test_persists_across_instances(self, tmp_path: Path) -> None:
        path = str(tmp_path / "inventory.sqlite3")
        SqliteStore(db_path=path).set("bolt", {"quantity": 2, "price": 1.25})
        assert SqliteStore(db_path=path).get("bolt") == {"quantity": 2, "price": 1.25}


class TestFirestoreCodec:
    def test_encode_value_types(self) -> None:
        assert encode_value(10) == {"integerValue": "10"}
        assert encode_value(0.5) == {"doubleValue": 0.5}
        assert encode_value(True) == {"booleanValue": True}
        assert encode_value(None) == {"nullValue": None}

    def test_decode_document(self) -> None:
        key, fields = decode_document(_doc("bolt", 10, 0.5))
        assert key == "bolt"
        assert fields == {"quantity": 10, "price": 0.5}

    def test_decode_integer_price(self) -> None:
        doc = {
            "name": f"{DOC_PREFIX}/gear",
            "fields": {"quantity": {"integerValue": "2"}, "price": {"integerValue": "5"}},
        }
        assert decode_document(doc) == ("gear", {"quantity": 2, "price": 5})


class TestFirestoreStore:
    def test_requires_project(self) -> None:
        with pytest.raises(InventoryError, match="FIRESTORE_PROJECT_ID"):
            FirestoreStore(project_id="", session=MagicMock())

    def test_get_found(self, firestore: FirestoreStore, session: MagicMock) -> None:
        session.request.return_value = _response(200, _doc("bolt", 10, 0.5))
        assert firestore.get("bolt") == {"quantity": 10, "price": 0.5}
        method, url = session.request.call_args.args
        assert method == "GET"
        assert url == f"https://firestore.googleapis.com/v1/{DOC_PREFIX}/bolt"

    def test_get_not_found(self, firestore: FirestoreStore, session: MagicMock) -> None:
        session.request.return_value = _response(404, {"error": {"message": "missing"}})
        assert firestore.get("bolt") is None

    def test_key_is_url_quoted(self, firestore: FirestoreStore, session: MagicMock) -> None:
        session.request.return_value = _response(404)
        firestore.get("hex nut")
        assert session.request.call_args.args[1].endswith("/inventory/hex%20nut")

    def test_set_patches_full_document(
        self, firestore: FirestoreStore, session: MagicMock
    ) -> None:
        session.request.return_value = _response(200, _doc("bolt", 15, 0.75))
        firestore.set("bolt", {"quantity": 15, "price": 0.75})
        call = session.request.call_args
        assert call.args[0] == "PATCH"
        assert call.kwargs["json"] == {
            "fields": {
                "quantity": {"integerValue": "15"},
                "price": {"doubleValue": 0.75},
            }
        }
        assert "updateMask.fieldPaths" not in call.kwargs["params"]

    def test_delete(self, firestore: FirestoreStore, session: MagicMock) -> None:
        session.request.return_value = _response(200, {})
        firestore.delete("bolt")
        assert session.request.call_args.args[0] == "DELETE"

    def test_list_follows_pages(self, firestore: FirestoreStore, session: MagicMock) -> None:
        session.request.side_effect = [
            _response(200, {"documents": [_doc("bolt", 10, 0.5)], "nextPageToken": "p2"}),
            _response(200, {"documents": [_doc("nut", 3, 0.1)]}),
        ]
        assert firestore.list_all() == [
            ("bolt", {"quantity": 10, "price": 0.5}),
            ("nut", {"quantity": 3, "price": 0.1}),
        ]
        second = session.request.call_args_list[1]
        assert second.kwargs["params"]["pageToken"] == "p2"

    def test_list_empty_collection(self, firestore: FirestoreStore, session: MagicMock) -> None:
        session.request.return_value = _response(200, {})
        assert firestore.list_all() == []

    def test_client_error_raises(self, firestore: FirestoreStore, session: MagicMock) -> None:
        session.request.return_value = _response(
            403, {"error": {"message": "Missing or insufficient permissions."}}
        )
        with pytest.raises(StoreError, match="insufficient permissions"):
            firestore.set("bolt", {"quantity": 1, "price": 1.0})

    def test_server_error_not_retried_by_default(
        self, firestore: FirestoreStore, session: MagicMock
    ) -> None:
        session.request.return_value = _response(503)
        with pytest.raises(StoreError):
            firestore.get("bolt")
        assert session.request.call_count == 1

    def test_connection_error_wrapped(self, firestore: FirestoreStore, session: MagicMock) -> None:
        session.request.side_effect = requests.ConnectionError("refused")
        with pytest.raises(StoreError, match="refused"):
            firestore.list_all()

    def test_retries_when_configured(
        self, session: MagicMock, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setattr(time, "sleep", lambda _s: None)
        store = FirestoreStore(project_id="demo", retry_attempts=3, session=session)
        session.request.side_effect = [
            requests.Timeout("slow"),
            _response(200, _doc("bolt", 1, 1.0)),
        ]
        assert store.get("bolt") == {"quantity": 1, "price": 1.0}
        assert session.request.call_count == 2

    def test_api_key_sent_as_param(self, session: MagicMock) -> None:
        store = FirestoreStore(project_id="demo", api_key="k123", session=session)
        session.request.return_value = _response(404)
        store.get("bolt")
        assert session.request.call_args.kwargs["params"] == {"key": "k123"}

    def test_emulator_host(self, session: MagicMock) -> None:
        store = FirestoreStore(
            project_id="demo", emulator_host="localhost:8080", token="", session=session
        )
        assert store.base_url.startswith("http://localhost:8080/v1/projects/demo/")
        session.headers.update.assert_called_once_with({"Authorization": "Bearer owner"})


class TestRegistry:
    def test_known_backends(self) -> None:
        assert set(STORES) == {"firestore", "sqlite", "memory"}

    def test_open_memory(self) -> None:
        assert isinstance(open_store("Memory"), MemoryStore)

    def test_unknown_backend(self) -> None:
        with pytest.raises(InventoryError, match="Unknown store"):
            open_store("mongo")
