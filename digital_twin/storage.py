"""Transaction persistence: remote collection first, local JSON storage otherwise."""

from __future__ import annotations

import json
import os
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Callable

from . import utils
from .dynamo import REMOTE_ERRORS, DynamoCollection
from .logging_setup import get_logger
from .models import Transaction

logger = get_logger(__name__)

LOCAL_USER_ID_KEY = "digital-twin:local-user-id"

Listener = Callable[[list[Transaction]], None]


def local_transactions_key(user_id: str) -> str:
    return f"digital-twin:{user_id}:transactions"


class LocalKeyValueStore:
    """String key/value storage backed by a single JSON file."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def _read(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Local storage at %s unreadable, starting empty: %s", self.path, exc)
            return {}
        if not isinstance(data, dict):
            return {}
        return {str(k): str(v) for k, v in data.items()}

    def _write(self, data: dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=".tmp-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(data, fh, indent=2)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def get_item(self, key: str) -> str | None:
        return self._read().get(key)

    def set_item(self, key: str, value: str) -> None:
        data = self._read()
        data[key] = value
        self._write(data)

    def remove_item(self, key: str) -> None:
        data = self._read()
        if data.pop(key, None) is not None:
            self._write(data)


class TransactionStore:
    """A user's transaction list with remote-or-local persistence.

    Every operation tries the remote collection when one is configured. Remote
    failures are logged and the change is applied to the in-memory list
    instead. The local JSON array is only written when there is no remote
    collection at all.
    """

    def __init__(
        self,
        user_id: str,
        local: LocalKeyValueStore,
        remote: DynamoCollection | None = None,
    ) -> None:
        self.user_id = user_id
        self.local = local
        self.remote = remote
        self.transactions: list[Transaction] = []
        self._listeners: list[Listener] = []

    @property
    def local_key(self) -> str:
        return local_transactions_key(self.user_id)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call ``listener`` with the full list after every change."""

        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def load(self) -> list[Transaction]:
        if self.remote is not None:
            try:
                self._replace(self._remote_snapshot())
                return self.transactions
            except REMOTE_ERRORS as exc:
                logger.warning("Remote snapshot failed, loading local storage: %s", exc)
        self._load_local()
        return self.transactions

    def add(self, payload: Transaction, now: datetime | None = None) -> None:
        if self.remote is not None:
            try:
                self.remote.add(dict(payload.to_record(include_id=False)))
                self._refresh()
                return
            except REMOTE_ERRORS as exc:
                logger.warning("Remote save failed: %s", exc)
        new_id = self._local_id(now, {tx.id for tx in self.transactions})
        self._replace([payload.with_id(new_id), *self.transactions])

    def update(self, tx_id: str, payload: Transaction) -> None:
        if self.remote is not None:
            try:
                self.remote.set(tx_id, dict(payload.to_record(include_id=False)))
                self._refresh()
                return
            except REMOTE_ERRORS as exc:
                logger.warning("Remote update failed: %s", exc)
        self._replace([tx.merged(payload) if tx.id == tx_id else tx for tx in self.transactions])

    def delete(self, tx_id: str) -> None:
        if self.remote is not None:
            try:
                self.remote.delete(tx_id)
                self._refresh()
                return
            except REMOTE_ERRORS as exc:
                logger.warning("Remote delete failed: %s", exc)
        self._replace([tx for tx in self.transactions if tx.id != tx_id])

    def get(self, tx_id: str) -> Transaction | None:
        return next((tx for tx in self.transactions if tx.id == tx_id), None)

    def sorted_by_date(self) -> list[Transaction]:
        """History order: newest date first, unparsable dates last."""

        def sort_key(tx: Transaction) -> tuple[int, str]:
            parsed = utils.parse_date(tx.date)
            return (1, parsed.isoformat()) if parsed else (0, "")

        return sorted(self.transactions, key=sort_key, reverse=True)

    @staticmethod
    def _local_id(now: datetime | None, taken: set[str | None]) -> str:
        millis = utils.epoch_millis(now)
        while f"local-{millis}" in taken:
            millis += 1
        return f"local-{millis}"

    def _remote_snapshot(self) -> list[Transaction]:
        assert self.remote is not None
        return [Transaction.from_record(doc) for doc in self.remote.list()]

    def _refresh(self) -> None:
        try:
            self._replace(self._remote_snapshot())
        except REMOTE_ERRORS as exc:
            logger.warning("Remote snapshot failed after write: %s", exc)

    def _load_local(self) -> None:
        raw = self.local.get_item(self.local_key)
        if raw is None:
            return
        try:
            records = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Discarding unparsable local transactions for %s", self.user_id)
            self._replace([])
            return
        if not isinstance(records, list):
            self._replace([])
            return
        loaded = [Transaction.from_record(r) for r in records if isinstance(r, dict)]
        taken = {tx.id for tx in loaded}
        for index, tx in enumerate(loaded):
            if tx.id is None:
                new_id = self._local_id(None, taken)
                taken.add(new_id)
                loaded[index] = tx.with_id(new_id)
        self._replace(loaded)

    def _replace(self, transactions: list[Transaction]) -> None:
        self.transactions = transactions
        if self.remote is None:
            self._persist_local()
        for listener in list(self._listeners):
            listener(self.transactions)

    def _persist_local(self) -> None:
        records = [tx.to_record() for tx in self.transactions]
        self.local.set_item(self.local_key, json.dumps(records))
