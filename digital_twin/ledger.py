"""Form controller for logging, editing and deleting transactions."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Literal

from . import utils
from .models import DEFAULT_CATEGORY, Transaction, build_payload
from .storage import TransactionStore

SubmitOutcome = Literal["added", "updated"]


@dataclass
class TransactionForm:
    amount: str = ""
    category: str = DEFAULT_CATEGORY
    date: str = ""

    @classmethod
    def blank(cls, now: datetime | None = None) -> "TransactionForm":
        return cls(amount="", category=DEFAULT_CATEGORY, date=utils.today_iso(now))

    @classmethod
    def from_transaction(cls, tx: Transaction) -> "TransactionForm":
        if not tx.amount:
            amount = ""
        elif float(tx.amount).is_integer():
            amount = str(int(tx.amount))
        else:
            amount = repr(float(tx.amount))
        return cls(amount=amount, category=tx.category, date=tx.date)


class Ledger:
    """Holds the form state and the id of the transaction being edited."""

    def __init__(self, store: TransactionStore, now: datetime | None = None) -> None:
        self.store = store
        self.form = TransactionForm.blank(now)
        self.editing_id: str | None = None

    @property
    def is_editing(self) -> bool:
        return self.editing_id is not None

    def submit(self, now: datetime | None = None) -> SubmitOutcome:
        """Save the form as a new transaction or as an edit of ``editing_id``.

        Raises :class:`~digital_twin.models.InvalidTransaction` and leaves the
        form untouched when the input is invalid.
        """

        payload = build_payload(self.form.amount, self.form.category, self.form.date, now)
        if self.editing_id is not None:
            self.store.update(self.editing_id, payload)
            self.editing_id = None
            outcome: SubmitOutcome = "updated"
        else:
            self.store.add(payload, now)
            outcome = "added"
        self.form = TransactionForm.blank(now)
        return outcome

    def begin_edit(self, tx: Transaction) -> None:
        self.form = TransactionForm.from_transaction(tx)
        self.editing_id = tx.id

    def cancel_edit(self, now: datetime | None = None) -> None:
        self.editing_id = None
        self.form = TransactionForm.blank(now)

    def delete(self, tx_id: str) -> None:
        if self.editing_id == tx_id:
            self.cancel_edit()
        self.store.delete(tx_id)
