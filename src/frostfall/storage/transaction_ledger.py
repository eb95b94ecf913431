"""Transaction ledger — at-most-once application of reward grants.

Narrative layers can resend the same reward description (a preview listing a
price, then the confirmation repeating it). Every grant carries a transaction
id; the ledger remembers applied ids for ``max_age`` and refuses repeats.

The ledger is owned by the application root and handed to whatever applies
rewards. It is the only shared mutable object in the engine, so all access
goes through a lock.
"""
from __future__ import annotations

import logging
import secrets
import string
import threading
import time
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)

DEFAULT_MAX_AGE = timedelta(minutes=30)

_ID_ALPHABET = string.ascii_lowercase + string.digits


@dataclass(frozen=True)
class ItemGrant:
    name: str
    quantity: int
    added: bool = True


@dataclass(frozen=True)
class TransactionRecord:
    id: str
    type: str
    character_id: str
    timestamp: float
    gold_amount: Optional[int] = None
    xp_amount: Optional[int] = None
    items: tuple[ItemGrant, ...] = ()


@dataclass(frozen=True)
class GoldChangeDecision:
    apply: bool
    reason: str


@dataclass
class FilteredUpdate:
    update: dict[str, Any]
    was_filtered: bool
    reason: str = "applied"


class TransactionLedger:
    """Expiring map of transaction id → recorded grant."""

    def __init__(
        self,
        character_id: str = "",
        max_age: timedelta = DEFAULT_MAX_AGE,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._character_id = character_id
        self._max_age_seconds = max_age.total_seconds()
        self._clock = clock
        self._transactions: dict[str, TransactionRecord] = {}
        self._lock = threading.Lock()

    @property
    def character_id(self) -> str:
        return self._character_id

    def set_character(self, character_id: str) -> None:
        """Switch the owning character. Switching forgets every recorded id."""
        with self._lock:
            if character_id != self._character_id:
                self._transactions.clear()
                self._character_id = character_id

    def _purge_expired(self) -> None:
        now = self._clock()
        expired = [
            txn_id for txn_id, record in self._transactions.items()
            if now - record.timestamp > self._max_age_seconds
        ]
        for txn_id in expired:
            del self._transactions[txn_id]
        if expired:
            logger.debug("Purged %d expired transactions", len(expired))

    def has_transaction(self, transaction_id: str) -> bool:
        with self._lock:
            self._purge_expired()
            return transaction_id in self._transactions

    def _build_record(
        self,
        transaction_id: str,
        gold_amount: Optional[int],
        items: list[ItemGrant] | tuple[ItemGrant, ...] | None,
        xp_amount: Optional[int],
    ) -> TransactionRecord:
        items = tuple(items or ())
        if gold_amount and not items:
            txn_type = "gold"
        elif not gold_amount and items:
            txn_type = "items"
        else:
            txn_type = "mixed"
        return TransactionRecord(
            id=transaction_id,
            type=txn_type,
            character_id=self._character_id,
            timestamp=self._clock(),
            gold_amount=gold_amount,
            xp_amount=xp_amount,
            items=items,
        )

    def record_transaction(
        self,
        transaction_id: str,
        gold_amount: Optional[int] = None,
        items: list[ItemGrant] | tuple[ItemGrant, ...] | None = None,
        xp_amount: Optional[int] = None,
    ) -> TransactionRecord:
        """Record a grant unconditionally, replacing any earlier record for the id."""
        with self._lock:
            record = self._build_record(transaction_id, gold_amount, items, xp_amount)
            self._transactions[transaction_id] = record
        logger.info("Recorded transaction %s (%s)", transaction_id, record.type)
        return record

    def claim(
        self,
        transaction_id: str,
        gold_amount: Optional[int] = None,
        items: list[ItemGrant] | tuple[ItemGrant, ...] | None = None,
        xp_amount: Optional[int] = None,
    ) -> Optional[TransactionRecord]:
        """Record a grant only if the id is not already recorded.

        The lookup and the write happen under one lock, so of several callers
        claiming the same id exactly one gets the record back; the rest get
        ``None`` and must not apply the grant.
        """
        with self._lock:
            self._purge_expired()
            if transaction_id in self._transactions:
                logger.warning("Duplicate transaction %s refused", transaction_id)
                return None
            record = self._build_record(transaction_id, gold_amount, items, xp_amount)
            self._transactions[transaction_id] = record
        logger.info("Claimed transaction %s (%s)", transaction_id, record.type)
        return record

    def generate_transaction_id(self) -> str:
        suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))
        return f"txn_{int(self._clock() * 1000)}_{suffix}"

    def should_apply_gold_change(
        self,
        gold_change: Optional[int],
        transaction_id: Optional[str] = None,
        is_preview: bool = False,
    ) -> GoldChangeDecision:
        """Decide whether a gold change may be applied.

        Zero or missing amounts, previews and already-recorded ids are refused.
        """
        if not isinstance(gold_change, int) or gold_change == 0:
            return GoldChangeDecision(apply=False, reason="no_change")
        if is_preview:
            return GoldChangeDecision(apply=False, reason="preview_only")
        if transaction_id and self.has_transaction(transaction_id):
            logger.warning("Duplicate transaction %s refused", transaction_id)
            return GoldChangeDecision(apply=False, reason="duplicate_transaction")
        return GoldChangeDecision(apply=True, reason="valid")

    def filter_update(self, update: dict[str, Any]) -> FilteredUpdate:
        """Strip a gold change that must not apply from a state update.

        Everything else in the update passes through. An applied gold change
        with a transaction id is claimed in the ledger so a resend, even a
        concurrent one, is refused.
        """
        decision = self.should_apply_gold_change(
            update.get("gold_change"),
            update.get("transaction_id"),
            bool(update.get("is_preview")),
        )
        if decision.apply and update.get("transaction_id"):
            if self.claim(update["transaction_id"], gold_amount=update["gold_change"]) is None:
                decision = GoldChangeDecision(apply=False, reason="duplicate_transaction")

        if not decision.apply and update.get("gold_change"):
            filtered = {k: v for k, v in update.items() if k != "gold_change"}
            return FilteredUpdate(update=filtered, was_filtered=True, reason=decision.reason)
        return FilteredUpdate(update=dict(update), was_filtered=False)

    def recent_transactions(self, limit: int = 10) -> list[TransactionRecord]:
        with self._lock:
            self._purge_expired()
            records = sorted(self._transactions.values(), key=lambda r: r.timestamp, reverse=True)
        return records[:limit]

    def reset(self) -> None:
        with self._lock:
            self._transactions.clear()

    def __len__(self) -> int:
        with self._lock:
            self._purge_expired()
            return len(self._transactions)
