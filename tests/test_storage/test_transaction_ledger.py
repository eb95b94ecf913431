"""Tests for src/frostfall/storage/transaction_ledger.py."""
from __future__ import annotations

import re
import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import timedelta

from frostfall.storage.transaction_ledger import ItemGrant, TransactionLedger


class TestTransactionIds:
    def test_format(self, ledger):
        assert re.fullmatch(r"txn_\d+_[a-z0-9]{9}", ledger.generate_transaction_id())

    def test_unique(self, ledger):
        ids = {ledger.generate_transaction_id() for _ in range(100)}
        assert len(ids) == 100


class TestRecordTransaction:
    def test_gold_only(self, ledger):
        record = ledger.record_transaction("t1", gold_amount=50)
        assert record.type == "gold"
        assert record.character_id == "char-1"
        assert ledger.has_transaction("t1")

    def test_items_only(self, ledger):
        record = ledger.record_transaction("t2", items=[ItemGrant(name="Lockpick", quantity=3)])
        assert record.type == "items"
        assert record.items == (ItemGrant(name="Lockpick", quantity=3),)

    def test_mixed(self, ledger):
        record = ledger.record_transaction("t3", gold_amount=5, items=[ItemGrant(name="Gem", quantity=1)])
        assert record.type == "mixed"

    def test_unknown_id(self, ledger):
        assert ledger.has_transaction("missing") is False


class TestExpiry:
    def test_kept_within_window(self, ledger, clock):
        ledger.record_transaction("t1", gold_amount=10)
        clock.advance(29 * 60)
        assert ledger.has_transaction("t1")

    def test_purged_after_window(self, ledger, clock):
        ledger.record_transaction("t1", gold_amount=10)
        clock.advance(31 * 60)
        assert not ledger.has_transaction("t1")
        assert len(ledger) == 0

    def test_custom_max_age(self, clock):
        short = TransactionLedger(max_age=timedelta(seconds=5), clock=clock)
        short.record_transaction("t1", gold_amount=1)
        clock.advance(6)
        assert not short.has_transaction("t1")


class TestShouldApplyGoldChange:
    def test_zero_is_no_change(self, ledger):
        decision = ledger.should_apply_gold_change(0)
        assert decision.apply is False
        assert decision.reason == "no_change"

    def test_missing_is_no_change(self, ledger):
        assert ledger.should_apply_gold_change(None).reason == "no_change"

    def test_preview_refused(self, ledger):
        decision = ledger.should_apply_gold_change(-100, "t1", is_preview=True)
        assert decision.apply is False
        assert decision.reason == "preview_only"

    def test_duplicate_refused(self, ledger):
        ledger.record_transaction("t1", gold_amount=100)
        decision = ledger.should_apply_gold_change(100, "t1")
        assert decision.apply is False
        assert decision.reason == "duplicate_transaction"

    def test_valid(self, ledger):
        decision = ledger.should_apply_gold_change(-25, "t9")
        assert decision.apply is True
        assert decision.reason == "valid"

    def test_valid_without_id(self, ledger):
        assert ledger.should_apply_gold_change(10).apply is True


class TestFilterUpdate:
    def test_applied_change_recorded(self, ledger):
        result = ledger.filter_update({"gold_change": -50, "transaction_id": "buy_1", "narrative": "You buy a sword."})
        assert result.was_filtered is False
        assert result.update["gold_change"] == -50
        assert ledger.has_transaction("buy_1")

    def test_resend_stripped(self, ledger):
        update = {"gold_change": -50, "transaction_id": "buy_1", "narrative": "You buy a sword."}
        ledger.filter_update(update)
        result = ledger.filter_update(update)
        assert result.was_filtered is True
        assert result.reason == "duplicate_transaction"
        assert "gold_change" not in result.update
        assert result.update["narrative"] == "You buy a sword."

    def test_preview_stripped_and_not_recorded(self, ledger):
        result = ledger.filter_update({"gold_change": -50, "transaction_id": "quote_1", "is_preview": True})
        assert result.was_filtered is True
        assert result.reason == "preview_only"
        assert not ledger.has_transaction("quote_1")

    def test_update_without_gold_passes(self, ledger):
        result = ledger.filter_update({"narrative": "Nothing happens."})
        assert result.was_filtered is False
        assert result.update == {"narrative": "Nothing happens."}

    def test_input_not_mutated(self, ledger):
        ledger.record_transaction("dup", gold_amount=1)
        update = {"gold_change": 1, "transaction_id": "dup"}
        ledger.filter_update(update)
        assert update == {"gold_change": 1, "transaction_id": "dup"}


class TestCharacterSwitch:
    def test_switch_clears(self, ledger):
        ledger.record_transaction("t1", gold_amount=10)
        ledger.set_character("char-2")
        assert ledger.character_id == "char-2"
        assert not ledger.has_transaction("t1")

    def test_same_character_keeps(self, ledger):
        ledger.record_transaction("t1", gold_amount=10)
        ledger.set_character("char-1")
        assert ledger.has_transaction("t1")


class TestHousekeeping:
    def test_recent_newest_first(self, ledger, clock):
        ledger.record_transaction("old", gold_amount=1)
        clock.advance(10)
        ledger.record_transaction("new", gold_amount=2)
        assert [r.id for r in ledger.recent_transactions()] == ["new", "old"]
        assert [r.id for r in ledger.recent_transactions(limit=1)] == ["new"]

    def test_reset(self, ledger):
        ledger.record_transaction("t1", gold_amount=1)
        ledger.reset()
        assert len(ledger) == 0


class TestClaim:
    def test_first_claim_recorded(self, ledger):
        record = ledger.claim("t1", gold_amount=20, xp_amount=5)
        assert record is not None
        assert record.xp_amount == 5
        assert ledger.has_transaction("t1")

    def test_second_claim_refused(self, ledger):
        ledger.claim("t1", gold_amount=20)
        assert ledger.claim("t1", gold_amount=20) is None
        assert ledger.recent_transactions()[0].gold_amount == 20

    def test_expired_id_can_be_claimed_again(self, ledger, clock):
        ledger.claim("t1", gold_amount=20)
        clock.advance(31 * 60)
        assert ledger.claim("t1", gold_amount=20) is not None

    def test_concurrent_claims_grant_once(self, ledger):
        workers = 8
        barrier = threading.Barrier(workers)

        def claim_once(_):
            barrier.wait()
            return ledger.claim("txn_same", gold_amount=50)

        with ThreadPoolExecutor(max_workers=workers) as pool:
            results = list(pool.map(claim_once, range(workers)))
        assert sum(r is not None for r in results) == 1
        assert len(ledger) == 1

    def test_concurrent_filter_update_applies_once(self, ledger):
        workers = 8
        barrier = threading.Barrier(workers)

        def resend(_):
            barrier.wait()
            return ledger.filter_update({"gold_change": 100, "transaction_id": "t1"})

        with ThreadPoolExecutor(max_workers=workers) as pool:
            results = list(pool.map(resend, range(workers)))
        applied = [r for r in results if not r.was_filtered]
        assert len(applied) == 1
        assert all(r.reason == "duplicate_transaction" for r in results if r.was_filtered)
