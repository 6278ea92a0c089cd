"""Tests for the processed-post ledger."""

import json
from unittest.mock import patch

from src.parsers.ledger import ProcessedLedger


class TestLoad:
    def test_missing_file_is_created_empty(self, ledger_path):
        ledger = ProcessedLedger(ledger_path)
        ledger.load()
        assert len(ledger) == 0
        assert ledger_path.exists()
        assert json.loads(ledger_path.read_text()) == []

    def test_loads_existing_ids(self, ledger_path):
        ledger_path.parent.mkdir(parents=True)
        ledger_path.write_text(json.dumps(["1", "2", "3"]))
        ledger = ProcessedLedger(ledger_path)
        ledger.load()
        assert len(ledger) == 3
        assert ledger.has("2")
        assert "3" in ledger

    def test_numeric_ids_are_normalized_to_strings(self, ledger_path):
        ledger_path.parent.mkdir(parents=True)
        ledger_path.write_text("[101, 102]")
        ledger = ProcessedLedger(ledger_path)
        ledger.load()
        assert ledger.has("101")

    def test_corrupt_file_degrades_to_empty(self, ledger_path):
        ledger_path.parent.mkdir(parents=True)
        ledger_path.write_text("{not json")
        ledger = ProcessedLedger(ledger_path)
        ledger.load()
        assert len(ledger) == 0

    def test_non_array_payload_degrades_to_empty(self, ledger_path):
        ledger_path.parent.mkdir(parents=True)
        ledger_path.write_text('{"ids": ["1"]}')
        ledger = ProcessedLedger(ledger_path)
        ledger.load()
        assert len(ledger) == 0
        assert not ledger.has("1")


class TestMarkAndFlush:
    def test_mark_is_in_memory_until_flush(self, ledger_path):
        ledger = ProcessedLedger(ledger_path)
        ledger.load()
        ledger.mark("42")
        assert ledger.has("42")
        assert json.loads(ledger_path.read_text()) == []

        assert ledger.flush() is True
        assert json.loads(ledger_path.read_text()) == ["42"]

    def test_flush_survives_restart(self, ledger_path):
        ledger = ProcessedLedger(ledger_path)
        ledger.load()
        for item_id in ("3", "1", "2"):
            ledger.mark(item_id)
        ledger.flush()

        reloaded = ProcessedLedger(ledger_path)
        reloaded.load()
        assert len(reloaded) == 3
        assert all(reloaded.has(i) for i in ("1", "2", "3"))

    def test_marking_twice_keeps_single_entry(self, ledger_path):
        ledger = ProcessedLedger(ledger_path)
        ledger.load()
        ledger.mark("7")
        ledger.mark("7")
        ledger.flush()
        assert json.loads(ledger_path.read_text()) == ["7"]

    def test_flush_without_changes_does_not_write(self, ledger_path):
        ledger = ProcessedLedger(ledger_path)
        ledger.load()
        with patch("src.parsers.ledger.os.replace") as replace:
            assert ledger.flush() is True
        replace.assert_not_called()

    def test_flush_failure_returns_false_and_stays_dirty(self, ledger_path):
        ledger = ProcessedLedger(ledger_path)
        ledger.load()
        ledger.mark("9")
        with patch("src.parsers.ledger.os.replace", side_effect=OSError("disk full")):
            assert ledger.flush() is False
        assert ledger.has("9")

        # next flush retries the write
        assert ledger.flush() is True
        assert json.loads(ledger_path.read_text()) == ["9"]

    def test_no_temp_file_left_behind(self, ledger_path):
        ledger = ProcessedLedger(ledger_path)
        ledger.load()
        ledger.mark("1")
        ledger.flush()
        assert [p.name for p in ledger_path.parent.iterdir()] == [ledger_path.name]
