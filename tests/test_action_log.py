from datetime import date
from pathlib import Path

import pytest

from mokka.errors import PersistenceError
from mokka.storage.action_log import ActionLog, log_path


def test_log_path_per_symbol_or_day():
    assert log_path(Path("logs"), "symbol", "ETHUSDT") == Path("logs/ETHUSDT.jsonl")
    assert log_path(Path("logs"), "date", "ETHUSDT", today=date(2024, 3, 1)) == Path("logs/2024-03-01.jsonl")


def test_query_filters_sorts_and_limits(action_log):
    action_log.append({"market": "binance", "symbol": "BTCUSDT", "lastUpdate": 10, "n": 1})
    action_log.append({"market": "binance", "symbol": "ETHUSDT", "lastUpdate": 30, "n": 2})
    action_log.append({"market": "binance", "symbol": "BTCUSDT", "lastUpdate": 20, "n": 3})
    action_log.append({"market": "kraken", "symbol": "BTCUSDT", "lastUpdate": 40, "n": 4})

    rows = action_log.query({"market": "binance", "symbol": "BTCUSDT"}, sort_key="lastUpdate", descending=True)
    assert [r["n"] for r in rows] == [3, 1]

    newest = action_log.query({"symbol": "BTCUSDT"}, sort_key="lastUpdate", descending=True, limit=1)
    assert [r["n"] for r in newest] == [4]

    assert [r["n"] for r in action_log.query()] == [1, 2, 3, 4]


def test_ties_prefer_latest_append(action_log):
    action_log.append({"symbol": "BTCUSDT", "lastUpdate": 5, "n": 1})
    action_log.append({"symbol": "BTCUSDT", "lastUpdate": 5, "n": 2})
    rows = action_log.query(sort_key="lastUpdate", descending=True, limit=1)
    assert rows[0]["n"] == 2


def test_missing_file_is_empty(tmp_path):
    assert ActionLog(tmp_path / "nope.jsonl").query() == []


def test_malformed_lines_are_skipped(action_log):
    action_log.append({"n": 1})
    with action_log.path.open("a", encoding="utf-8") as fh:
        fh.write("{not json\n")
        fh.write("[1, 2]\n")
        fh.write("\n")
    action_log.append({"n": 2})
    assert [r["n"] for r in action_log.query()] == [1, 2]


def test_append_failure_raises_persistence_error(tmp_path):
    # parent "directory" is a regular file
    blocker = tmp_path / "blocker"
    blocker.write_text("x")
    log = ActionLog(blocker / "BTCUSDT.jsonl")
    with pytest.raises(PersistenceError):
        log.append({"n": 1})


def test_non_numeric_sort_value_raises_persistence_error(action_log):
    action_log.append({"market": "binance", "symbol": "BTCUSDT", "lastUpdate": 10, "type": "buy"})
    action_log.append({"market": "binance", "symbol": "BTCUSDT", "lastUpdate": "yesterday", "type": "buy"})

    with pytest.raises(PersistenceError, match="lastUpdate"):
        action_log.query(sort_key="lastUpdate", descending=True)
    # unsorted reads still work
    assert len(action_log.query()) == 2
