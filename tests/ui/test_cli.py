from __future__ import annotations

import io
import json
from typing import TYPE_CHECKING

import pytest

from entrysync.domain.errors import FeedNotFoundError
from entrysync.domain.reconciliation import BatchResult, ItemAction, ItemOutcome, ItemResult
from entrysync.ui import cli as cli_module
from tests.helpers.receiver import batch_payload, entry_payload

if TYPE_CHECKING:
    from collections.abc import Mapping
    from pathlib import Path


@pytest.fixture
def received(monkeypatch: pytest.MonkeyPatch) -> list[Mapping[str, object]]:
    captured: list[Mapping[str, object]] = []

    def fake_receive(payload: Mapping[str, object]) -> BatchResult:
        captured.append(payload)
        feed = payload["feed"]
        assert isinstance(feed, dict)
        return BatchResult(feed_id=int(feed["id"]))

    monkeypatch.setattr(cli_module, "initialize_database", lambda **_: None)
    monkeypatch.setattr(cli_module, "receive_batch", fake_receive)
    return captured


def test_receive_json_file(tmp_path: Path, received: list[Mapping[str, object]]) -> None:
    path = tmp_path / "batch.json"
    path.write_text(json.dumps(batch_payload(1, entry_payload("a"))), encoding="utf-8")

    cli_module.main(["receive", str(path)])

    assert len(received) == 1
    assert received[0]["feed"] == {"id": 1}


def test_receive_json_list_and_jsonl(tmp_path: Path, received: list[Mapping[str, object]]) -> None:
    listing = tmp_path / "batches.json"
    listing.write_text(json.dumps([batch_payload(1), batch_payload(2)]), encoding="utf-8")
    lines = tmp_path / "batches.jsonl"
    lines.write_text(
        json.dumps(batch_payload(3)) + "\n\n" + json.dumps(batch_payload(4)) + "\n",
        encoding="utf-8",
    )

    cli_module.main(["receive", str(listing), str(lines)])

    assert [batch["feed"]["id"] for batch in received] == [1, 2, 3, 4]  # type: ignore[index]


def test_receive_from_stdin(
    monkeypatch: pytest.MonkeyPatch, received: list[Mapping[str, object]]
) -> None:
    monkeypatch.setattr("sys.stdin", io.StringIO(json.dumps(batch_payload(9))))

    cli_module.main(["receive", "-"])

    assert len(received) == 1


def test_receive_invalid_json_exits_2(
    tmp_path: Path, received: list[Mapping[str, object]]
) -> None:
    path = tmp_path / "broken.json"
    path.write_text("{not json", encoding="utf-8")

    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(["receive", str(path)])

    assert excinfo.value.code == 2
    assert received == []


def test_receive_non_object_batch_exits_2(
    tmp_path: Path, received: list[Mapping[str, object]]
) -> None:
    path = tmp_path / "numbers.json"
    path.write_text("[1, 2]", encoding="utf-8")

    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(["receive", str(path)])

    assert excinfo.value.code == 2
    assert received == []


def test_rejected_batch_exits_1_after_processing_the_rest(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    seen: list[int] = []

    def fake_receive(payload: Mapping[str, object]) -> BatchResult:
        feed_id = int(payload["feed"]["id"])  # type: ignore[index]
        seen.append(feed_id)
        if feed_id == 1:
            raise FeedNotFoundError(feed_id)
        return BatchResult(feed_id=feed_id)

    monkeypatch.setattr(cli_module, "initialize_database", lambda **_: None)
    monkeypatch.setattr(cli_module, "receive_batch", fake_receive)
    path = tmp_path / "batches.json"
    path.write_text(json.dumps([batch_payload(1), batch_payload(2)]), encoding="utf-8")

    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(["receive", str(path)])

    assert excinfo.value.code == 1
    assert seen == [1, 2]


def test_item_failures_do_not_fail_the_run(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    def fake_receive(payload: Mapping[str, object]) -> BatchResult:
        _ = payload
        failed = ItemResult(public_id="a", action=ItemAction.CREATE, outcome=ItemOutcome.FAILED)
        return BatchResult(feed_id=1, items=[failed])

    monkeypatch.setattr(cli_module, "initialize_database", lambda **_: None)
    monkeypatch.setattr(cli_module, "receive_batch", fake_receive)
    path = tmp_path / "batch.json"
    path.write_text(json.dumps(batch_payload(1)), encoding="utf-8")

    cli_module.main(["receive", str(path)])


def test_init_db_passes_database_uri(monkeypatch: pytest.MonkeyPatch) -> None:
    captured: dict[str, object] = {}

    def fake_initialize(**kwargs: object) -> None:
        captured.update(kwargs)

    monkeypatch.setattr(cli_module, "initialize_database", fake_initialize)

    cli_module.main(["init-db", "--database-uri", "sqlite+pysqlite:///:memory:"])

    assert captured == {"database_uri": "sqlite+pysqlite:///:memory:"}


def test_database_failure_exits_1(monkeypatch: pytest.MonkeyPatch) -> None:
    def broken(**_: object) -> None:
        raise RuntimeError("cannot connect")

    monkeypatch.setattr(cli_module, "initialize_database", broken)

    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(["init-db"])

    assert excinfo.value.code == 1


def test_missing_command_exits_2() -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli_module.main([])

    assert excinfo.value.code == 2
