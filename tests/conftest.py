# tests/conftest.py
from __future__ import annotations

import csv
import json
import os
import time
from pathlib import Path
from typing import Any, Dict, Callable

import pytest

# Фиктивный ключ: requests.post в тестах подменяется, в OpenAI никто не ходит
os.environ.setdefault("OPENAI_API_KEY", "sk-test")


RESULTS_DIR = Path("results")
RESULTS_DIR.mkdir(parents=True, exist_ok=True)

JSONL_PATH = RESULTS_DIR / "test_results.jsonl"
CSV_PATH   = RESULTS_DIR / "test_results.csv"


def _append_jsonl(record: Dict[str, Any]) -> None:
    with JSONL_PATH.open("a", encoding="utf-8") as f:
        f.write(json.dumps(record, ensure_ascii=False) + "\n")


def _append_csv(record: Dict[str, Any]) -> None:
    exists = CSV_PATH.exists()
    # Жёсткий и стабильный порядок колонок
    fieldnames = [
        "ts", "nodeid", "case", "status", "duration_sec",
        "content_type", "template_key", "http_status", "result", "generation_ms",
    ]
    with CSV_PATH.open("a", newline="", encoding="utf-8") as f:
        w = csv.DictWriter(f, fieldnames=fieldnames)
        if not exists:
            w.writeheader()
        row = {k: record.get(k) for k in fieldnames}
        w.writerow(row)


@pytest.fixture(scope="session", autouse=True)
def _clean_results_dir() -> None:
    for p in (JSONL_PATH, CSV_PATH):
        if p.exists():
            p.unlink()


@pytest.fixture
def record_result(request) -> Callable[..., None]:
    """
    Фикстура возвращает функцию, которой можно передать
    произвольные поля для записи в JSONL/CSV.
    """
    nodeid = request.node.nodeid

    def _record(
        *,
        case: str,
        status: str,
        duration_sec: float,
        content_type: str = "",
        template_key: str = "",
        http_status: int | None = None,
        result: str = "",
        generation_ms: int | None = None,
        extra: Dict[str, Any] | None = None,
    ) -> None:
        rec = {
            "ts": time.strftime("%Y-%m-%d %H:%M:%S"),
            "nodeid": nodeid,
            "case": case,
            "status": status,
            "duration_sec": round(float(duration_sec), 3),
            "content_type": content_type,
            "template_key": template_key,
            "http_status": http_status,
            "result": result,
            "generation_ms": generation_ms,
        }
        if extra:
            rec.update(extra)
        _append_jsonl(rec)
        _append_csv(rec)

    return _record


class FakeResponse:
    """Минимальная замена requests.Response для генератора."""

    def __init__(self, status_code: int = 200, data: Any = None, text: str = ""):
        self.status_code = status_code
        self._data = data
        self.text = text or (json.dumps(data) if data is not None else "")

    def json(self) -> Any:
        if self._data is None:
            raise ValueError("no json")
        return self._data


def openai_ok(content: str = "Generated lesson", usage: Dict[str, Any] | None = None) -> FakeResponse:
    data: Dict[str, Any] = {
        "id": "chatcmpl-1",
        "object": "chat.completion",
        "choices": [{"index": 0, "message": {"role": "assistant", "content": content}, "finish_reason": "stop"}],
    }
    if usage is not None:
        data["usage"] = usage
    return FakeResponse(200, data)


def openai_error(status: int, error_type: str | None = None, message: str = "upstream error") -> FakeResponse:
    return FakeResponse(status, {"error": {"message": message, "type": error_type, "code": None}})


@pytest.fixture
def fake_post(monkeypatch):
    """
    Подменяет requests.post в генераторе. Ответы берутся по очереди из
    fake_post.responses (последний повторяется); вызовы копятся в fake_post.calls.
    Элемент-исключение будет брошен вместо ответа.
    """
    from eduask import generator as gen_mod

    class _Fake:
        def __init__(self):
            self.responses: list = [openai_ok()]
            self.calls: list = []
            self.delay_sec = 0.0

        def __call__(self, url, headers=None, json=None, timeout=None):
            self.calls.append({"url": url, "headers": headers, "json": json, "timeout": timeout})
            if self.delay_sec:
                time.sleep(self.delay_sec)
            idx = min(len(self.calls) - 1, len(self.responses) - 1)
            item = self.responses[idx]
            if isinstance(item, Exception):
                raise item
            return item

    fake = _Fake()
    monkeypatch.setattr(gen_mod.requests, "post", fake)
    return fake
