# eduask/generator.py
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

import requests

from .config import settings

logger = logging.getLogger(__name__)

RETRY_STATUSES = (429, 500, 502, 503, 504)

# Параметры генерации фиксированы, через окружение не меняются
MODEL = "gpt-3.5-turbo"
MAX_TOKENS = 1000
TEMPERATURE = 0.7


class CompletionError(Exception):
    """
    Ошибка обращения к API модели.
    status: HTTP-код апстрима (None для сетевых ошибок),
    error_type: поле error.type из ответа OpenAI (или своё служебное значение).
    """

    def __init__(self, status: Optional[int], error_type: Optional[str], message: str):
        super().__init__(message)
        self.status = status
        self.error_type = error_type
        self.message = message

    def __repr__(self) -> str:
        return f"CompletionError(status={self.status!r}, type={self.error_type!r}, message={self.message!r})"


@dataclass(frozen=True)
class Completion:
    text: str
    elapsed_ms: int
    usage: Optional[Dict[str, Any]] = None


def _error_from_response(resp: requests.Response) -> CompletionError:
    """Разбираем конверт ошибки OpenAI: {"error": {"message", "type", "code"}}."""
    error_type = None
    message = resp.text
    try:
        data = resp.json()
    except ValueError:
        data = None
    if isinstance(data, dict) and isinstance(data.get("error"), dict):
        err = data["error"]
        error_type = err.get("type") or err.get("code")
        message = err.get("message") or message
    return CompletionError(resp.status_code, error_type, f"[OpenAI HTTP {resp.status_code}] {message}")


# основной генератор #

class Generator:
    def __init__(
        self,
        url: Optional[str] = None,
        key: Optional[str] = None,
        timeout: Optional[int] = None,
        max_retries: Optional[int] = None,
    ):
        base = url or settings.openai_base_url
        self.url = base.rstrip("/") + "/chat/completions"
        self.key = key or settings.openai_api_key
        self.timeout = timeout if timeout is not None else settings.request_timeout_sec
        self.max_retries = max_retries if max_retries is not None else settings.completion_max_retries
        self.backoff_sec = 0.75

    def complete(self, prompt: str) -> Completion:
        """
        Одно сообщение role=user с готовым промптом.
        Возвращает текст, время генерации (мс) и usage, если API его прислал.
        Ошибки пробрасываются вызывающему как CompletionError.
        """
        payload = {
            "model": MODEL,
            "messages": [{"role": "user", "content": prompt}],
            "max_tokens": MAX_TOKENS,
            "temperature": TEMPERATURE,
        }

        t0 = time.perf_counter()
        data = self._call_openai(payload)
        elapsed_ms = int(round((time.perf_counter() - t0) * 1000))

        try:
            text = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise CompletionError(502, "bad_response", f"[OpenAI unexpected] {e!r}") from e

        usage = data.get("usage")
        return Completion(
            text=text or "",
            elapsed_ms=elapsed_ms,
            usage=usage if isinstance(usage, dict) else None,
        )

    # низкоуровневый вызов OpenAI #
    def _call_openai(self, payload: dict) -> dict:
        # 0) Проверка ключа, чтобы не посылать Bearer None
        if not self.key:
            raise CompletionError(401, "invalid_api_key", "Missing OPENAI_API_KEY (set env var)")

        attempts = 1 + max(self.max_retries, 0)
        backoff = self.backoff_sec

        for attempt in range(1, attempts + 1):
            try:
                resp = requests.post(
                    self.url,
                    headers={
                        "Content-Type": "application/json",
                        "Accept": "application/json",
                        "Authorization": f"Bearer {self.key}",
                    },
                    json=payload,
                    timeout=self.timeout,
                )
            except requests.RequestException as e:
                err = CompletionError(None, "network_error", f"[OpenAI exception] {e}")
                if attempt < attempts:
                    logger.warning("OpenAI request failed (attempt %d/%d): %s", attempt, attempts, e)
                    time.sleep(backoff)
                    backoff *= 2
                    continue
                raise err from e

            if resp.status_code != 200:
                err = _error_from_response(resp)
                if resp.status_code in RETRY_STATUSES and attempt < attempts:
                    logger.warning("OpenAI HTTP %d (attempt %d/%d), retrying", resp.status_code, attempt, attempts)
                    time.sleep(backoff)
                    backoff *= 2
                    continue
                raise err

            try:
                data = resp.json()
            except ValueError as e:
                raise CompletionError(502, "bad_response", f"[OpenAI parse error] {e}") from e
            if not isinstance(data, dict):
                raise CompletionError(502, "bad_response", "[OpenAI unexpected] response is not an object")
            return data

        # сюда не дойдём: последняя попытка либо вернула данные, либо бросила ошибку
        raise CompletionError(None, "network_error", "[OpenAI] Unknown error")
