# eduask/prompts.py
from __future__ import annotations

import json
from pathlib import Path
from types import MappingProxyType
from typing import Mapping, Optional

DEFAULT_TEMPLATE_KEY = "lesson_summary"

# Синонимы типа контента -> ключ шаблона (сравнение без учёта регистра)
CONTENT_TYPE_SYNONYMS: Mapping[str, str] = MappingProxyType({
    "summary": "lesson_summary",
    "lesson summary": "lesson_summary",
    "practice": "practice_problems",
    "practice problems": "practice_problems",
    "step-by-step": "step_by_step_solution",
    "step by step": "step_by_step_solution",
    "step_by_step": "step_by_step_solution",
    "concept": "concept_explanation",
    "concept explanation": "concept_explanation",
    "quiz": "quiz_questions",
    "quiz questions": "quiz_questions",
})

PromptTemplateSet = Mapping[str, str]


class TemplateStoreError(RuntimeError):
    """Шаблоны не загрузились, а без них сервис не стартует."""


def load_templates(path: str) -> PromptTemplateSet:
    """
    Читает JSON-объект {ключ: шаблон} один раз при старте процесса.
    Возвращает read-only отображение. Обязателен ключ lesson_summary.
    """
    p = Path(path)
    try:
        raw = p.read_text(encoding="utf-8")
    except OSError as e:
        raise TemplateStoreError(f"cannot read prompt templates from {p}: {e}") from e

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise TemplateStoreError(f"malformed prompt templates in {p}: {e}") from e

    if not isinstance(data, dict):
        raise TemplateStoreError(f"prompt templates in {p} must be a JSON object")
    for key, body in data.items():
        if not isinstance(body, str):
            raise TemplateStoreError(f"template {key!r} in {p} must be a string")
    if DEFAULT_TEMPLATE_KEY not in data:
        raise TemplateStoreError(f"prompt templates in {p} lack the {DEFAULT_TEMPLATE_KEY!r} key")

    return MappingProxyType(dict(data))


def resolve_template_key(content_type: str) -> str:
    """Нормализуем тип контента; всё нераспознанное даёт lesson_summary."""
    return CONTENT_TYPE_SYNONYMS.get((content_type or "").lower(), DEFAULT_TEMPLATE_KEY)


def select_template(templates: PromptTemplateSet, key: str) -> str:
    return templates.get(key) or templates[DEFAULT_TEMPLATE_KEY]


def compose_prompt(template: str, grade: str, topic: str, question: Optional[str]) -> str:
    """
    Подставляет значения в шаблон.
    Заменяется только ПЕРВОЕ вхождение каждого плейсхолдера, повторные
    остаются как есть. Значения вставляются дословно, без экранирования.
    """
    return (
        template
        .replace("{grade}", grade, 1)
        .replace("{topic}", topic, 1)
        .replace("{question}", question or "", 1)
    )
