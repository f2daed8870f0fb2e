# eduask/main.py
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse

from .config import settings
from .generator import CompletionError, Generator
from .logger import setup_logging
from .prompts import compose_prompt, load_templates, resolve_template_key, select_template
from .schemas import AskRequest, AskResponse, ErrorResponse, HealthResponse

setup_logging()
logger = logging.getLogger(__name__)

STATIC_DIR = Path(__file__).resolve().parent / "static"

MISSING_FIELDS = "Missing required fields"

# (status, type, сообщение для пользователя)
QUOTA_EXCEEDED = (429, "insufficient_quota", "You've exceeded your OpenAI API quota. Please check your plan and billing.")
RATE_LIMITED = (429, "rate_limit_exceeded", "Too many requests. Please wait before trying again.")
INVALID_KEY = (401, "invalid_api_key", "Invalid API key.")
BILLING_REQUIRED = (402, "insufficient_quota", "Insufficient quota. Please add billing info.")
SERVER_ERROR = (500, "server_error", "Something went wrong with the AI service.")

app = FastAPI(title="Edu Ask Relay", version="1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Шаблоны читаются один раз; без них процесс не стартует
templates = load_templates(settings.prompts_path)

generator = Generator(
    url=settings.openai_base_url,
    key=settings.openai_api_key,
    timeout=settings.request_timeout_sec,
    max_retries=settings.completion_max_retries,
)


def error_for(exc: Exception) -> tuple[int, str, str]:
    """Переводим ошибку апстрима в (status, type, message) для клиента."""
    if isinstance(exc, CompletionError):
        if exc.status == 429:
            return QUOTA_EXCEEDED if exc.error_type == "insufficient_quota" else RATE_LIMITED
        if exc.status == 401:
            return INVALID_KEY
        if exc.status == 402:
            return BILLING_REQUIRED
    return SERVER_ERROR


def _error_response(status: int, message: str, error_type: str | None = None) -> JSONResponse:
    body = ErrorResponse(error=message, type=error_type)
    return JSONResponse(status_code=status, content=body.model_dump(exclude_none=True))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    # Тело /api/ask, которое не разобралось как JSON-объект, считаем пустым запросом
    if request.url.path == "/api/ask":
        return _error_response(400, MISSING_FIELDS)
    return await request_validation_exception_handler(request, exc)


@app.get("/", include_in_schema=False)
def index():
    return FileResponse(STATIC_DIR / "index.html")


@app.get("/api/health", response_model=HealthResponse)
def health():
    return {"status": "Server is running"}


@app.post("/api/ask", response_model=AskResponse, responses={400: {"model": ErrorResponse}})
def ask(req: Optional[AskRequest] = None):
    # Falsy-проверка по сырым значениям: нет тела, null, "", 0, false
    if req is None or not (req.grade and req.topic and req.contentType and req.question):
        return _error_response(400, MISSING_FIELDS)
    grade, topic, content_type, question = (
        str(v) for v in (req.grade, req.topic, req.contentType, req.question)
    )

    try:
        key = resolve_template_key(content_type)
        prompt = compose_prompt(select_template(templates, key), grade, topic, question)
        completion = generator.complete(prompt)
        return AskResponse(
            result=completion.text,
            generationTimeMs=completion.elapsed_ms,
            usage=completion.usage,
        )
    except Exception as e:
        logger.error("Error calling OpenAI: %r", e, exc_info=not isinstance(e, CompletionError))
        status, error_type, message = error_for(e)
        return _error_response(status, message, error_type)
