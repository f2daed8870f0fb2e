from pydantic import BaseModel
from typing import Any, Dict, Optional

class AskRequest(BaseModel):
    # Все поля обязательны, но проверяет их сам обработчик (400, а не 422):
    # типы свободные, чтобы false/0/null тоже считались отсутствующими
    grade: Any = None
    topic: Any = None
    contentType: Any = None
    question: Any = None

class AskResponse(BaseModel):
    result: str
    generationTimeMs: int
    usage: Optional[Dict[str, Any]] = None

class ErrorResponse(BaseModel):
    error: str
    type: Optional[str] = None

class HealthResponse(BaseModel):
    status: str
