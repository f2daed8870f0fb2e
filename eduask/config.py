# config.py
# Совместимо с Python 3.10 и Pydantic v2 / pydantic-settings v2

from pathlib import Path
from typing import Optional
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# Шаблоны промптов лежат рядом с пакетом
DEFAULT_PROMPTS_PATH = str(Path(__file__).resolve().parent / "prompts.json")


class Settings(BaseSettings):
    """
    Единая конфигурация приложения.
    - Значения читаются из переменных окружения и файла .env (если он есть).
    - Безопасно работать без OPENAI_API_KEY (например, в тестах); генератор
      сам проверяет наличие ключа и отвечает ошибкой invalid_api_key.
    """

    # Ключ OpenAI. Можно не задавать в тестах/локалке.
    openai_api_key: Optional[str] = None

    # Корень OpenAI-совместимого API (chat/completions добавляется генератором)
    openai_base_url: str = Field(default="https://api.openai.com/v1")

    # === Сервисные параметры ===
    # Таймаут HTTP-запроса к API модели (сек)
    # Переменная окружения: REQUEST_TIMEOUT_SEC
    request_timeout_sec: int = Field(default=60)

    # Ретраи на 429/5xx/сетевые ошибки. 0: без повторов.
    # Переменная окружения: COMPLETION_MAX_RETRIES
    completion_max_retries: int = Field(default=0)

    # Файл с шаблонами промптов (JSON: ключ -> шаблон)
    # Переменная окружения: PROMPTS_PATH
    prompts_path: str = Field(default=DEFAULT_PROMPTS_PATH)

    # Сервер
    # Переменные окружения: HOST, PORT, OPEN_BROWSER
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=3000)
    open_browser: bool = Field(default=False)

    # Логирование: LOG_LEVEL, LOG_FILE (пусто: только консоль)
    log_level: str = Field(default="INFO")
    log_file: Optional[str] = None

    # Настройки загрузки из .env, игнор лишних переменных, нечувствительность к порядку
    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )


# Глобальный объект настроек
settings = Settings()
