from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Settings:
    redis_url: str
    environment: str
    backend_api_url: str
    backend_api_token: Optional[str]
    pdf_render_url: Optional[str]
    public_base_url: str
    request_timeout: float
    log_level: str
    queue_name: str
    log_format: str = "text"

    @property
    def json_logs(self) -> bool:
        return self.log_format == "json"


def _default_log_format(environment: str) -> str:
    return "text" if environment in ("local", "development", "dev", "test") else "json"

def get_settings() -> Settings:
    environment = os.getenv("ENVIRONMENT", "local")
    return Settings(
        redis_url=os.getenv("REDIS_URL", "redis://localhost:6379/0"),
        environment=environment,
        backend_api_url=os.getenv("BACKEND_API_URL", "http://localhost:8080/api/v1"),
        backend_api_token=os.getenv("BACKEND_API_TOKEN") or None,
        pdf_render_url=os.getenv("PDF_RENDER_URL") or None,
        public_base_url=os.getenv("PUBLIC_BASE_URL", "http://localhost:8000").rstrip("/"),
        request_timeout=float(os.getenv("REQUEST_TIMEOUT", "30")),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        queue_name=os.getenv("REPORT_QUEUE", "reports"),
        log_format=os.getenv("LOG_FORMAT", _default_log_format(environment)).strip().lower(),
    )
