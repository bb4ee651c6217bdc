import logging
import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

DEFAULT_LLM_MODEL = "gpt-4o-mini"
DEFAULT_LLM_TIMEOUT_S = 4.0
DEFAULT_MAX_WORKERS = 4


class Settings(BaseModel):
    openai_api_key: Optional[str] = Field(None, repr=False)
    llm_model: str = DEFAULT_LLM_MODEL
    llm_timeout_s: float = Field(DEFAULT_LLM_TIMEOUT_S, gt=0)
    max_workers: int = Field(DEFAULT_MAX_WORKERS, ge=1, le=16)

    @property
    def has_llm_credentials(self) -> bool:
        return bool(self.openai_api_key)


def _to_float(v, default):
    try:
        f = float(v)
    except (TypeError, ValueError):
        return default
    return f if f > 0 else default


def _to_int(v, default):
    try:
        return int(v)
    except (TypeError, ValueError):
        return default


def load_settings(use_dotenv: bool = True) -> Settings:
    """Read settings from the environment (and a local .env file when present)."""
    if use_dotenv:
        load_dotenv()
    timeout_raw = os.getenv("HEALTHROUTE_LLM_TIMEOUT")
    timeout = _to_float(timeout_raw, None)
    if timeout is None:
        if timeout_raw is not None:
            logger.warning("HEALTHROUTE_LLM_TIMEOUT=%r is not a positive number; using %ss", timeout_raw, DEFAULT_LLM_TIMEOUT_S)
        timeout = DEFAULT_LLM_TIMEOUT_S
    workers = _to_int(os.getenv("HEALTHROUTE_MAX_WORKERS"), DEFAULT_MAX_WORKERS) or DEFAULT_MAX_WORKERS
    return Settings(
        openai_api_key=os.getenv("OPENAI_API_KEY") or None,
        llm_model=os.getenv("HEALTHROUTE_LLM_MODEL") or DEFAULT_LLM_MODEL,
        llm_timeout_s=timeout,
        max_workers=max(1, min(16, workers)),  # clip to 1..16
    )
