# ai_agent.py
from __future__ import annotations

import json
import logging
import math
import re
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from dataclasses import dataclass
from typing import Any, Optional, Union

from langchain_core.messages import HumanMessage, SystemMessage

from .config import DEFAULT_LLM_MODEL, DEFAULT_LLM_TIMEOUT_S, Settings
from .errors import InvalidSelectionError
from .models import HealthProfile, round_half_up

logger = logging.getLogger(__name__)

FREEFORM_MAX_CHARS = 300
_SCORE_IN_TEXT = re.compile(r"healthScore\D*(\d{1,3})", re.I)
_TRAILING_COMMA = re.compile(r",\s*([}\]])")

ROUTE_EXPLAINER_SYSTEM = """
    You are a route health advisor for people walking, cycling or driving in cities.
    You receive one route already scored 0-100 (higher = healthier) from its distance,
    its average air-quality index (AQI, higher = worse) and the traveller's health profile.
    Explain in 20 words or fewer why this route suits (or does not suit) that profile.

    Output (strict):
    - JSON only. {"healthScore": <int 0-100>, "explanation": "<20 words or fewer>"}
    - Repeat the given healthScore unless the inputs clearly contradict it.
    - Profiles: sensitive (asthma/allergies), children, elderly, default.
    - No greetings, no markdown.
    """


# =========================
# Response shapes
# =========================

@dataclass(frozen=True)
class Structured:
    score: int
    text: str


@dataclass(frozen=True)
class Freeform:
    text: str
    score: Optional[int] = None


@dataclass(frozen=True)
class Unparseable:
    raw: str = ""


ParsedExplanation = Union[Structured, Freeform, Unparseable]


def _safe_extract_json(text: str) -> Optional[dict]:
    first, last = text.find("{"), text.rfind("}")
    if first == -1 or last <= first:
        return None
    candidate = text[first:last + 1]
    for attempt in (candidate, _TRAILING_COMMA.sub(r"\1", candidate)):
        try:
            obj = json.loads(attempt)
        except ValueError:
            continue
        return obj if isinstance(obj, dict) else None
    return None


def _parse_structured(text: str) -> Optional[ParsedExplanation]:
    obj = _safe_extract_json(text)
    if obj is None:
        return None
    explanation = obj.get("explanation")
    if not isinstance(explanation, str) or not explanation.strip():
        # JSON without usable text: never show the raw object
        return Unparseable(raw=text)
    score = obj.get("healthScore")
    if isinstance(score, bool) or not isinstance(score, (int, float)) or not math.isfinite(score):
        return Freeform(text=explanation.strip()[:FREEFORM_MAX_CHARS])
    return Structured(score=int(max(0, min(100, round(score)))), text=explanation.strip())


def _parse_freeform(text: str) -> Optional[Freeform]:
    body = text.strip()
    if not body or body.startswith("{"):
        return None
    m = _SCORE_IN_TEXT.search(body)
    score = max(0, min(100, int(m.group(1)))) if m else None
    return Freeform(text=body[:FREEFORM_MAX_CHARS], score=score)


# structured first: a JSON answer also matches the freeform pattern
_RESOLVERS = (_parse_structured, _parse_freeform)


def parse_response(raw: Any) -> ParsedExplanation:
    if not isinstance(raw, str):
        return Unparseable(raw=repr(raw)[:100])
    for resolve in _RESOLVERS:
        parsed = resolve(raw)
        if parsed is not None:
            return parsed
    return Unparseable(raw=raw)


# =========================
# Provider
# =========================

@dataclass(frozen=True)
class Explanation:
    text: str
    source: str = "fallback"  # "model" | "fallback"
    model_score: Optional[int] = None


def _fmt(x: float) -> str:
    return f"{x:g}"


def _fmt_aqi(avg_index: float) -> str:
    if not math.isfinite(avg_index):
        return "n/a"
    return str(round_half_up(avg_index))


def fallback_explanation(distance_km: float, avg_index: float, profile: HealthProfile) -> str:
    # profile is printed as given; validation happens upstream
    name = getattr(profile, "value", profile) or HealthProfile.DEFAULT.value
    return (f"Balanced {_fmt(round(distance_km, 2))} km and AQI {_fmt_aqi(avg_index)}; "
            f"recommended for {name}.")


class ExplanationProvider:
    """
    Short rationale for a route score.

    Uses the chat model when an API key is configured, bounded by ``timeout_s``.
    Any failure (no key, timeout, transport error, unusable answer) yields the
    deterministic fallback sentence; ``explain`` never raises. No retries.
    """

    def __init__(self, api_key: Optional[str] = None, model: str = DEFAULT_LLM_MODEL,
                 timeout_s: float = DEFAULT_LLM_TIMEOUT_S, llm: Any = None):
        self.api_key = api_key
        self.model = model
        self.timeout_s = timeout_s
        self._llm = llm

    @classmethod
    def from_settings(cls, settings: Settings) -> "ExplanationProvider":
        return cls(api_key=settings.openai_api_key, model=settings.llm_model,
                   timeout_s=settings.llm_timeout_s)

    def _get_llm(self):
        if self._llm is None:
            from langchain_openai import ChatOpenAI

            self._llm = ChatOpenAI(
                model=self.model,
                temperature=0.2,
                api_key=self.api_key,
                timeout=self.timeout_s,
                max_retries=0,
            ).bind(response_format={"type": "json_object"})
        return self._llm

    def _messages(self, distance_km: float, avg_index: float, profile: HealthProfile, score: int) -> list:
        payload = {
            "distanceKm": round(distance_km, 2),
            "avgAqi": round_half_up(avg_index),
            "healthProfile": profile.value,
            "healthScore": score,
        }
        return [SystemMessage(content=ROUTE_EXPLAINER_SYSTEM),
                HumanMessage(content=f"Explain this route and answer in JSON.\n\n```json\n{json.dumps(payload)}\n```")]

    def _invoke(self, messages: list) -> Any:
        out = self._get_llm().invoke(messages)
        if isinstance(out, str):
            return out
        return getattr(out, "content", None)

    def explain_detailed(self, distance_km: float, avg_index: float, profile: HealthProfile,
                         score: int) -> Explanation:
        fallback = Explanation(text=fallback_explanation(distance_km, avg_index, profile))
        if not self.api_key:
            return fallback
        try:
            profile = HealthProfile.parse(profile)
        except InvalidSelectionError as e:
            logger.warning("%s; using fallback", e)
            return fallback
        if not math.isfinite(avg_index):
            return fallback

        messages = self._messages(distance_km, avg_index, profile, score)
        pool = ThreadPoolExecutor(max_workers=1, thread_name_prefix="explain")
        future = pool.submit(self._invoke, messages)
        try:
            raw = future.result(timeout=self.timeout_s)
        except FutureTimeout:
            future.cancel()
            logger.warning("explanation timed out after %.1fs; using fallback", self.timeout_s)
            return fallback
        except Exception as e:
            logger.warning("explanation call failed (%s: %s); using fallback", type(e).__name__, e)
            return fallback
        finally:
            # a hung call is abandoned, not awaited
            pool.shutdown(wait=False, cancel_futures=True)

        parsed = parse_response(raw)
        if isinstance(parsed, (Structured, Freeform)):
            return Explanation(text=parsed.text, source="model", model_score=parsed.score)
        logger.warning("unusable explanation response: %.80s", parsed.raw)
        return fallback

    def explain(self, distance_km: float, avg_index: float, profile: HealthProfile, score: int) -> str:
        return self.explain_detailed(distance_km, avg_index, profile, score).text
