"""Remote generative-language backend producing the same result contract.

Sends the document to the Gemini ``generateContent`` REST endpoint and
normalizes the JSON it answers with into an ``AnalysisResult``. This is an
alternative to the rule-based classifier, selected by the caller.
"""

from __future__ import annotations

import json
import logging
import os
import re
from typing import Any

import requests

from lexilens.classifier import (
    POINT_COUNT,
    VERDICT_COLORS,
    AnalysisResult,
    Point,
    Verdict,
    pad_points,
)
from lexilens.config import RemoteConfig
from lexilens.rules.base import SEVERITY_PRIORITY

logger = logging.getLogger(__name__)

SAFETY_CATEGORIES = (
    "HARM_CATEGORY_HARASSMENT",
    "HARM_CATEGORY_HATE_SPEECH",
    "HARM_CATEGORY_SEXUALLY_EXPLICIT",
    "HARM_CATEGORY_DANGEROUS_CONTENT",
)

PROMPT_TEMPLATE = """You are "LexiLens", a user advocate protecting people from bad legal terms.
Analyze the following Terms & Conditions text.

GOAL:
1. Identify the 5 most important risks or weird clauses the user should know.
2. Decide if the document is "Safe", "Caution", or "Not Recommended".

OUTPUT FORMAT (Strict JSON only, no markdown):
{{
    "points": [
        {{
            "title": "Short Title (e.g. Data Selling)",
            "explanation_en": "Simple explanation in English (Max 2-3 short sentences).",
            "explanation_hi": "Same explanation in Hinglish (Roman Hindi), 2-3 short sentences.",
            "severity": "CRITICAL" | "CAUTION" | "SAFE",
            "type": "Data Risk" | "Money Risk" | "Legal Risk" | "User Rights"
        }}
    ],
    "verdict": {{
        "title": "Safe to Install" | "Install with Caution" | "Not Recommended",
        "color": "green" | "orange" | "red",
        "reason": "Short summary of why (e.g. 'Standard terms found' or 'Data selling detected')."
    }}
}}

RULES:
- "CRITICAL": Data selling, hidden fees, zero liability, aggressive tracking.
- "CAUTION": Arbitration, no refunds, standard data sharing.
- "SAFE": Explicit user ownership, no data selling, privacy defaults.
- Keep explanations CONCISE (2-3 lines max).
- Ensure 'explanation_hi' is natural sounding Hinglish (not pure Hindi).

TEXT TO ANALYZE:
"{text}"
"""

_FENCE_RE = re.compile(r"```(?:json)?")


class RemoteAnalysisError(Exception):
    """Remote analysis could not produce a result."""


class GeminiAnalyzer:
    """Analyzer backed by the Gemini REST API."""

    def __init__(
        self,
        config: RemoteConfig | None = None,
        *,
        session: requests.Session | None = None,
        api_key: str | None = None,
    ) -> None:
        self.config = config or RemoteConfig()
        self.session = session or requests.Session()
        self._api_key = api_key

    @property
    def endpoint(self) -> str:
        return f"{self.config.api_url.rstrip('/')}/{self.config.model}:generateContent"

    def analyze(self, text: str) -> AnalysisResult:
        if not text or len(text) < self.config.min_chars:
            raise RemoteAnalysisError("Text too short.")

        api_key = self._resolve_api_key()
        body = build_request_body(text, max_chars=self.config.max_chars)
        try:
            response = self.session.post(
                self.endpoint,
                params={"key": api_key},
                json=body,
                timeout=self.config.timeout_seconds,
            )
            data = response.json()
        except requests.exceptions.Timeout as exc:
            logger.warning("Gemini request timed out after %ds", self.config.timeout_seconds)
            raise RemoteAnalysisError(
                f"Analysis Error: request timed out after {self.config.timeout_seconds}s"
            ) from exc
        except (requests.exceptions.RequestException, ValueError) as exc:
            logger.warning("Gemini request failed: %s", exc)
            raise RemoteAnalysisError(f"Analysis Error: {exc}") from exc

        return parse_response(data)

    def _resolve_api_key(self) -> str:
        if self._api_key:
            return self._api_key
        api_key = os.environ.get(self.config.api_key_env, "").strip()
        if not api_key:
            raise RemoteAnalysisError(
                f"Missing API key: set the {self.config.api_key_env} environment variable."
            )
        return api_key


def build_request_body(text: str, *, max_chars: int) -> dict[str, Any]:
    """Build the generateContent payload, truncating the document to ``max_chars``."""
    prompt = PROMPT_TEMPLATE.format(text=text[:max_chars])
    return {
        "contents": [{"parts": [{"text": prompt}]}],
        "safetySettings": [
            {"category": category, "threshold": "BLOCK_ONLY_HIGH"}
            for category in SAFETY_CATEGORIES
        ],
    }


def parse_response(data: Any) -> AnalysisResult:
    """Turn a decoded generateContent response into an ``AnalysisResult``."""
    if not isinstance(data, dict):
        raise RemoteAnalysisError("Analysis Error: unexpected response shape.")

    error = data.get("error")
    if error:
        message = error.get("message") if isinstance(error, dict) else str(error)
        raise RemoteAnalysisError(f"Google API Error: {message}")

    candidates = data.get("candidates") or []
    if not candidates:
        feedback = data.get("promptFeedback")
        if isinstance(feedback, dict) and feedback.get("blockReason"):
            raise RemoteAnalysisError(f"AI Blocked Data: {feedback['blockReason']}")
        status = "SafetyBlock" if feedback else "Unknown"
        raise RemoteAnalysisError(f"AI No Candidates. Status: {status}")

    try:
        raw_text = candidates[0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError) as exc:
        raise RemoteAnalysisError("Analysis Error: candidate has no text part.") from exc

    json_text = _FENCE_RE.sub("", raw_text).strip()
    try:
        payload = json.loads(json_text)
    except json.JSONDecodeError as exc:
        logger.warning("Gemini answered with non-JSON text: %.80s", json_text)
        raise RemoteAnalysisError(f"Analysis Error: {exc}") from exc
    return result_from_payload(payload)


def result_from_payload(payload: Any) -> AnalysisResult:
    """Normalize a ``{points, verdict}`` mapping to exactly five points and a valid verdict."""
    if not isinstance(payload, dict):
        raise RemoteAnalysisError("Analysis Error: result must be a JSON object.")

    raw_points = payload.get("points") or []
    if not isinstance(raw_points, list):
        raise RemoteAnalysisError("Analysis Error: points must be a list.")
    points = [_point_from_mapping(item) for item in raw_points[:POINT_COUNT]]

    raw_verdict = payload.get("verdict")
    if not isinstance(raw_verdict, dict):
        raise RemoteAnalysisError("Analysis Error: verdict is missing.")
    color = str(raw_verdict.get("color") or "").lower()
    if color not in VERDICT_COLORS:
        raise RemoteAnalysisError(f"Analysis Error: unknown verdict color {color!r}.")

    return AnalysisResult(
        points=pad_points(points),
        verdict=Verdict(
            title=str(raw_verdict.get("title") or ""),
            color=color,
            reason=str(raw_verdict.get("reason") or ""),
        ),
    )


def _point_from_mapping(item: Any) -> Point:
    if not isinstance(item, dict):
        raise RemoteAnalysisError("Analysis Error: each point must be an object.")
    severity = str(item.get("severity") or "").upper()
    if severity not in SEVERITY_PRIORITY:
        severity = "INFO"
    explanation_hi = item.get("explanation_hi")
    return Point(
        title=str(item.get("title") or ""),
        explanation=str(item.get("explanation_en") or item.get("explanation") or ""),
        severity=severity,
        type=str(item.get("type") or "General Info"),
        explanation_hi=None if explanation_hi is None else str(explanation_hi),
    )
