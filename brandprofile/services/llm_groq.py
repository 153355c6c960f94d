import json
import logging
from typing import Any, Dict, List, Optional

import httpx
from pydantic import ValidationError

from brandprofile.config import settings
from brandprofile.exceptions import ClassificationError, InvalidEnhancementError
from brandprofile.models.schemas import SemanticEnhancement
from brandprofile.services.classifier import ClassificationRequest

logger = logging.getLogger(__name__)


class GroqLLMError(ClassificationError):
    """Transport-level failure talking to the Groq chat completion API."""


def call_groq_llm(system_prompt: str, user_prompt: str, temperature: float = 0.0,
                  client: Optional[httpx.Client] = None) -> Dict[str, Any]:
    """
    Blocking chat completion in JSON mode; returns the decoded JSON object.

    Transport errors are retried `LLM_RETRIES` times. HTTP errors, a missing
    key and non-JSON answers raise GroqLLMError straight away.
    """
    if not settings.GROQ_API_KEY:
        raise GroqLLMError("GROQ_API_KEY is not configured")

    payload = {
        "model": settings.GROQ_MODEL,
        "temperature": temperature,
        "response_format": {"type": "json_object"},
        "messages": [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ],
    }
    headers = {
        "Authorization": f"Bearer {settings.GROQ_API_KEY}",
        "User-Agent": settings.USER_AGENT,
    }

    owns_client = client is None
    if owns_client:
        client = httpx.Client(timeout=settings.LLM_TIMEOUT_SECS)
    try:
        r = None
        last_error: Optional[Exception] = None
        for _ in range(settings.LLM_RETRIES + 1):
            try:
                r = client.post(settings.GROQ_API_URL, json=payload, headers=headers)
                break
            except httpx.RequestError as e:
                last_error = e
                continue
        if r is None:
            raise GroqLLMError(f"request failed: {last_error}")
        if r.status_code >= 400:
            raise GroqLLMError(f"status {r.status_code}: {r.text[:300]}")
        try:
            content = r.json()["choices"][0]["message"]["content"]
            data = json.loads(content)
        except (KeyError, IndexError, TypeError, ValueError) as e:
            raise GroqLLMError(f"unreadable completion: {e}")
    finally:
        if owns_client:
            client.close()

    if not isinstance(data, dict):
        raise GroqLLMError("completion is not a JSON object")
    return data


SYSTEM_PROMPT = """
You are a brand design analyst. You will be given:
- heuristic: a brand profile computed from page styles (colors, fonts, spacing),
- buttons: ranked button candidates, each with an index, text, classes and colors,
- logo_candidates: possible logo images, each with an index, position and whether it sits in the header,
- brand_name and url of the page.

Decide which button is the primary call to action and which is the secondary one,
which colors play the primary / accent / background / text / link roles,
and which logo candidate is the site's own logo.

Return ONLY a JSON object of this shape:

{
  "buttonClassification": { "primaryIndex": int|null, "secondaryIndex": int|null, "confidence": 0-1, "reasoning": "<string>" },
  "colorRoles": { "primary": "#RRGGBB"|null, "accent": "#RRGGBB"|null, "background": "#RRGGBB"|null, "textPrimary": "#RRGGBB"|null, "link": "#RRGGBB"|null, "confidence": 0-1 },
  "logoSelection": { "selectedIndex": int|null, "confidence": 0-1, "reasoning": "<string>" } | null
}

RULES:
1) Indices must refer to the lists you were given; use null when unsure.
2) Colors must be hex strings.
3) Output ONLY the JSON.
"""


def _button_lines(request: ClassificationRequest) -> List[Dict[str, Any]]:
    return [b.model_dump(by_alias=True, exclude={"original_background_color", "original_text_color",
                                                 "original_border_color"})
            for b in request.buttons]

def build_user_prompt(request: ClassificationRequest) -> str:
    profile = request.profile.model_dump(
        by_alias=True, include={"color_scheme", "fonts", "colors", "typography", "spacing", "components"},
    )
    logos = [
        dict(c.model_dump(by_alias=True, exclude={"src"}), index=i,
             src=c.src if not c.src.startswith("data:") else c.src[:120])
        for i, c in enumerate(request.logo_candidates or [])
    ]
    return f"""
heuristic: {json.dumps(profile, ensure_ascii=False)}
buttons: {json.dumps(_button_lines(request), ensure_ascii=False)}
logo_candidates: {json.dumps(logos, ensure_ascii=False)}
brand_name: {request.brand_name or ""}
url: {request.url or ""}

Produce the JSON described above. Output ONLY the JSON.
"""


class GroqClassifier:
    def __init__(self, client: Optional[httpx.Client] = None, temperature: float = 0.0):
        self.client = client
        self.temperature = temperature

    def classify(self, request: ClassificationRequest) -> SemanticEnhancement:
        structured = call_groq_llm(SYSTEM_PROMPT, build_user_prompt(request), self.temperature, self.client)
        try:
            return SemanticEnhancement.model_validate(structured)
        except ValidationError as e:
            s = json.dumps(structured)[:2000]
            raise InvalidEnhancementError(f"LLM returned invalid schema: {e}. Partial output: {s}")
