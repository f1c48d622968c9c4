import json
import logging
import re
from dataclasses import dataclass, field

import httpx

from dayfit.core.config import settings
from dayfit.schemas.routines import RoutineType, TemplateIn, payload_field

logger = logging.getLogger("dayfit.critique")

SYSTEM_PROMPT = (
    "You are a personal health and wellbeing assistant. You analyse daily "
    "summaries of sleep, nutrition and training and give constructive, "
    "specific feedback."
)

# section key -> words that identify its heading in the model's answer
SECTIONS = {
    "summary": ("summary",),
    "positives": ("went well", "positive"),
    "negatives": ("improve", "negative", "went wrong"),
    "recommendations": ("recommendation",),
    "score": ("score",),
}

_HEADING_RE = re.compile(r"^#{2,3}\s*(.+?)\s*$", re.MULTILINE)
_SCORE_RE = re.compile(r"(\d+(?:[.,]\d+)?)\s*/\s*10")


class AIServiceError(Exception):
    """The language-model provider failed or returned something unusable."""


class AINotConfiguredError(AIServiceError):
    pass


@dataclass
class DayCritique:
    analysis: str
    sections: dict[str, str] = field(default_factory=dict)
    score: float | None = None


class LanguageModelClient:
    """
    Thin text-completion client. Gemini is used when a Gemini key is set
    (trying each configured model in turn), otherwise OpenAI chat completions.
    """

    def __init__(
        self,
        gemini_api_key: str | None = None,
        openai_api_key: str | None = None,
        gemini_api_base: str = "https://generativelanguage.googleapis.com",
        gemini_models: list[str] | None = None,
        openai_api_base: str = "https://api.openai.com/v1",
        openai_model: str = "gpt-4o-mini",
        timeout: float = 60.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self.gemini_api_key = gemini_api_key
        self.openai_api_key = openai_api_key
        self.gemini_api_base = gemini_api_base.rstrip("/")
        self.gemini_models = gemini_models or ["gemini-2.5-flash"]
        self.openai_api_base = openai_api_base.rstrip("/")
        self.openai_model = openai_model
        self.timeout = timeout
        self.transport = transport

    @classmethod
    def from_settings(cls) -> "LanguageModelClient":
        return cls(
            gemini_api_key=settings.GEMINI_API_KEY,
            openai_api_key=settings.OPENAI_API_KEY,
            gemini_api_base=settings.GEMINI_API_BASE,
            gemini_models=settings.GEMINI_MODELS,
            openai_api_base=settings.OPENAI_API_BASE,
            openai_model=settings.OPENAI_MODEL,
            timeout=settings.AI_TIMEOUT_SECONDS,
        )

    def complete(self, prompt: str, system: str = SYSTEM_PROMPT, temperature: float = 0.7) -> str:
        if self.gemini_api_key:
            return self._complete_gemini(prompt, system, temperature)
        if self.openai_api_key:
            return self._complete_openai(prompt, system, temperature)
        raise AINotConfiguredError(
            "No AI provider configured. Set GEMINI_API_KEY or OPENAI_API_KEY."
        )

    def _complete_gemini(self, prompt: str, system: str, temperature: float) -> str:
        body = {
            "contents": [{"parts": [{"text": f"{system}\n\n{prompt}"}]}],
            "generationConfig": {"temperature": temperature, "maxOutputTokens": 3000},
        }
        last_error = "Unknown error"

        with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
            for model in self.gemini_models:
                url = f"{self.gemini_api_base}/v1beta/models/{model}:generateContent"
                try:
                    resp = client.post(url, params={"key": self.gemini_api_key}, json=body)
                except httpx.HTTPError as e:
                    last_error = str(e)
                    logger.warning("Gemini model %s unreachable: %s", model, e)
                    continue

                if resp.status_code != 200:
                    last_error = _error_message(resp)
                    logger.warning("Gemini model %s failed: %s", model, last_error)
                    continue

                try:
                    data = resp.json()
                except ValueError:
                    last_error = "Invalid JSON in response"
                    continue
                candidates = data.get("candidates") or [{}]
                candidate = candidates[0]
                parts = (candidate.get("content") or {}).get("parts") or []
                text = parts[0].get("text") if parts else None
                if text:
                    return text

                finish_reason = candidate.get("finishReason") or "unknown"
                if finish_reason == "MAX_TOKENS":
                    raise AIServiceError("The AI answer was too long and got truncated.")
                last_error = f"Empty answer (finish reason: {finish_reason})"

        raise AIServiceError(f"Gemini API error: {last_error}")

    def _complete_openai(self, prompt: str, system: str, temperature: float) -> str:
        body = {
            "model": self.openai_model,
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": prompt},
            ],
            "temperature": temperature,
            "max_tokens": 1500,
        }
        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                resp = client.post(
                    f"{self.openai_api_base}/chat/completions",
                    headers={"Authorization": f"Bearer {self.openai_api_key}"},
                    json=body,
                )
        except httpx.HTTPError as e:
            raise AIServiceError(f"OpenAI API unreachable: {e}") from e

        if resp.status_code != 200:
            raise AIServiceError(f"OpenAI API error: {_error_message(resp)}")

        try:
            choices = resp.json().get("choices") or []
        except ValueError as e:
            raise AIServiceError("OpenAI API returned invalid JSON.") from e
        text = choices[0].get("message", {}).get("content") if choices else None
        if not text:
            raise AIServiceError("OpenAI API returned an empty answer.")
        return text


def _error_message(resp: httpx.Response) -> str:
    try:
        data = resp.json()
    except ValueError:
        return resp.text or f"HTTP {resp.status_code}"
    error = data.get("error") if isinstance(data, dict) else None
    if isinstance(error, dict):
        return error.get("message") or f"HTTP {resp.status_code}"
    return str(error or f"HTTP {resp.status_code}")


# ---------- Day critique ----------

def build_analysis_prompt(day: dict) -> str:
    return (
        "Analyse this daily summary and tell me in detail how the day went.\n\n"
        f"Day data:\n{json.dumps(day, indent=2, ensure_ascii=False)}\n\n"
        "Answer EXACTLY with this structure:\n\n"
        "## General summary\n"
        "[2-3 sentences summarising the day]\n\n"
        "## What went well\n"
        "[3-5 positive points about sleep, nutrition, training, ...]\n\n"
        "## What could improve\n"
        "[2-4 specific, constructive points]\n\n"
        "## Recommendations\n"
        "[3-5 concrete, actionable recommendations]\n\n"
        "## Score of the day\n"
        "**Score: [X]/10**\n\n"
        "**Justification:** [2-3 sentences]\n\n"
        "Be positive, constructive and specific. Maximum 2500 words."
    )


def _section_key(heading: str) -> str | None:
    lowered = heading.lower()
    for key, words in SECTIONS.items():
        if any(w in lowered for w in words):
            return key
    return None


def parse_critique(text: str) -> DayCritique:
    """Split a markdown answer into the five conventional sections."""
    sections: dict[str, str] = {}
    headings = list(_HEADING_RE.finditer(text))
    for i, match in enumerate(headings):
        key = _section_key(match.group(1))
        if key is None or key in sections:
            continue
        end = headings[i + 1].start() if i + 1 < len(headings) else len(text)
        sections[key] = text[match.end():end].strip()

    score = None
    score_match = _SCORE_RE.search(sections.get("score", text))
    if score_match:
        score = float(score_match.group(1).replace(",", "."))
        if score > 10:
            score = None

    return DayCritique(analysis=text, sections=sections, score=score)


def analyze_day(client: LanguageModelClient, day: dict) -> DayCritique:
    text = client.complete(build_analysis_prompt(day))
    return parse_critique(text)


# ---------- Template generation ----------

def build_template_prompt(prompt: str, user_goals: str | None = None) -> str:
    goals = f"\nUser goals: {user_goals}\n" if user_goals else ""
    types = ", ".join(f'"{t.value}"' for t in RoutineType)
    return (
        "You are an expert personal trainer. The user wants a training routine "
        f"with these requirements:\n\n{prompt}\n{goals}\n"
        "Answer ONLY with valid JSON, no markdown and no explanations, shaped as:\n"
        '{"name": "...", "description": "...", "routine_type": one of '
        f"{types}, "
        '"notes": "...", "data": {...}}\n'
        "where data is, by routine_type:\n"
        '- gym: {"exercises": [{"exercise_name": "...", "sets": [{"reps": 10, '
        '"weight_kg": 50, "rest_seconds": 60}]}], "total_duration_minutes": 60}\n'
        '- running: {"distance_km": 5.0, "duration_minutes": 30, "pace_per_km": "6:00"}\n'
        '- athletics: {"series": [{"distance": "100m", "time": "12.5s", "rest": "2min"}]}\n'
        '- steps: {"steps_count": 10000}\n'
        '- football_match: {"total_kms": 8.5, "calories": 650}\n'
        '- yoyo_test: {"series": [{"start_level": "0", "end_level": "19.2", "completed": true}]}\n'
        "Be specific and realistic."
    )


def extract_json(text: str) -> dict:
    """
    Parse the JSON object in a model answer, tolerating code fences,
    surrounding chatter and missing closing braces.
    """
    cleaned = re.sub(r"```(?:json)?", "", text).strip()
    start = cleaned.find("{")
    if start < 0:
        raise AIServiceError(f"The AI did not return JSON: {cleaned[:300]}")
    end = cleaned.rfind("}")
    candidate = cleaned[start:end + 1] if end > start else cleaned[start:]

    try:
        return json.loads(candidate)
    except json.JSONDecodeError as first_error:
        missing = candidate.count("{") - candidate.count("}")
        if missing <= 0:
            missing = cleaned.count("{") - cleaned.count("}")
            candidate = cleaned[start:]
        if missing > 0:
            try:
                return json.loads(candidate + "}" * missing)
            except json.JSONDecodeError:
                pass
        raise AIServiceError(
            f"The AI did not return valid JSON: {first_error}. Answer: {cleaned[:300]}"
        ) from first_error


def _match_exercise_id(name: str, exercises: list) -> int | None:
    wanted = name.lower()
    if not wanted:
        return None
    for ex in exercises:
        known = ex.name.lower()
        if known in wanted or wanted in known:
            return ex.id
    return None


def draft_template(answer: dict, exercises: list | None = None) -> dict:
    """
    Map a generated routine onto the template shape, moving `data` into the
    typed payload field for its routine_type.
    """
    name = answer.get("name")
    routine_type = answer.get("routine_type")
    if not name or not routine_type:
        raise AIServiceError("The AI answer is missing name or routine_type")
    try:
        field_name = payload_field(routine_type)
    except (TypeError, ValueError):
        raise AIServiceError(f"The AI answer has an unknown routine_type: {routine_type}")

    draft = {
        "name": name,
        "description": answer.get("description") or "",
        "routine_type": routine_type,
        "notes": answer.get("notes") or "",
        "is_favorite": False,
    }
    try:
        draft[field_name] = _draft_payload(routine_type, answer, exercises or [])
        TemplateIn.model_validate(draft)
    except (TypeError, ValueError, AttributeError) as e:
        raise AIServiceError(f"The AI answer has an unusable {field_name}: {e}") from e
    return draft


def _draft_payload(routine_type: str, answer: dict, exercises: list):
    data = answer.get("data") or {}
    if routine_type == RoutineType.GYM.value:
        return {
            "exercises": [
                {
                    "exercise_id": _match_exercise_id(
                        ex.get("exercise_name") or ex.get("name") or "", exercises
                    ),
                    "exercise_name": ex.get("exercise_name") or ex.get("name") or "",
                    "sets": [
                        {
                            "reps": s.get("reps") or 0,
                            "weight_kg": s.get("weight_kg"),
                            "rest_seconds": s.get("rest_seconds"),
                        }
                        for s in ex.get("sets") or []
                    ],
                }
                for ex in data.get("exercises") or []
            ],
            "total_duration_minutes": data.get("total_duration_minutes"),
        }
    if routine_type == RoutineType.RUNNING.value:
        return {
            "distance_km": data.get("distance_km") or 0,
            "duration_minutes": data.get("duration_minutes") or 0,
            "pace_per_km": data.get("pace_per_km") or "",
        }
    if routine_type == RoutineType.STEPS.value:
        return int(data.get("steps_count") or answer.get("steps_count") or 0)
    if routine_type == RoutineType.FOOTBALL_MATCH.value:
        return {
            "total_kms": data.get("total_kms") or 0,
            "calories": data.get("calories") or 0,
        }
    # athletics and yoyo_test both carry a list of series
    return {"series": data.get("series") or []}


def generate_template(
    client: LanguageModelClient,
    prompt: str,
    user_goals: str | None = None,
    exercises: list | None = None,
) -> dict:
    text = client.complete(build_template_prompt(prompt, user_goals), temperature=0.7)
    return draft_template(extract_json(text), exercises)


def get_ai_client() -> LanguageModelClient:
    return LanguageModelClient.from_settings()
