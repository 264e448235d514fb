from __future__ import annotations
import asyncio, json, logging
from typing import Any, Dict, Optional

from openai import OpenAI, OpenAIError
from pydantic import ValidationError

from cardiocheck.schemas import AssessmentInput, RiskResult
from cardiocheck.services.risk_generator import RiskGenerationError

logger = logging.getLogger(__name__)

SYSTEM_BASE = (
    "You are a cardiovascular health assistant. Given a person's basic health metrics, "
    "estimate their heart disease risk and explain it in plain language.\n"
    "\n"
    "Rules:\n"
    "- Output exactly one JSON object with two fields: \"riskScore\" and \"summary\".\n"
    "- \"riskScore\" must be one of \"Low\", \"Medium\", \"High\".\n"
    "- \"summary\" is 3-5 sentences: the main contributing factors and 2-3 practical next steps.\n"
    "- Do not diagnose. Recommend seeing a clinician for anything concerning.\n"
    "- No markdown, code blocks or text outside the JSON object.\n"
)


def _user_prompt(data: AssessmentInput) -> str:
    return (
        "Health metrics:\n"
        f"- Age: {data.age}\n"
        f"- Gender: {data.gender}\n"
        f"- Blood pressure: {data.systolic_bp}/{data.diastolic_bp} mmHg\n"
        f"- Total cholesterol: {data.cholesterol:g} mg/dL\n"
        f"- Diabetes: {'Yes' if data.diabetes else 'No'}\n"
    )


def parse_risk_json(raw_json_text: Optional[str]) -> RiskResult:
    """모델 응답 텍스트에서 JSON 객체만 추출해 RiskResult 로 변환합니다."""
    if not raw_json_text:
        raise RiskGenerationError("OpenAI returned empty content")

    raw_json_text = raw_json_text.strip()
    if raw_json_text.startswith("```json"):
        raw_json_text = raw_json_text[7:].strip()
    if raw_json_text.endswith("```"):
        raw_json_text = raw_json_text[:-3].strip()

    json_start = raw_json_text.find("{")
    json_end = raw_json_text.rfind("}")
    if json_start != -1 and json_end != -1 and json_end > json_start:
        raw_json_text = raw_json_text[json_start:json_end + 1]

    try:
        parsed: Dict[str, Any] = json.loads(raw_json_text)
        # "high" 처럼 대소문자가 다르게 오는 경우 정규화
        if isinstance(parsed.get("riskScore"), str):
            parsed["riskScore"] = parsed["riskScore"].strip().capitalize()
        return RiskResult.model_validate(parsed)
    except (json.JSONDecodeError, AttributeError, ValidationError) as e:
        raise RiskGenerationError(f"Unparseable risk response: {e}") from e


class OpenAIRiskGenerator:
    """OpenAI chat completions(JSON 모드)로 위험도와 요약을 생성합니다."""

    def __init__(self, model: str = "gpt-4o-mini", timeout: float = 15.0, client: Optional[OpenAI] = None):
        self.model = model
        self.timeout = timeout
        self._client = client

    @property
    def client(self) -> OpenAI:
        # OPENAI_API_KEY는 env로 자동 로딩 (첫 호출 시 생성)
        if self._client is None:
            self._client = OpenAI()
        return self._client

    async def generate(self, data: AssessmentInput) -> RiskResult:
        messages = [
            {"role": "system", "content": SYSTEM_BASE},
            {"role": "user", "content": _user_prompt(data)},
        ]

        def _call():
            return self.client.chat.completions.create(
                model=self.model,
                messages=messages,
                response_format={"type": "json_object"},
                timeout=self.timeout,
            )

        try:
            resp = await asyncio.to_thread(_call)
            content = resp.choices[0].message.content
        except (OpenAIError, IndexError, AttributeError) as e:
            raise RiskGenerationError(f"OpenAI error: {e}") from e

        result = parse_risk_json(content)
        logger.debug("OpenAI risk result: %s", result.risk_score)
        return result
