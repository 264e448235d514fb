from __future__ import annotations
from typing import List, Protocol, Tuple

from cardiocheck.config import Settings
from cardiocheck.schemas import AssessmentInput, RiskResult


class RiskGenerationError(RuntimeError):
    """외부 위험도 생성기 호출 실패"""


class RiskGenerator(Protocol):
    async def generate(self, data: AssessmentInput) -> RiskResult: ...


# 기본(비로그인) 평가에 쓰는 가상의 건강 프로필
DEFAULT_PROFILE = AssessmentInput(
    age=40,
    gender="Male",
    systolicBP=130,
    diastolicBP=85,
    cholesterol=200,
    diabetes=False,
)


def score_points(data: AssessmentInput) -> Tuple[int, List[str]]:
    """단순 가산점 규칙. (점수, 주의 요인 목록)"""
    points = 0
    factors: List[str] = []

    if data.age >= 65:
        points += 3
        factors.append("age 65 or older")
    elif data.age >= 45:
        points += 2
        factors.append("age 45 or older")
    elif data.age >= 35:
        points += 1

    if data.systolic_bp >= 160 or data.diastolic_bp >= 100:
        points += 3
        factors.append("stage 2 hypertension range blood pressure")
    elif data.systolic_bp >= 140 or data.diastolic_bp >= 90:
        points += 2
        factors.append("elevated blood pressure")
    elif data.systolic_bp >= 130 or data.diastolic_bp >= 80:
        points += 1

    if data.cholesterol >= 240:
        points += 2
        factors.append("high total cholesterol")
    elif data.cholesterol >= 200:
        points += 1
        factors.append("borderline-high cholesterol")

    if data.diabetes:
        points += 2
        factors.append("diabetes")

    if data.gender == "Male" and data.age >= 45:
        points += 1

    return points, factors


def band_for(points: int) -> str:
    if points >= 6:
        return "High"
    if points >= 3:
        return "Medium"
    return "Low"


_SUGGESTIONS = {
    "High": [
        "Book a visit with a cardiologist soon to review these results.",
        "Ask about a full lipid panel, ECG and blood pressure management.",
    ],
    "Medium": [
        "Discuss these numbers with your primary care clinician.",
        "Reduce salt and saturated fat and aim for regular moderate exercise.",
    ],
    "Low": [
        "Maintain a balanced diet and regular exercise.",
        "Keep up with an annual routine checkup.",
    ],
}


class RulesRiskGenerator:
    """
    OpenAI 키가 없을 때(로컬 개발/테스트) 쓰는 규칙 기반 생성기.
    나이, 혈압, 콜레스테롤, 당뇨 여부로 점수를 매겨 Low/Medium/High 로 분류합니다.
    """

    async def generate(self, data: AssessmentInput) -> RiskResult:
        points, factors = score_points(data)
        band = band_for(points)
        if factors:
            found = "Notable factors: " + ", ".join(factors) + "."
        else:
            found = "No major risk factors were found in the provided metrics."
        summary = " ".join([f"Estimated heart disease risk is {band}.", found] + _SUGGESTIONS[band])
        return RiskResult(riskScore=band, summary=summary)


def build_generator(settings: Settings) -> RiskGenerator:
    if settings.risk_generator == "openai":
        from cardiocheck.services.openai_client import OpenAIRiskGenerator

        return OpenAIRiskGenerator(model=settings.openai_model, timeout=settings.openai_timeout_s)
    return RulesRiskGenerator()
