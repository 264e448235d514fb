from __future__ import annotations
from typing import Optional, List, Any, Literal
from pydantic import BaseModel, ConfigDict, Field, field_validator
from datetime import datetime

RiskScore = Literal["Low", "Medium", "High"]
Gender = Literal["Male", "Female", "Other"]

BOOLEAN_STRINGS = {"true": True, "false": False, "1": True, "0": False}


class AssessmentInput(BaseModel):
    """
    위험도 평가 입력값.
    POST /assessment, POST /assessment/guest 요청 본문 스키마 (모든 필드 필수).
    """
    model_config = ConfigDict(frozen=True)

    age: int = Field(..., ge=1, le=150)
    gender: Gender
    systolic_bp: int = Field(..., alias="systolicBP", ge=50, le=250)
    diastolic_bp: int = Field(..., alias="diastolicBP", ge=30, le=200)
    cholesterol: float = Field(..., ge=0, allow_inf_nan=False)
    diabetes: bool

    @field_validator("age", "systolic_bp", "diastolic_bp", "cholesterol", mode="before")
    @classmethod
    def reject_bool_numbers(cls, v: Any) -> Any:
        # true/false 가 1/0 으로 바뀌지 않도록
        if isinstance(v, bool):
            raise ValueError("must be a number, not a boolean")
        return v

    @field_validator("diabetes", mode="before")
    @classmethod
    def strict_boolean(cls, v: Any) -> Any:
        """true/false, 0/1, "true"/"false"/"0"/"1" 만 허용"""
        if isinstance(v, bool):
            return v
        if isinstance(v, int) and v in (0, 1):
            return bool(v)
        if isinstance(v, str) and v in BOOLEAN_STRINGS:
            return BOOLEAN_STRINGS[v]
        raise ValueError("must be a boolean")


class RiskResult(BaseModel):
    """외부 생성기(OpenAI 등)가 돌려주는 결과"""
    model_config = ConfigDict(populate_by_name=True)

    risk_score: RiskScore = Field(..., alias="riskScore")
    summary: str


class FieldViolation(BaseModel):
    field: str
    message: str
    value: Any = None


class AssessmentRecord(BaseModel):
    """저장소가 발급한 id/created_at 을 포함한 저장 완료 기록"""
    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: str
    user_id: str
    input: AssessmentInput
    risk_score: RiskScore
    summary: str
    created_at: datetime


class AssessmentOut(BaseModel):
    """세 가지 평가 API 공통 data 필드"""
    id: str
    riskScore: RiskScore
    summary: str
    createdAt: str


class ProgressItem(AssessmentOut):
    """/progress 추이 조회용 (입력 지표 포함)"""
    age: int
    gender: Gender
    systolicBP: int
    diastolicBP: int
    cholesterol: float
    diabetes: bool


class Envelope(BaseModel):
    """모든 응답(성공/실패)에 공통으로 쓰는 응답 포맷"""
    success: bool
    message: str
    data: Optional[Any] = None
    errors: Optional[List[FieldViolation]] = None

    def to_body(self) -> dict:
        return self.model_dump(mode="json", exclude_none=True)
