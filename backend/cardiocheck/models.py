from __future__ import annotations
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import (
    String, Text, Integer, Float, Boolean, DateTime, CheckConstraint, Index
)
from sqlalchemy.sql import func

from cardiocheck.db import Base


class RiskAssessment(Base):
    """
    로그인 사용자의 위험도 평가 기록.
    한 번 생성되면 수정/삭제하지 않는 append-only 테이블입니다.
    """
    __tablename__ = "risk_assessments"
    __table_args__ = (
        CheckConstraint(
            "risk_score in ('Low','Medium','High')",
            name="ck_risk_assessments_risk_score",
        ),
        CheckConstraint(
            "gender in ('Male','Female','Other')",
            name="ck_risk_assessments_gender",
        ),
        Index("idx_risk_assessments_user_created", "user_id", "created_at"),
    )

    # id는 저장소에서 uuid4 문자열로 발급
    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    user_id: Mapped[str] = mapped_column(String, nullable=False)

    age: Mapped[int] = mapped_column(Integer, nullable=False)
    gender: Mapped[str] = mapped_column(String(16), nullable=False)
    systolic_bp: Mapped[int] = mapped_column(Integer, nullable=False)
    diastolic_bp: Mapped[int] = mapped_column(Integer, nullable=False)
    cholesterol: Mapped[float] = mapped_column(Float, nullable=False)
    diabetes: Mapped[bool] = mapped_column(Boolean, nullable=False)

    risk_score: Mapped[str] = mapped_column(String(8), nullable=False)
    ai_summary: Mapped[str] = mapped_column(Text, nullable=False)

    created_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
