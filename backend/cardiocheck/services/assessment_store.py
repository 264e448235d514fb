from __future__ import annotations
import uuid
from datetime import datetime, timezone
from typing import List, Protocol

from sqlalchemy import insert, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from cardiocheck.models import RiskAssessment
from cardiocheck.schemas import AssessmentInput, AssessmentRecord, RiskResult


class PersistenceError(RuntimeError):
    """평가 기록 저장/조회 실패"""


class AssessmentStore(Protocol):
    async def save(self, user_id: str, data: AssessmentInput, result: RiskResult) -> AssessmentRecord: ...

    async def list_for_user(self, user_id: str, limit: int = 10) -> List[AssessmentRecord]: ...


def _to_record(row: RiskAssessment) -> AssessmentRecord:
    created_at = row.created_at
    # SQLite는 tz 정보를 저장하지 않으므로 UTC로 간주
    if created_at is not None and created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=timezone.utc)
    return AssessmentRecord(
        id=row.id,
        user_id=row.user_id,
        input=AssessmentInput(
            age=row.age,
            gender=row.gender,
            systolicBP=row.systolic_bp,
            diastolicBP=row.diastolic_bp,
            cholesterol=row.cholesterol,
            diabetes=row.diabetes,
        ),
        risk_score=row.risk_score,
        summary=row.ai_summary,
        created_at=created_at,
    )


class SqlAssessmentStore:
    """
    SQLAlchemy(AsyncSession) 기반 저장소.
    insert 만 하고 update/delete 경로는 없습니다. id 와 created_at 은 여기서 발급합니다.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def save(self, user_id: str, data: AssessmentInput, result: RiskResult) -> AssessmentRecord:
        values = dict(
            id=str(uuid.uuid4()),
            user_id=user_id,
            age=data.age,
            gender=data.gender,
            systolic_bp=data.systolic_bp,
            diastolic_bp=data.diastolic_bp,
            cholesterol=data.cholesterol,
            diabetes=data.diabetes,
            risk_score=result.risk_score,
            ai_summary=result.summary,
            created_at=datetime.now(timezone.utc),
        )
        try:
            await self.db.execute(insert(RiskAssessment).values(**values))
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise PersistenceError(f"Saving assessment failed: {e}") from e

        return AssessmentRecord(
            id=values["id"],
            user_id=user_id,
            input=data,
            risk_score=result.risk_score,
            summary=result.summary,
            created_at=values["created_at"],
        )

    async def list_for_user(self, user_id: str, limit: int = 10) -> List[AssessmentRecord]:
        q = (
            select(RiskAssessment)
            .where(RiskAssessment.user_id == user_id)
            .order_by(RiskAssessment.created_at.desc())
            .limit(limit)
        )
        try:
            rows = (await self.db.execute(q)).scalars().all()
        except SQLAlchemyError as e:
            raise PersistenceError(f"Loading assessments failed: {e}") from e
        return [_to_record(r) for r in rows]
