from __future__ import annotations
from datetime import datetime, timezone
from typing import List

import pytest
from fastapi.testclient import TestClient

from cardiocheck.api.deps import get_assessment_store, get_risk_generator, get_token_service
from cardiocheck.main import app
from cardiocheck.schemas import AssessmentInput, AssessmentRecord, RiskResult
from cardiocheck.services.auth_service import TokenService

TEST_SECRET = "test-secret"

VALID_BODY = {
    "age": 45,
    "gender": "Male",
    "systolicBP": 140,
    "diastolicBP": 90,
    "cholesterol": 210,
    "diabetes": False,
}


class FakeGenerator:
    def __init__(self, risk_score: str = "Medium", error: Exception | None = None):
        self.risk_score = risk_score
        self.error = error
        self.calls: List[AssessmentInput] = []

    async def generate(self, data: AssessmentInput) -> RiskResult:
        self.calls.append(data)
        if self.error is not None:
            raise self.error
        return RiskResult(riskScore=self.risk_score, summary=f"{self.risk_score} risk for age {data.age}.")


class FakeStore:
    def __init__(self, error: Exception | None = None):
        self.error = error
        self.records: List[AssessmentRecord] = []

    async def save(self, user_id: str, data: AssessmentInput, result: RiskResult) -> AssessmentRecord:
        if self.error is not None:
            raise self.error
        record = AssessmentRecord(
            id=f"rec-{len(self.records) + 1}",
            user_id=user_id,
            input=data,
            risk_score=result.risk_score,
            summary=result.summary,
            created_at=datetime(2025, 1, 2, 3, 4, 5, tzinfo=timezone.utc),
        )
        self.records.append(record)
        return record

    async def list_for_user(self, user_id: str, limit: int = 10) -> List[AssessmentRecord]:
        if self.error is not None:
            raise self.error
        mine = [r for r in self.records if r.user_id == user_id]
        return list(reversed(mine))[:limit]


@pytest.fixture
def tokens() -> TokenService:
    return TokenService(TEST_SECRET)


@pytest.fixture
def generator() -> FakeGenerator:
    return FakeGenerator()


@pytest.fixture
def store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def client(tokens, generator, store):
    app.dependency_overrides[get_token_service] = lambda: tokens
    app.dependency_overrides[get_risk_generator] = lambda: generator
    app.dependency_overrides[get_assessment_store] = lambda: store
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}
