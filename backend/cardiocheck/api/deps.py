from functools import lru_cache

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from cardiocheck.config import get_settings
from cardiocheck.db import get_db
from cardiocheck.services.assessment_store import AssessmentStore, SqlAssessmentStore
from cardiocheck.services.auth_service import TokenService, build_token_service
from cardiocheck.services.risk_generator import RiskGenerator, build_generator


# 테스트에서는 app.dependency_overrides 로 교체
@lru_cache
def get_token_service() -> TokenService:
    return build_token_service(get_settings())


@lru_cache
def get_risk_generator() -> RiskGenerator:
    return build_generator(get_settings())


async def get_assessment_store(db: AsyncSession = Depends(get_db)) -> AssessmentStore:
    return SqlAssessmentStore(db)
