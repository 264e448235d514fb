from __future__ import annotations
from typing import Optional

from fastapi import APIRouter, Depends, Header, Query

from cardiocheck.api.deps import get_assessment_store, get_token_service
from cardiocheck.api.routers.risk import to_response
from cardiocheck.services.assessment_store import AssessmentStore
from cardiocheck.services.auth_service import TokenService
from cardiocheck.services.pipeline import RequestContext, assessment_history

router = APIRouter(tags=["progress"])


@router.get("/progress")
async def get_my_progress(
    limit: int = Query(10),
    authorization: Optional[str] = Header(None),
    tokens: TokenService = Depends(get_token_service),
    store: AssessmentStore = Depends(get_assessment_store),
):
    """현재 로그인 사용자의 저장된 평가 기록 (최신순, 추이 차트용)"""
    ctx = RequestContext(authorization=authorization)
    return to_response(await assessment_history(ctx, tokens, store, limit))
