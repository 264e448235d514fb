from __future__ import annotations
from typing import Any, Optional

from fastapi import APIRouter, Depends, Header, Request
from fastapi.responses import JSONResponse

from cardiocheck.api.deps import get_assessment_store, get_risk_generator, get_token_service
from cardiocheck.services.assessment_store import AssessmentStore
from cardiocheck.services.auth_service import TokenService
from cardiocheck.services.pipeline import (
    Outcome, RequestContext, default_assessment, guest_assessment, member_assessment
)
from cardiocheck.services.risk_generator import RiskGenerator

router = APIRouter(tags=["risk"])


async def read_json_body(request: Request) -> Any:
    """본문을 직접 읽습니다. JSON이 아니면 None (검증 단계에서 400 처리)"""
    try:
        return await request.json()
    except ValueError:
        return None


def to_response(outcome: Outcome) -> JSONResponse:
    return JSONResponse(status_code=outcome.status_code, content=outcome.to_envelope().to_body())


@router.get("/assessment")
async def get_default_assessment(
    authorization: Optional[str] = Header(None),
    tokens: TokenService = Depends(get_token_service),
    generator: RiskGenerator = Depends(get_risk_generator),
):
    """
    게스트/로그인 사용자 모두 사용 가능한 기본 AI 평가.
    토큰이 유효하면 이메일로 개인화된 메시지를 반환합니다 (저장하지 않음).
    """
    ctx = RequestContext(authorization=authorization)
    return to_response(await default_assessment(ctx, tokens, generator))


@router.post("/assessment")
async def create_member_assessment(
    request: Request,
    authorization: Optional[str] = Header(None),
    tokens: TokenService = Depends(get_token_service),
    generator: RiskGenerator = Depends(get_risk_generator),
    store: AssessmentStore = Depends(get_assessment_store),
):
    """로그인 사용자 전용. 평가 결과를 DB에 저장합니다."""
    ctx = RequestContext(authorization=authorization, body=await read_json_body(request))
    return to_response(await member_assessment(ctx, tokens, generator, store))


@router.post("/assessment/guest")
async def create_guest_assessment(
    request: Request,
    generator: RiskGenerator = Depends(get_risk_generator),
):
    """게스트 입력값으로 평가 (저장하지 않음)"""
    ctx = RequestContext(body=await read_json_body(request))
    return to_response(await guest_assessment(ctx, generator))
