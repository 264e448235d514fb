"""
위험도 평가 요청 처리 파이프라인.

인증 가드 -> 입력 검증 -> 외부 생성기 호출 -> (로그인 POST 한정) 저장 -> 응답 포맷 순서로
단계를 실행합니다. 각 단계는 다음 단계로 넘길 RequestContext 또는 요청을 끝내는 Failure 를
반환하며, 예외를 계층 밖으로 던지지 않습니다.
"""
from __future__ import annotations
import logging
import time
import uuid
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Awaitable, Callable, List, Optional, Sequence, Union

from cardiocheck.schemas import AssessmentInput, AssessmentOut, Envelope, FieldViolation, ProgressItem
from cardiocheck.services.assessment_store import AssessmentStore
from cardiocheck.services.auth_service import AuthError, Identity, TokenService, extract_bearer_token
from cardiocheck.services.risk_generator import DEFAULT_PROFILE, RiskGenerator
from cardiocheck.services.validation import validate_assessment

logger = logging.getLogger(__name__)

MSG_NO_TOKEN = "No token provided. Please log in."
MSG_INVALID_TOKEN = "Invalid or expired token. Please log in again."
MSG_UNAUTHORIZED = "Unauthorized"
MSG_INVALID_INPUT = "Invalid assessment input."

MSG_DEFAULT_OK_GUEST = "General AI-generated assessment for guest."
MSG_DEFAULT_FAIL = "Something went wrong while fetching AI assessment."
MSG_GUEST_OK = "Guest AI assessment generated successfully."
MSG_GUEST_FAIL = "Failed to generate guest AI assessment."
MSG_MEMBER_OK = "Assessment saved successfully."
MSG_MEMBER_FAIL = "Error generating or saving assessment."


class ErrorKind(str, Enum):
    AUTH = "auth"
    VALIDATION = "validation"
    UPSTREAM = "upstream"
    PERSISTENCE = "persistence"


@dataclass(frozen=True)
class Failure:
    kind: ErrorKind
    status_code: int
    message: str
    errors: Optional[List[FieldViolation]] = None

    def to_envelope(self) -> Envelope:
        return Envelope(success=False, message=self.message, errors=self.errors)


@dataclass(frozen=True)
class Success:
    message: str
    data: Any
    status_code: int = 200

    def to_envelope(self) -> Envelope:
        return Envelope(success=True, message=self.message, data=self.data)


Outcome = Union[Success, Failure]


@dataclass(frozen=True)
class RequestContext:
    """요청 단위 컨텍스트. 단계마다 replace() 로 새 값을 만들어 넘깁니다."""
    authorization: Optional[str] = None
    body: Any = None
    identity: Optional[Identity] = None
    assessment: Optional[AssessmentInput] = None


Stage = Callable[[RequestContext], Union[RequestContext, Failure]]
Handler = Callable[[RequestContext], Awaitable[Outcome]]


async def run_pipeline(ctx: RequestContext, stages: Sequence[Stage], handler: Handler) -> Outcome:
    """단계를 순서대로 실행하고, 첫 Failure 에서 멈춥니다. handler 는 최대 한 번 호출됩니다."""
    for stage in stages:
        result = stage(ctx)
        if isinstance(result, Failure):
            return result
        ctx = result
    return await handler(ctx)


# ---------------------------------------------------------------------------
# 인증 단계
# ---------------------------------------------------------------------------

def require_identity(tokens: TokenService) -> Stage:
    """로그인 필수 경로. 토큰이 없거나 유효하지 않으면 401 로 끝냅니다."""

    def stage(ctx: RequestContext) -> Union[RequestContext, Failure]:
        token = extract_bearer_token(ctx.authorization)
        if token is None:
            logger.info("auth rejected: no token")
            return Failure(ErrorKind.AUTH, 401, MSG_NO_TOKEN)

        verified = tokens.verify(token)
        if isinstance(verified, AuthError):
            logger.info("auth rejected: %s", verified.reason)
            return Failure(ErrorKind.AUTH, 401, MSG_INVALID_TOKEN)
        return replace(ctx, identity=verified)

    return stage


def attach_identity(tokens: TokenService) -> Stage:
    """선택 인증 경로. 어떤 실패든 게스트로 계속 진행하며 응답을 만들지 않습니다."""

    def stage(ctx: RequestContext) -> RequestContext:
        token = extract_bearer_token(ctx.authorization)
        if token is None:
            return ctx

        verified = tokens.verify(token)
        if isinstance(verified, AuthError):
            logger.debug("optional auth ignored: %s", verified.reason)
            return ctx
        return replace(ctx, identity=verified)

    return stage


def validate_body(ctx: RequestContext) -> Union[RequestContext, Failure]:
    checked = validate_assessment(ctx.body)
    if isinstance(checked, AssessmentInput):
        return replace(ctx, assessment=checked)
    return Failure(ErrorKind.VALIDATION, 400, MSG_INVALID_INPUT, errors=checked)


# ---------------------------------------------------------------------------
# 응답 헬퍼
# ---------------------------------------------------------------------------

def iso_utc(dt: datetime) -> str:
    """2024-01-01T00:00:00.000Z 형식"""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def ephemeral_id(prefix: str) -> str:
    # 저장되지 않는 결과용 id. 동시 요청에서도 겹치지 않도록 난수 접미사를 붙임
    return f"{prefix}{int(time.time() * 1000)}-{uuid.uuid4().hex[:6]}"


# ---------------------------------------------------------------------------
# 세 가지 평가 흐름
# ---------------------------------------------------------------------------

async def default_assessment(ctx: RequestContext, tokens: TokenService, generator: RiskGenerator) -> Outcome:
    """GET /assessment: 고정 프로필로 평가. 저장하지 않습니다."""

    async def handler(ctx: RequestContext) -> Outcome:
        try:
            result = await generator.generate(DEFAULT_PROFILE)
        except Exception:
            logger.exception("default assessment: risk generation failed")
            return Failure(ErrorKind.UPSTREAM, 500, MSG_DEFAULT_FAIL)

        if ctx.identity is not None:
            # temp- id 는 저장된 기록과 무관한 표시용 값
            message = f"Personalized assessment for {ctx.identity.email}."
            prefix = "temp-"
        else:
            message = MSG_DEFAULT_OK_GUEST
            prefix = "guest-"

        data = AssessmentOut(
            id=ephemeral_id(prefix),
            riskScore=result.risk_score,
            summary=result.summary,
            createdAt=iso_utc(datetime.now(timezone.utc)),
        )
        return Success(message, data.model_dump())

    return await run_pipeline(ctx, [attach_identity(tokens)], handler)


async def guest_assessment(ctx: RequestContext, generator: RiskGenerator) -> Outcome:
    """POST /assessment/guest: 입력값으로 평가. 저장하지 않습니다."""

    async def handler(ctx: RequestContext) -> Outcome:
        try:
            result = await generator.generate(ctx.assessment)
        except Exception:
            logger.exception("guest assessment: risk generation failed")
            return Failure(ErrorKind.UPSTREAM, 500, MSG_GUEST_FAIL)

        data = AssessmentOut(
            id=ephemeral_id("guest-"),
            riskScore=result.risk_score,
            summary=result.summary,
            createdAt=iso_utc(datetime.now(timezone.utc)),
        )
        return Success(MSG_GUEST_OK, data.model_dump())

    return await run_pipeline(ctx, [validate_body], handler)


async def member_assessment(
    ctx: RequestContext,
    tokens: TokenService,
    generator: RiskGenerator,
    store: AssessmentStore,
) -> Outcome:
    """POST /assessment: 로그인 사용자 평가 후 기록을 한 건 저장합니다."""

    async def handler(ctx: RequestContext) -> Outcome:
        if ctx.identity is None:
            return Failure(ErrorKind.AUTH, 401, MSG_UNAUTHORIZED)

        try:
            result = await generator.generate(ctx.assessment)
        except Exception:
            logger.exception("member assessment: risk generation failed (user=%s)", ctx.identity.user_id)
            return Failure(ErrorKind.UPSTREAM, 500, MSG_MEMBER_FAIL)

        try:
            record = await store.save(ctx.identity.user_id, ctx.assessment, result)
        except Exception:
            # 저장되지 않은 결과는 버림. 클라이언트가 요청 전체를 다시 보내야 함
            logger.exception("member assessment: saving failed (user=%s)", ctx.identity.user_id)
            return Failure(ErrorKind.PERSISTENCE, 500, MSG_MEMBER_FAIL)

        data = AssessmentOut(
            id=str(record.id),
            riskScore=record.risk_score,
            summary=record.summary,
            createdAt=iso_utc(record.created_at),
        )
        return Success(MSG_MEMBER_OK, data.model_dump())

    return await run_pipeline(ctx, [require_identity(tokens), validate_body], handler)


# ---------------------------------------------------------------------------
# 추이 조회
# ---------------------------------------------------------------------------

MSG_PROGRESS_OK = "Assessment history loaded."
MSG_PROGRESS_FAIL = "Failed to load progress data."
MAX_HISTORY_LIMIT = 100


async def assessment_history(
    ctx: RequestContext,
    tokens: TokenService,
    store: AssessmentStore,
    limit: int = 10,
) -> Outcome:
    """GET /progress: 로그인 사용자의 저장된 평가를 최신순으로 반환합니다."""

    def check_limit(ctx: RequestContext) -> Union[RequestContext, Failure]:
        if 1 <= limit <= MAX_HISTORY_LIMIT:
            return ctx
        violation = FieldViolation(
            field="limit", message=f"Must be between 1 and {MAX_HISTORY_LIMIT}.", value=limit
        )
        return Failure(ErrorKind.VALIDATION, 400, "Invalid query parameters.", errors=[violation])

    async def handler(ctx: RequestContext) -> Outcome:
        try:
            records = await store.list_for_user(ctx.identity.user_id, limit)
        except Exception:
            logger.exception("progress: loading history failed (user=%s)", ctx.identity.user_id)
            return Failure(ErrorKind.PERSISTENCE, 500, MSG_PROGRESS_FAIL)

        items = [
            ProgressItem(
                id=str(r.id),
                riskScore=r.risk_score,
                summary=r.summary,
                createdAt=iso_utc(r.created_at),
                age=r.input.age,
                gender=r.input.gender,
                systolicBP=r.input.systolic_bp,
                diastolicBP=r.input.diastolic_bp,
                cholesterol=r.input.cholesterol,
                diabetes=r.input.diabetes,
            ).model_dump()
            for r in records
        ]
        return Success(MSG_PROGRESS_OK, items)

    return await run_pipeline(ctx, [require_identity(tokens), check_limit], handler)
