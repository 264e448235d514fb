# /backend/cardiocheck/main.py

from __future__ import annotations
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import uvicorn

from cardiocheck.api.routers import progress, risk
from cardiocheck.config import get_settings
from cardiocheck.db import create_tables, engine
from cardiocheck.schemas import Envelope, FieldViolation

logger = logging.getLogger(__name__)
settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    # 앱 시작 시
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if settings.uses_default_secret:
        logger.warning("JWT_SECRET is not set; using the insecure development default")
    if settings.db_auto_create:
        await create_tables()
    try:
        yield
    finally:
        # 앱 종료 시
        await engine.dispose()


app = FastAPI(
    title="CardioCheck API",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    # 쿼리/헤더 파싱 에러도 공통 응답 포맷으로
    errors = [
        FieldViolation(field=str(e["loc"][-1]) if e.get("loc") else "request", message=e.get("msg", "Invalid value"))
        for e in exc.errors()
    ]
    body = Envelope(success=False, message="Invalid request.", errors=errors).to_body()
    return JSONResponse(status_code=400, content=body)


app.include_router(risk.router)
app.include_router(progress.router)


@app.get("/health")
async def health():
    return {"ok": True}


def run() -> None:
    """`cardiocheck-api` 실행 진입점 (uvicorn cardiocheck.main:app 과 동일)"""
    uvicorn.run("cardiocheck.main:app", host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
