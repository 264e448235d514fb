from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional, Union

from jose import ExpiredSignatureError, JWTError, jwt

from cardiocheck.config import Settings

BEARER_PREFIX = "Bearer "


@dataclass(frozen=True)
class Identity:
    """토큰에서 꺼낸 사용자 식별 정보 (발급 후 변경 불가)"""
    user_id: str
    email: str


@dataclass(frozen=True)
class AuthError:
    """토큰 검증 실패. reason 은 로그용이며 클라이언트에는 노출하지 않습니다."""
    reason: str


class TokenService:
    """
    공유 비밀키로 JWT(HS256)를 발급/검증합니다.
    비밀키는 생성 시 주입받으며, 검증 과정에서 환경변수를 읽지 않습니다.
    """

    def __init__(self, secret: str, algorithm: str = "HS256", expires_in: timedelta = timedelta(days=30)):
        if not secret:
            raise ValueError("secret must not be empty")
        self._secret = secret
        self._algorithm = algorithm
        self._expires_in = expires_in

    @property
    def expires_in(self) -> timedelta:
        return self._expires_in

    def issue(self, user_id: str, email: str, now: Optional[datetime] = None) -> str:
        issued_at = now or datetime.now(timezone.utc)
        claims = {
            "userId": user_id,
            "email": email,
            "iat": int(issued_at.timestamp()),
            "exp": int((issued_at + self._expires_in).timestamp()),
        }
        return jwt.encode(claims, self._secret, algorithm=self._algorithm)

    def verify(self, token: str) -> Union[Identity, AuthError]:
        try:
            payload = jwt.decode(token, self._secret, algorithms=[self._algorithm])
        except ExpiredSignatureError:
            return AuthError("token expired")
        except JWTError as e:
            return AuthError(f"invalid token: {e}")

        # exp 없는 토큰은 만료 검사를 건너뛰므로 거부
        if "exp" not in payload:
            return AuthError("token has no expiry")

        user_id = payload.get("userId")
        email = payload.get("email")
        if not isinstance(user_id, str) or not isinstance(email, str):
            return AuthError("token payload is missing userId/email")
        return Identity(user_id=user_id, email=email)


def build_token_service(settings: Settings) -> TokenService:
    return TokenService(
        settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
        expires_in=timedelta(days=settings.token_expire_days),
    )


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    """
    `Authorization: Bearer <token>` 헤더에서 토큰만 꺼냅니다. 없으면 None.
    "Bearer" 만 있는 헤더는 그대로 넘겨 검증 단계에서 invalid 로 처리됩니다.
    """
    if not authorization:
        return None
    token = authorization.lstrip()
    if token.startswith(BEARER_PREFIX):
        token = token[len(BEARER_PREFIX):]
    return token.strip() or None
