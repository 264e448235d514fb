"""
개발용 토큰 발급 도구. (회원가입/로그인 API 없이 로컬에서 테스트할 때 사용)

    python -m cardiocheck.issue_token --user-id 42 --email a@x.com
"""
from __future__ import annotations
import argparse

from cardiocheck.config import get_settings
from cardiocheck.services.auth_service import build_token_service


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Issue a bearer token signed with JWT_SECRET.")
    parser.add_argument("--user-id", required=True)
    parser.add_argument("--email", required=True)
    args = parser.parse_args(argv)

    token = build_token_service(get_settings()).issue(args.user_id, args.email)
    print(token)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
