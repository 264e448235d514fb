import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from conftest import VALID_BODY, FakeGenerator, FakeStore
from cardiocheck.services.pipeline import (
    ErrorKind, Failure, RequestContext, Success, attach_identity, default_assessment,
    guest_assessment, iso_utc, member_assessment, require_identity, run_pipeline, validate_body,
)


class CountingHandler:
    def __init__(self):
        self.contexts = []

    async def __call__(self, ctx):
        self.contexts.append(ctx)
        return Success("ok", None)


def header_cases(tokens):
    expired = tokens.issue("1", "a@x.com", now=datetime.now(timezone.utc) - timedelta(days=40))
    return {
        "none": None,
        "empty": "",
        "malformed": "Bearer not-a-jwt",
        "expired": f"Bearer {expired}",
        "wrong-scheme": "Basic dXNlcjpwYXNz",
        "bare-scheme": "Bearer",
        "valid": f"Bearer {tokens.issue('7', 'a@x.com')}",
    }


def test_optional_guard_always_continues_exactly_once(tokens):
    for name, header in header_cases(tokens).items():
        handler = CountingHandler()
        outcome = asyncio.run(run_pipeline(RequestContext(authorization=header), [attach_identity(tokens)], handler))
        assert isinstance(outcome, Success), name
        assert len(handler.contexts) == 1, name
        identity = handler.contexts[0].identity
        if name == "valid":
            assert identity.user_id == "7" and identity.email == "a@x.com"
        else:
            assert identity is None, name


@pytest.mark.parametrize("name,message", [
    ("none", "No token provided. Please log in."),
    ("empty", "No token provided. Please log in."),
    ("malformed", "Invalid or expired token. Please log in again."),
    ("expired", "Invalid or expired token. Please log in again."),
    ("wrong-scheme", "Invalid or expired token. Please log in again."),
    ("bare-scheme", "Invalid or expired token. Please log in again."),
])
def test_required_guard_rejects_without_continuing(tokens, name, message):
    handler = CountingHandler()
    ctx = RequestContext(authorization=header_cases(tokens)[name])
    outcome = asyncio.run(run_pipeline(ctx, [require_identity(tokens)], handler))
    assert isinstance(outcome, Failure)
    assert outcome.kind is ErrorKind.AUTH
    assert outcome.status_code == 401
    assert outcome.message == message
    assert handler.contexts == []


def test_required_guard_attaches_identity_once(tokens):
    handler = CountingHandler()
    ctx = RequestContext(authorization=header_cases(tokens)["valid"])
    asyncio.run(run_pipeline(ctx, [require_identity(tokens)], handler))
    assert len(handler.contexts) == 1
    assert handler.contexts[0].identity.user_id == "7"


def test_validation_stage_short_circuits_before_handler():
    handler = CountingHandler()
    ctx = RequestContext(body=dict(VALID_BODY, age=0))
    outcome = asyncio.run(run_pipeline(ctx, [validate_body], handler))
    assert outcome.kind is ErrorKind.VALIDATION
    assert outcome.status_code == 400
    assert [e.field for e in outcome.errors] == ["age"]
    assert handler.contexts == []


def test_auth_failure_stops_before_validation(tokens):
    generator, store = FakeGenerator(), FakeStore()
    outcome = asyncio.run(member_assessment(RequestContext(body={}), tokens, generator, store))
    assert outcome.status_code == 401
    assert outcome.errors is None


def test_member_generator_failure_is_upstream(tokens):
    generator, store = FakeGenerator(error=RuntimeError("model down")), FakeStore()
    ctx = RequestContext(authorization=f"Bearer {tokens.issue('1', 'a@x.com')}", body=VALID_BODY)
    outcome = asyncio.run(member_assessment(ctx, tokens, generator, store))
    assert outcome.kind is ErrorKind.UPSTREAM
    assert outcome.message == "Error generating or saving assessment."
    assert store.records == []


def test_member_store_failure_is_persistence(tokens):
    generator, store = FakeGenerator(), FakeStore(error=RuntimeError("db down"))
    ctx = RequestContext(authorization=f"Bearer {tokens.issue('1', 'a@x.com')}", body=VALID_BODY)
    outcome = asyncio.run(member_assessment(ctx, tokens, generator, store))
    assert outcome.kind is ErrorKind.PERSISTENCE
    assert outcome.status_code == 500
    assert len(generator.calls) == 1


def test_default_and_guest_failures_use_their_own_messages(tokens):
    generator = FakeGenerator(error=RuntimeError("boom"))
    default = asyncio.run(default_assessment(RequestContext(), tokens, generator))
    guest = asyncio.run(guest_assessment(RequestContext(body=VALID_BODY), generator))
    assert default.message == "Something went wrong while fetching AI assessment."
    assert guest.message == "Failed to generate guest AI assessment."
    assert default.kind is guest.kind is ErrorKind.UPSTREAM


def test_iso_utc_format():
    assert iso_utc(datetime(2025, 1, 2, 3, 4, 5, tzinfo=timezone.utc)) == "2025-01-02T03:04:05.000Z"
    assert iso_utc(datetime(2025, 1, 2, 3, 4, 5)) == "2025-01-02T03:04:05.000Z"
