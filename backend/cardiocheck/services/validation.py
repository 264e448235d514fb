from __future__ import annotations
from typing import Any, List, Union

from pydantic import ValidationError

from cardiocheck.schemas import AssessmentInput, FieldViolation

# 응답 errors 목록의 정렬 기준 (요청 필드 선언 순서)
FIELD_ORDER = ["age", "gender", "systolicBP", "diastolicBP", "cholesterol", "diabetes"]


def _field_name(loc: tuple) -> str:
    if not loc:
        return "body"
    return str(loc[0])


def validate_assessment(body: Any) -> Union[AssessmentInput, List[FieldViolation]]:
    """
    요청 본문을 검증하여 AssessmentInput 또는 필드별 위반 목록(비어있지 않음)을 반환합니다.
    위반이 하나라도 있으면 정규화된 값은 만들지 않습니다.
    """
    if not isinstance(body, dict):
        return [FieldViolation(field="body", message="Request body must be a JSON object.", value=None)]

    try:
        return AssessmentInput.model_validate(body)
    except ValidationError as e:
        violations: List[FieldViolation] = []
        seen = set()
        for err in e.errors():
            field = _field_name(err.get("loc", ()))
            # 같은 필드에서 여러 에러가 나오면 첫 번째만 사용
            if field in seen:
                continue
            seen.add(field)
            violations.append(
                FieldViolation(field=field, message=err.get("msg", "Invalid value"), value=body.get(field))
            )
        violations.sort(key=lambda v: FIELD_ORDER.index(v.field) if v.field in FIELD_ORDER else len(FIELD_ORDER))
        return violations
