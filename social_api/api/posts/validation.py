# social_api/api/posts/validation.py
"""
게시글/댓글 작성 요청 본문의 필드 검증.

validate_payload() 는 절대 예외를 발생시키지 않고 항상 ValidationResult 를 반환합니다.
같은 입력에는 항상 같은 결과를 돌려주는 순수 함수입니다.
"""
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Tuple

from social_api.api.posts.schemas import PostCreateSchema, CommentCreateSchema


class PayloadKind(Enum):
    """검증 대상 요청 종류"""
    POST = "post"
    COMMENT = "comment"


# 종류별로 에러 맵에 나타날 수 있는 필드명 (닫힌 집합)
ERROR_FIELDS: Dict[PayloadKind, Tuple[str, ...]] = {
    PayloadKind.POST: ("text", "displayName", "avatarUrl"),
    PayloadKind.COMMENT: ("text", "displayName", "avatarUrl"),
}

_SCHEMAS = {
    PayloadKind.POST: PostCreateSchema(),
    PayloadKind.COMMENT: CommentCreateSchema(),
}


@dataclass(frozen=True)
class ValidationResult:
    errors: Dict[str, str] = field(default_factory=dict)

    @property
    def is_valid(self) -> bool:
        return not self.errors


def _first_message(messages: Any) -> str:
    if isinstance(messages, (list, tuple)) and messages:
        return str(messages[0])
    return str(messages)


def validate_payload(kind: PayloadKind, payload: Any) -> ValidationResult:
    """요청 본문을 검증하고 필드명 -> 메시지 형태의 에러 맵을 반환합니다."""
    if not isinstance(payload, Mapping):
        payload = {}

    raw_errors = _SCHEMAS[kind].validate(dict(payload))
    errors = {
        name: _first_message(raw_errors[name])
        for name in ERROR_FIELDS[kind]
        if name in raw_errors
    }
    return ValidationResult(errors=errors)
