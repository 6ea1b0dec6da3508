# social_api/core/exceptions.py
"""
게시글 서비스에서 발생하는 실패 유형 정의.

서비스 계층은 아래 예외를 그대로 발생시키고, 복구하지 않습니다.
애플리케이션 팩토리(create_app)에 등록된 에러 핸들러가 각 예외를
고정된 HTTP 상태 코드와 기계가 읽을 수 있는 에러 본문으로 변환합니다.
"""
from enum import Enum
from typing import Dict, Optional


class ErrorKind(Enum):
    """실패 유형을 정의하는 Enum 클래스"""
    NOT_FOUND = "NotFound"
    UNAUTHORIZED = "Unauthorized"
    VALIDATION_FAILED = "ValidationFailed"
    ALREADY_LIKED = "AlreadyLiked"
    NOT_LIKED = "NotLiked"
    COMMENT_NOT_FOUND = "CommentNotFound"
    STORE_UNAVAILABLE = "StoreUnavailable"


class PostServiceError(Exception):
    """모든 게시글 서비스 실패의 기반 클래스."""
    kind: ErrorKind
    status_code: int = 500
    error_key: str = "error"
    default_message: str = "Unexpected post service failure."

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, str]:
        return {self.error_key: self.message}


class PostNotFoundError(PostServiceError):
    kind = ErrorKind.NOT_FOUND
    status_code = 404
    error_key = "post_not_found"
    default_message = "Post not found."


class UnauthorizedError(PostServiceError):
    kind = ErrorKind.UNAUTHORIZED
    status_code = 403
    error_key = "unauthorized"
    default_message = "User not authorized."


class ValidationFailedError(PostServiceError):
    """입력값 검증 실패. 필드명 -> 메시지 맵을 그대로 본문으로 사용합니다."""
    kind = ErrorKind.VALIDATION_FAILED
    status_code = 400
    error_key = "validation_failed"
    default_message = "Invalid input."

    def __init__(self, errors: Dict[str, str]):
        self.errors = dict(errors)
        super().__init__("; ".join(f"{k}: {v}" for k, v in self.errors.items()) or None)

    def to_dict(self) -> Dict[str, str]:
        return dict(self.errors)


class AlreadyLikedError(PostServiceError):
    kind = ErrorKind.ALREADY_LIKED
    status_code = 400
    error_key = "already_liked"
    default_message = "User already liked this post."


class NotLikedError(PostServiceError):
    kind = ErrorKind.NOT_LIKED
    status_code = 400
    error_key = "not_liked"
    default_message = "You have not yet liked this post."


class CommentNotFoundError(PostServiceError):
    kind = ErrorKind.COMMENT_NOT_FOUND
    status_code = 404
    error_key = "comment_not_exists"
    default_message = "Comment does not exist."


class StoreUnavailableError(PostServiceError):
    """문서 저장소 장애(타임아웃, 연결 실패 등). 서비스 계층은 재시도하지 않습니다."""
    kind = ErrorKind.STORE_UNAVAILABLE
    status_code = 503
    error_key = "store_unavailable"
    default_message = "Post store is temporarily unavailable."
