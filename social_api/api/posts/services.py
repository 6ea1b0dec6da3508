# social_api/api/posts/services.py
import logging
import uuid
from typing import Callable, List, Optional
from datetime import datetime

from social_api.api.posts.validation import PayloadKind, validate_payload
from social_api.core.exceptions import (
    PostNotFoundError, UnauthorizedError, ValidationFailedError,
    AlreadyLikedError, NotLikedError, CommentNotFoundError
)
from social_api.models.post import Post, Like, Comment
from social_api.services.post_repository import PostRepository
from social_api.utils.datetime_utils import DateTimeUtils

logger = logging.getLogger(__name__)


def _new_id() -> str:
    return str(uuid.uuid4())


class PostService:
    """
    게시글 애그리거트 변경 로직을 담당하는 서비스 클래스.
    - 좋아요/좋아요 취소, 댓글 작성/삭제, 게시글 삭제의 권한 및 상태 전이 검사를 포함합니다.
    - 모든 변경은 조회 -> 상태 검사 -> 메모리 상 변경 -> 애그리거트 전체 저장 순서로 진행됩니다.
    - 실패는 core.exceptions 의 예외로 호출자에게 그대로 전달됩니다.
    """
    def __init__(
        self,
        repository: PostRepository,
        id_factory: Callable[[], str] = _new_id,
        clock: Callable[[], datetime] = DateTimeUtils.now,
    ):
        self.repository = repository
        self._new_id = id_factory
        self._now = clock

    # --- 조회 ---
    def get_post(self, post_id: str) -> Post:
        post = self.repository.find_by_id(post_id)
        if post is None:
            raise PostNotFoundError()
        return post

    def list_posts(self) -> List[Post]:
        """모든 게시글을 최신순으로 반환합니다."""
        return self.repository.find_all()

    # --- 게시글 작성/삭제 ---
    def create_post(self, principal_id: str, text: str,
                    display_name: Optional[str] = None, avatar_url: Optional[str] = None) -> Post:
        """새로운 게시글을 생성하고 저장합니다."""
        self._validate(PayloadKind.POST, text, display_name, avatar_url)

        new_post = Post(
            id=self._new_id(),
            text=text,
            author_id=principal_id,
            display_name=display_name,
            avatar_url=avatar_url,
            created_at=self._now(),
        )
        self.repository.save(new_post)
        logger.info(f"게시글 생성 (post_id: {new_post.id}, author_id: {principal_id})")
        return new_post

    def delete_post(self, post_id: str, principal_id: str) -> bool:
        """작성자 본인만 게시글을 삭제할 수 있습니다. 좋아요/댓글도 함께 삭제됩니다."""
        post = self.get_post(post_id)
        if not post.is_authored_by(principal_id):
            logger.warning(f"게시글 삭제 권한 없음 (post_id: {post_id}, user_id: {principal_id})")
            raise UnauthorizedError()

        if not self.repository.delete_by_id(post_id):
            raise PostNotFoundError()
        logger.info(f"게시글 삭제 (post_id: {post_id})")
        return True

    # --- 좋아요 ---
    def like_post(self, post_id: str, principal_id: str) -> Post:
        def _add_like(post: Post) -> None:
            if post.is_liked_by(principal_id):
                logger.warning(f"중복 좋아요 거부 (post_id: {post_id}, user_id: {principal_id})")
                raise AlreadyLikedError()
            post.likes.append(Like(user_id=principal_id))

        post = self._mutate(post_id, _add_like)
        logger.info(f"좋아요 추가 (post_id: {post_id}, user_id: {principal_id})")
        return post

    def unlike_post(self, post_id: str, principal_id: str) -> Post:
        def _remove_like(post: Post) -> None:
            index = post.find_like_index(principal_id)
            if index is None:
                logger.warning(f"좋아요하지 않은 게시글 취소 거부 (post_id: {post_id}, user_id: {principal_id})")
                raise NotLikedError()
            del post.likes[index]

        post = self._mutate(post_id, _remove_like)
        logger.info(f"좋아요 취소 (post_id: {post_id}, user_id: {principal_id})")
        return post

    # --- 댓글 ---
    def add_comment(self, post_id: str, principal_id: str, text: str,
                    display_name: Optional[str] = None, avatar_url: Optional[str] = None) -> Post:
        """게시글에 댓글을 추가합니다. 입력값이 유효하지 않으면 저장소에 접근하지 않습니다."""
        self._validate(PayloadKind.COMMENT, text, display_name, avatar_url)

        new_comment = Comment(
            id=self._new_id(),
            text=text,
            author_id=principal_id,
            display_name=display_name,
            avatar_url=avatar_url,
            created_at=self._now(),
        )

        def _append_comment(post: Post) -> None:
            post.comments.append(new_comment)

        post = self._mutate(post_id, _append_comment)
        logger.info(f"댓글 작성 (post_id: {post_id}, comment_id: {new_comment.id})")
        return post

    def remove_comment(self, post_id: str, comment_id: str, principal_id: str) -> Post:
        """댓글 작성자 본인만 댓글을 삭제할 수 있습니다."""
        def _remove_comment(post: Post) -> None:
            comment = post.find_comment(comment_id)
            if comment is None:
                raise CommentNotFoundError()
            if not comment.is_authored_by(principal_id):
                logger.warning(f"댓글 삭제 권한 없음 (comment_id: {comment_id}, user_id: {principal_id})")
                raise UnauthorizedError("User not authorized to delete this comment.")
            post.comments.remove(comment)

        post = self._mutate(post_id, _remove_comment)
        logger.info(f"댓글 삭제 (post_id: {post_id}, comment_id: {comment_id})")
        return post

    # --- 내부 헬퍼 ---
    def _validate(self, kind: PayloadKind, text, display_name, avatar_url) -> None:
        result = validate_payload(kind, {
            "text": text,
            "displayName": display_name,
            "avatarUrl": avatar_url,
        })
        if not result.is_valid:
            raise ValidationFailedError(result.errors)

    def _mutate(self, post_id: str, mutator: Callable[[Post], None]) -> Post:
        post = self.repository.mutate(post_id, mutator)
        if post is None:
            raise PostNotFoundError()
        return post
