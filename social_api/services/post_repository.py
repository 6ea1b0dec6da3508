# social_api/services/post_repository.py
"""
게시글 애그리거트 저장소.

PostRepository 는 문서 저장소에 대한 추상 계약이며, 게시글 한 건(좋아요/댓글 포함)을
하나의 문서로 통째로 읽고 씁니다. 여러 문서에 걸친 트랜잭션은 가정하지 않습니다.

- FirestorePostRepository: 운영용. mutate() 를 Firestore 트랜잭션 안에서 실행합니다.
- InMemoryPostRepository: 개발/테스트용. mutate() 를 게시글별 Lock 으로 직렬화합니다.
"""
import copy
import logging
import threading
from abc import ABC, abstractmethod
from typing import Callable, Dict, List, Optional

from firebase_admin import firestore
from google.api_core import exceptions as google_exceptions

from social_api.core.exceptions import StoreUnavailableError
from social_api.models.post import Post
from social_api.utils.datetime_utils import DateTimeUtils

logger = logging.getLogger(__name__)

PostMutator = Callable[[Post], None]


class PostRepository(ABC):
    """게시글 문서 저장소 계약."""

    @abstractmethod
    def find_by_id(self, post_id: str) -> Optional[Post]:
        ...

    @abstractmethod
    def find_all(self) -> List[Post]:
        """모든 게시글을 created_at 내림차순(최신순)으로 반환합니다."""
        ...

    @abstractmethod
    def save(self, post: Post) -> Post:
        """게시글 애그리거트 전체를 저장(upsert)합니다."""
        ...

    @abstractmethod
    def delete_by_id(self, post_id: str) -> bool:
        """삭제했으면 True, 문서가 없으면 False."""
        ...

    def exists(self, post_id: str) -> bool:
        return self.find_by_id(post_id) is not None

    def mutate(self, post_id: str, mutator: PostMutator) -> Optional[Post]:
        """
        조회 -> mutator 적용 -> 저장 순서로 게시글을 변경합니다.
        - 게시글이 없으면 None 을 반환합니다.
        - mutator 가 예외를 발생시키면 저장하지 않고 예외를 그대로 전달합니다.
        기본 구현은 단순 read-modify-write 이며 동시 쓰기 시 마지막 쓰기가 이깁니다.
        """
        post = self.find_by_id(post_id)
        if post is None:
            return None
        mutator(post)
        return self.save(post)


class InMemoryPostRepository(PostRepository):
    """프로세스 메모리에 게시글을 보관하는 저장소. 저장/조회 시 항상 복사본을 주고받습니다."""

    def __init__(self):
        self._posts: Dict[str, Post] = {}
        self._guard = threading.Lock()
        self._post_locks: Dict[str, threading.Lock] = {}

    def _lock_for(self, post_id: str) -> threading.Lock:
        with self._guard:
            return self._post_locks.setdefault(post_id, threading.Lock())

    def find_by_id(self, post_id: str) -> Optional[Post]:
        with self._guard:
            post = self._posts.get(post_id)
            return copy.deepcopy(post) if post is not None else None

    def find_all(self) -> List[Post]:
        with self._guard:
            posts = [copy.deepcopy(post) for post in self._posts.values()]
        return sorted(posts, key=lambda post: post.created_at, reverse=True)

    def save(self, post: Post) -> Post:
        with self._guard:
            self._posts[post.id] = copy.deepcopy(post)
        return post

    def _discard_lock(self, post_id: str) -> None:
        """존재하지 않는 게시글의 Lock 은 보관하지 않습니다."""
        with self._guard:
            if post_id not in self._posts:
                self._post_locks.pop(post_id, None)

    def delete_by_id(self, post_id: str) -> bool:
        # 진행 중인 mutate() 가 끝난 뒤에 삭제해야 삭제된 게시글이 다시 저장되지 않음
        with self._lock_for(post_id):
            with self._guard:
                deleted = self._posts.pop(post_id, None) is not None
                self._post_locks.pop(post_id, None)
        return deleted

    def mutate(self, post_id: str, mutator: PostMutator) -> Optional[Post]:
        if not self.exists(post_id):
            return None
        with self._lock_for(post_id):
            post = super().mutate(post_id, mutator)
        if post is None:
            self._discard_lock(post_id)
        return post


class FirestorePostRepository(PostRepository):
    """
    Firestore 'posts' 컬렉션을 사용하는 저장소.
    문서 ID 는 게시글 ID 와 같고, 좋아요/댓글은 문서 내부 배열로 저장됩니다.
    """

    def __init__(self, client=None, collection_name: str = 'posts'):
        self.db = client or firestore.client()
        self.posts_ref = self.db.collection(collection_name)

    @staticmethod
    def _to_document(post: Post) -> dict:
        return DateTimeUtils.for_firestore(post.to_dict())

    @staticmethod
    def _from_snapshot(snapshot) -> Post:
        data = DateTimeUtils.from_firestore(snapshot.to_dict())
        data.setdefault('id', snapshot.id)
        return Post.from_dict(data)

    def find_by_id(self, post_id: str) -> Optional[Post]:
        try:
            snapshot = self.posts_ref.document(post_id).get()
        except (google_exceptions.GoogleAPICallError, google_exceptions.RetryError) as e:
            logger.error(f"게시글 조회 실패 (post_id: {post_id}): {e}", exc_info=True)
            raise StoreUnavailableError() from e
        if not snapshot.exists:
            return None
        return self._from_snapshot(snapshot)

    def find_all(self) -> List[Post]:
        try:
            query = self.posts_ref.order_by("created_at", direction=firestore.Query.DESCENDING)
            return [self._from_snapshot(doc) for doc in query.stream()]
        except (google_exceptions.GoogleAPICallError, google_exceptions.RetryError) as e:
            logger.error(f"게시글 목록 조회 실패: {e}", exc_info=True)
            raise StoreUnavailableError() from e

    def save(self, post: Post) -> Post:
        try:
            self.posts_ref.document(post.id).set(self._to_document(post))
        except (google_exceptions.GoogleAPICallError, google_exceptions.RetryError) as e:
            logger.error(f"게시글 저장 실패 (post_id: {post.id}): {e}", exc_info=True)
            raise StoreUnavailableError() from e
        return post

    def delete_by_id(self, post_id: str) -> bool:
        post_ref = self.posts_ref.document(post_id)
        try:
            if not post_ref.get().exists:
                return False
            post_ref.delete()
        except (google_exceptions.GoogleAPICallError, google_exceptions.RetryError) as e:
            logger.error(f"게시글 삭제 실패 (post_id: {post_id}): {e}", exc_info=True)
            raise StoreUnavailableError() from e
        return True

    def mutate(self, post_id: str, mutator: PostMutator) -> Optional[Post]:
        """
        트랜잭션 내에서 게시글을 읽고 변경한 뒤 문서 전체를 다시 씁니다.
        동시에 같은 문서를 수정한 트랜잭션이 있으면 Firestore 가 트랜잭션을 재시도합니다.
        """
        post_ref = self.posts_ref.document(post_id)

        @firestore.transactional
        def _mutate_in_transaction(transaction, post_ref):
            snapshot = post_ref.get(transaction=transaction)
            if not snapshot.exists:
                return None
            post = self._from_snapshot(snapshot)
            mutator(post)
            transaction.set(post_ref, self._to_document(post))
            return post

        try:
            return _mutate_in_transaction(self.db.transaction(), post_ref)
        except (google_exceptions.GoogleAPICallError, google_exceptions.RetryError) as e:
            logger.error(f"게시글 트랜잭션 실패 (post_id: {post_id}): {e}", exc_info=True)
            raise StoreUnavailableError() from e
