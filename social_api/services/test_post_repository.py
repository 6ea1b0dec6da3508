# social_api/services/test_post_repository.py
"""
게시글 저장소 테스트

- InMemoryPostRepository: 실제 동작 검증
- FirestorePostRepository: Firestore 클라이언트를 MagicMock 으로 대체하여 문서 변환/장애 처리 검증

사용법: python -m pytest social_api/services/test_post_repository.py -v
"""

import threading
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest
from google.api_core import exceptions as google_exceptions

from social_api.api.posts.services import PostService
from social_api.core.exceptions import StoreUnavailableError, AlreadyLikedError, PostNotFoundError
from social_api.models.post import Post, Like, Comment
from social_api.services import post_repository
from social_api.services.post_repository import InMemoryPostRepository, FirestorePostRepository


def _post(post_id="p1", minutes=0, **kwargs) -> Post:
    created = datetime(2024, 1, 1, tzinfo=timezone.utc) + timedelta(minutes=minutes)
    return Post(id=post_id, text="hello", author_id="A", created_at=created, **kwargs)


# --- InMemoryPostRepository ---

def test_in_memory_save_and_find_return_copies():
    repository = InMemoryPostRepository()
    post = _post()
    repository.save(post)

    post.likes.append(Like(user_id="B"))
    found = repository.find_by_id("p1")
    assert found.likes == []

    found.comments.append(Comment(id="c1", text="x", author_id="B"))
    assert repository.find_by_id("p1").comments == []

def test_in_memory_find_all_newest_first():
    repository = InMemoryPostRepository()
    repository.save(_post("old", minutes=0))
    repository.save(_post("new", minutes=10))
    repository.save(_post("mid", minutes=5))

    assert [p.id for p in repository.find_all()] == ["new", "mid", "old"]

def test_in_memory_delete_and_exists():
    repository = InMemoryPostRepository()
    repository.save(_post())

    assert repository.exists("p1")
    assert repository.delete_by_id("p1") is True
    assert repository.delete_by_id("p1") is False
    assert not repository.exists("p1")

def test_in_memory_mutate():
    repository = InMemoryPostRepository()
    repository.save(_post())

    updated = repository.mutate("p1", lambda post: post.likes.append(Like(user_id="B")))
    assert updated.likes == [Like(user_id="B")]
    assert repository.find_by_id("p1").likes == [Like(user_id="B")]

    assert repository.mutate("missing", lambda post: None) is None

def test_in_memory_mutate_aborts_on_error():
    repository = InMemoryPostRepository()
    repository.save(_post())

    def _fail(post):
        post.likes.append(Like(user_id="B"))
        raise AlreadyLikedError()

    with pytest.raises(AlreadyLikedError):
        repository.mutate("p1", _fail)
    assert repository.find_by_id("p1").likes == []

def test_in_memory_delete_waits_for_running_mutation():
    """변경 중인 게시글을 삭제하면, 변경이 끝난 뒤 삭제되어 다시 저장되지 않아야 함"""
    repository = InMemoryPostRepository()
    repository.save(_post())
    started = threading.Event()
    proceed = threading.Event()
    deleted = []

    def _slow_like(post):
        started.set()
        proceed.wait(timeout=5)
        post.likes.append(Like(user_id="B"))

    mutation = threading.Thread(target=repository.mutate, args=("p1", _slow_like))
    mutation.start()
    assert started.wait(timeout=5)

    deletion = threading.Thread(target=lambda: deleted.append(repository.delete_by_id("p1")))
    deletion.start()
    proceed.set()
    mutation.join(timeout=5)
    deletion.join(timeout=5)

    assert deleted == [True]
    assert repository.find_by_id("p1") is None

def test_in_memory_missing_posts_do_not_keep_locks():
    repository = InMemoryPostRepository()
    service = PostService(repository)

    for i in range(50):
        with pytest.raises(PostNotFoundError):
            service.like_post(f"missing-{i}", "U")
        repository.delete_by_id(f"missing-{i}")

    assert repository._post_locks == {}

def test_in_memory_delete_drops_post_lock():
    repository = InMemoryPostRepository()
    repository.save(_post())
    repository.mutate("p1", lambda post: post.likes.append(Like(user_id="B")))

    repository.delete_by_id("p1")

    assert "p1" not in repository._post_locks


# --- FirestorePostRepository ---

@pytest.fixture
def firestore_client():
    return MagicMock()

@pytest.fixture
def posts_ref(firestore_client):
    return firestore_client.collection.return_value

def _snapshot(data, exists=True, doc_id="p1"):
    snapshot = MagicMock()
    snapshot.exists = exists
    snapshot.id = doc_id
    snapshot.to_dict.return_value = data
    return snapshot

def test_firestore_uses_configured_collection(firestore_client):
    FirestorePostRepository(firestore_client, 'community_posts')
    firestore_client.collection.assert_called_once_with('community_posts')

def test_firestore_save_writes_snake_case_document(firestore_client, posts_ref):
    repository = FirestorePostRepository(firestore_client)
    post = _post(likes=[Like(user_id="B")],
                 comments=[Comment(id="c1", text="nice", author_id="C",
                                   created_at=datetime(2024, 1, 2))])

    repository.save(post)

    posts_ref.document.assert_called_with("p1")
    document = posts_ref.document.return_value.set.call_args[0][0]
    assert document["author_id"] == "A"
    assert document["likes"] == [{"user_id": "B"}]
    assert document["comments"][0]["created_at"].tzinfo == timezone.utc

def test_firestore_find_by_id(firestore_client, posts_ref):
    stored = _post(likes=[Like(user_id="B")]).to_dict()
    posts_ref.document.return_value.get.return_value = _snapshot(stored)

    post = FirestorePostRepository(firestore_client).find_by_id("p1")

    assert post == _post(likes=[Like(user_id="B")])

def test_firestore_find_by_id_missing(firestore_client, posts_ref):
    posts_ref.document.return_value.get.return_value = _snapshot(None, exists=False)

    assert FirestorePostRepository(firestore_client).find_by_id("p1") is None

def test_firestore_find_all(firestore_client, posts_ref):
    query = posts_ref.order_by.return_value
    query.stream.return_value = [
        _snapshot(_post("new", minutes=5).to_dict(), doc_id="new"),
        _snapshot(_post("old").to_dict(), doc_id="old"),
    ]

    posts = FirestorePostRepository(firestore_client).find_all()

    assert [p.id for p in posts] == ["new", "old"]
    assert posts_ref.order_by.call_args[0][0] == "created_at"

def test_firestore_delete(firestore_client, posts_ref):
    doc_ref = posts_ref.document.return_value
    doc_ref.get.return_value = _snapshot({}, exists=True)
    repository = FirestorePostRepository(firestore_client)

    assert repository.delete_by_id("p1") is True
    doc_ref.delete.assert_called_once()

    doc_ref.get.return_value = _snapshot(None, exists=False)
    assert repository.delete_by_id("p1") is False

def test_firestore_errors_become_store_unavailable(firestore_client, posts_ref):
    doc_ref = posts_ref.document.return_value
    doc_ref.get.side_effect = google_exceptions.ServiceUnavailable("firestore down")
    doc_ref.set.side_effect = google_exceptions.DeadlineExceeded("timeout")
    repository = FirestorePostRepository(firestore_client)

    with pytest.raises(StoreUnavailableError):
        repository.find_by_id("p1")
    with pytest.raises(StoreUnavailableError):
        repository.save(_post())
    with pytest.raises(StoreUnavailableError):
        repository.delete_by_id("p1")


# --- FirestorePostRepository.mutate (트랜잭션) ---

@pytest.fixture
def plain_transactional(monkeypatch):
    """@firestore.transactional 의 재시도/커밋 처리를 걷어내고 함수 본문만 실행"""
    monkeypatch.setattr(post_repository.firestore, "transactional", lambda func: func)

@pytest.fixture
def transaction(firestore_client):
    return firestore_client.transaction.return_value

def test_firestore_mutate_writes_through_transaction(firestore_client, posts_ref, transaction, plain_transactional):
    doc_ref = posts_ref.document.return_value
    doc_ref.get.return_value = _snapshot(_post().to_dict())

    updated = FirestorePostRepository(firestore_client).mutate(
        "p1", lambda post: post.likes.append(Like(user_id="B"))
    )

    assert updated.likes == [Like(user_id="B")]
    doc_ref.get.assert_called_once_with(transaction=transaction)
    written_ref, document = transaction.set.call_args[0]
    assert written_ref is doc_ref
    assert document["likes"] == [{"user_id": "B"}]
    doc_ref.set.assert_not_called()

def test_firestore_mutate_missing_post(firestore_client, posts_ref, transaction, plain_transactional):
    posts_ref.document.return_value.get.return_value = _snapshot(None, exists=False)
    mutator = MagicMock()

    assert FirestorePostRepository(firestore_client).mutate("p1", mutator) is None
    mutator.assert_not_called()
    transaction.set.assert_not_called()

def test_firestore_mutate_skips_write_when_mutator_fails(firestore_client, posts_ref, transaction, plain_transactional):
    posts_ref.document.return_value.get.return_value = _snapshot(_post().to_dict())

    def _fail(post):
        raise AlreadyLikedError()

    with pytest.raises(AlreadyLikedError):
        FirestorePostRepository(firestore_client).mutate("p1", _fail)
    transaction.set.assert_not_called()

def test_firestore_mutate_errors_become_store_unavailable(firestore_client, posts_ref, transaction, plain_transactional):
    posts_ref.document.return_value.get.side_effect = google_exceptions.Aborted("contention")

    with pytest.raises(StoreUnavailableError):
        FirestorePostRepository(firestore_client).mutate("p1", lambda post: None)
    transaction.set.assert_not_called()
