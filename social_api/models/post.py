# social_api/models/post.py
from dataclasses import dataclass, field, asdict
from datetime import datetime
from typing import Optional, List, Dict, Any

from social_api.utils.datetime_utils import DateTimeUtils


def is_same_principal(owner_id: Any, principal_id: Any) -> bool:
    """
    리소스 작성자 ID와 요청자(principal) ID가 같은지 비교합니다.
    식별자의 실제 타입과 무관하게 문자열 표현으로 비교합니다.
    """
    if owner_id is None or principal_id is None:
        return False
    return str(owner_id) == str(principal_id)


@dataclass
class Like:
    """Post 문서 내부 likes 배열에 저장될 좋아요 정보."""
    user_id: str


@dataclass
class Comment:
    """
    Post 문서 내부 comments 배열에 저장될 댓글.
    작성자 표시 정보(display_name, avatar_url)는 작성 시점의 값을 그대로 보관합니다.
    """
    id: str
    text: str
    author_id: str
    display_name: Optional[str] = None
    avatar_url: Optional[str] = None
    created_at: datetime = field(default_factory=DateTimeUtils.now)

    def is_authored_by(self, principal_id: str) -> bool:
        return is_same_principal(self.author_id, principal_id)


@dataclass
class Post:
    """
    Firestore 'posts' 컬렉션의 문서 구조를 정의하는 데이터클래스.
    likes / comments 는 게시글이 소유하는 하위 컬렉션으로, 게시글과 함께 저장되고 삭제됩니다.
    """
    id: str
    text: str
    author_id: str
    display_name: Optional[str] = None
    avatar_url: Optional[str] = None
    created_at: datetime = field(default_factory=DateTimeUtils.now)
    likes: List[Like] = field(default_factory=list)
    comments: List[Comment] = field(default_factory=list)

    def is_authored_by(self, principal_id: str) -> bool:
        return is_same_principal(self.author_id, principal_id)

    # --- 좋아요 ---
    def find_like_index(self, user_id: str) -> Optional[int]:
        """user_id 의 좋아요 위치를 반환합니다. (사용자당 최대 1개)"""
        for index, like in enumerate(self.likes):
            if is_same_principal(like.user_id, user_id):
                return index
        return None

    def is_liked_by(self, user_id: str) -> bool:
        return self.find_like_index(user_id) is not None

    # --- 댓글 ---
    def find_comment(self, comment_id: str) -> Optional[Comment]:
        for comment in self.comments:
            if str(comment.id) == str(comment_id):
                return comment
        return None

    def to_dict(self) -> Dict[str, Any]:
        """저장소 문서 형식(snake_case)의 딕셔너리로 변환합니다."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Post":
        """저장소 문서 딕셔너리로부터 Post 를 복원합니다."""
        return cls(
            id=data['id'],
            text=data['text'],
            author_id=data['author_id'],
            display_name=data.get('display_name'),
            avatar_url=data.get('avatar_url'),
            created_at=data.get('created_at') or DateTimeUtils.now(),
            likes=[Like(user_id=like['user_id']) for like in data.get('likes', [])],
            comments=[
                Comment(
                    id=comment['id'],
                    text=comment['text'],
                    author_id=comment['author_id'],
                    display_name=comment.get('display_name'),
                    avatar_url=comment.get('avatar_url'),
                    created_at=comment.get('created_at') or DateTimeUtils.now(),
                )
                for comment in data.get('comments', [])
            ],
        )
