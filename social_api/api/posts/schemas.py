# social_api/api/posts/schemas.py
from marshmallow import Schema, fields, validate, post_load, ValidationError, EXCLUDE

from social_api.models.post import Post, Like, Comment

TEXT_REQUIRED_MESSAGE = "Text field is required."
POST_TEXT_MAX_LENGTH = 2000
COMMENT_TEXT_MAX_LENGTH = 1000


def _not_blank(value: str) -> None:
    """공백만 있는 텍스트는 비어 있는 것으로 간주합니다."""
    if not value.strip():
        raise ValidationError(TEXT_REQUIRED_MESSAGE)


def _text_field(max_length: int) -> fields.Str:
    return fields.Str(
        required=True,
        error_messages={
            "required": TEXT_REQUIRED_MESSAGE,
            "null": TEXT_REQUIRED_MESSAGE,
            "invalid": TEXT_REQUIRED_MESSAGE,
        },
        validate=[
            _not_blank,
            validate.Length(max=max_length, error="Text must be at most {max} characters."),
        ],
    )


# --- API 요청 스키마 ---

class PostCreateSchema(Schema):
    """POST /api/posts 요청 본문의 유효성을 검사합니다."""
    class Meta:
        unknown = EXCLUDE

    text = _text_field(POST_TEXT_MAX_LENGTH)
    display_name = fields.Str(allow_none=True, load_default=None, data_key="displayName")
    avatar_url = fields.Str(allow_none=True, load_default=None, data_key="avatarUrl")


class CommentCreateSchema(PostCreateSchema):
    """
    POST /api/posts/comment/{post_id}
    댓글 작성 요청 본문의 유효성을 검사합니다. 게시글과 같은 필드를 사용하지만 길이 제한이 더 짧습니다.
    """
    text = _text_field(COMMENT_TEXT_MAX_LENGTH)


# --- 직렬화 스키마 (응답 및 역직렬화) ---

class LikeSchema(Schema):
    user_id = fields.Str(required=True, data_key="userId")

    @post_load
    def make_like(self, data, **kwargs):
        return Like(**data)


class CommentSchema(Schema):
    id = fields.Str(required=True)
    text = fields.Str(required=True)
    author_id = fields.Str(required=True, data_key="authorId")
    display_name = fields.Str(allow_none=True, load_default=None, data_key="displayName")
    avatar_url = fields.Str(allow_none=True, load_default=None, data_key="avatarUrl")
    created_at = fields.DateTime(required=True, data_key="createdAt")

    @post_load
    def make_comment(self, data, **kwargs):
        return Comment(**data)


class PostSchema(Schema):
    """
    게시글 응답의 JSON 형식을 정의합니다.
    클라이언트 호환을 위해 필드명(camelCase)은 고정되어 있습니다.
    """
    id = fields.Str(required=True)
    text = fields.Str(required=True)
    author_id = fields.Str(required=True, data_key="authorId")
    display_name = fields.Str(allow_none=True, load_default=None, data_key="displayName")
    avatar_url = fields.Str(allow_none=True, load_default=None, data_key="avatarUrl")
    created_at = fields.DateTime(required=True, data_key="createdAt")
    likes = fields.List(fields.Nested(LikeSchema), load_default=list)
    comments = fields.List(fields.Nested(CommentSchema), load_default=list)

    @post_load
    def make_post(self, data, **kwargs):
        return Post(**data)
