# social_api/conftest.py
import pytest
from flask_jwt_extended import create_access_token

from social_api import create_app
from social_api.api.posts.services import PostService
from social_api.services.post_repository import InMemoryPostRepository


@pytest.fixture
def repository():
    return InMemoryPostRepository()


@pytest.fixture
def post_service(repository):
    return PostService(repository)


@pytest.fixture
def app(repository):
    app = create_app('testing', repository=repository)
    yield app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def auth_headers(app):
    """사용자 ID 로 Bearer 토큰 헤더를 만들어 주는 팩토리."""
    def _make(user_id: str) -> dict:
        with app.app_context():
            token = create_access_token(identity=user_id)
        return {"Authorization": f"Bearer {token}"}
    return _make
