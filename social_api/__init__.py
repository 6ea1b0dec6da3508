# social_api/__init__.py

# =====================================================================================
# 1. 환경 변수 로드 (가장 먼저 실행)
# =====================================================================================
from dotenv import load_dotenv
load_dotenv()

# =====================================================================================
# 2. 모듈 임포트 (Module Imports)
# =====================================================================================
import os
import logging
from typing import Optional
from flask import Flask, jsonify
from marshmallow import ValidationError
from werkzeug.exceptions import HTTPException
from flask_jwt_extended import JWTManager
import firebase_admin
from firebase_admin import credentials, firestore

# - 설정
from social_api.core.config import config_by_name
from social_api.core.exceptions import PostServiceError, ValidationFailedError

# - API 블루프린트
from social_api.api.posts.routes import posts_bp

# - 서비스 모듈
from social_api.api.posts.services import PostService
from social_api.services.post_repository import (
    PostRepository, FirestorePostRepository, InMemoryPostRepository
)


def _create_post_repository(app: Flask) -> PostRepository:
    """설정(POST_STORE)에 따라 게시글 저장소를 생성합니다."""
    store = app.config['POST_STORE']
    if store == 'memory':
        return InMemoryPostRepository()
    if store != 'firestore':
        raise ValueError(f"지원하지 않는 POST_STORE 값입니다: {store}")

    if not firebase_admin._apps:
        cred_path = app.config['FIREBASE_CREDENTIALS_PATH']
        if not cred_path or not os.path.exists(cred_path):
            raise FileNotFoundError(f"Firebase 인증 파일을 찾을 수 없습니다: {cred_path}")
        firebase_admin.initialize_app(credentials.Certificate(cred_path))

    return FirestorePostRepository(firestore.client(), app.config['POSTS_COLLECTION'])


def create_app(config_name: Optional[str] = None, repository: Optional[PostRepository] = None):
    """
    Flask 애플리케이션 팩토리 함수.
    repository 를 넘기면 설정과 관계없이 해당 저장소를 사용합니다.
    """
    # =====================================================================================
    # 3. Flask 앱 생성 및 기본 설정
    # =====================================================================================
    config_name = config_name or os.getenv('FLASK_ENV', 'development')

    app = Flask(__name__)
    app.config.from_object(config_by_name[config_name])
    app.json.ensure_ascii = False

    # =====================================================================================
    # 4. 확장 기능 및 외부 서비스 초기화
    # =====================================================================================
    JWTManager(app)

    # =====================================================================================
    # 5. 서비스 인스턴스 생성 및 'app.services'에 저장 (의존성 주입)
    # =====================================================================================
    app.services = {}

    try:
        post_repository = repository or _create_post_repository(app)
    except Exception as e:
        logging.error(f"Failed to initialize post repository: {e}")
        raise
    app.services['posts'] = PostService(post_repository)
    logging.info(f"Post service initialized with {type(post_repository).__name__}")

    # =====================================================================================
    # 6. 블루프린트 등록
    # =====================================================================================
    app.register_blueprint(posts_bp, url_prefix='/api/posts')

    # =====================================================================================
    # 7. 전역 에러 핸들러 설정
    # =====================================================================================
    @app.errorhandler(PostServiceError)
    def handle_post_service_error(err):
        if not isinstance(err, ValidationFailedError):
            logging.info(f"Post operation rejected: {err.kind.value} ({err.message})")
        return jsonify(err.to_dict()), err.status_code

    @app.errorhandler(ValidationError)
    def handle_marshmallow_validation(err):
        response = {"error_code": "VALIDATION_ERROR", "details": err.messages}
        return jsonify(response), 400

    @app.errorhandler(Exception)
    def handle_generic_exception(err):
        # 라우팅 오류 등 HTTP 예외는 원래 상태 코드를 그대로 사용
        if isinstance(err, HTTPException):
            return err
        logging.error(f"An unhandled exception occurred: {err}", exc_info=True)
        response = {"error_code": "INTERNAL_SERVER_ERROR", "message": "An unexpected server error occurred."}
        return jsonify(response), 500

    # =====================================================================================
    # 8. 로깅 및 앱 반환
    # =====================================================================================
    if not app.debug:
        logging.basicConfig(level=logging.INFO, format='%(asctime)s %(levelname)s: %(message)s [in %(pathname)s:%(lineno)d]')

    logging.info(f"Flask app created for '{config_name}' environment.")

    return app
