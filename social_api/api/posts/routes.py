# social_api/api/posts/routes.py
from flask import Blueprint, request, jsonify, current_app
from flask_jwt_extended import jwt_required, get_jwt_identity

from social_api.api.posts.schemas import PostSchema
from social_api.api.posts.validation import PayloadKind, validate_payload

posts_bp = Blueprint('posts_bp', __name__)

# 서비스에서 발생한 예외(PostServiceError)는 create_app 에 등록된 에러 핸들러가
# 상태 코드와 에러 본문으로 변환합니다.

@posts_bp.route('/test', methods=['GET'])
def posts_test():
    """게시글 라우트 동작 확인용 엔드포인트."""
    return jsonify({"msg": "Posts works!"}), 200

@posts_bp.route('', methods=['GET'])
def get_posts():
    """모든 게시글을 최신순으로 조회합니다."""
    post_service = current_app.services['posts']
    posts = post_service.list_posts()
    return jsonify(PostSchema(many=True).dump(posts)), 200

@posts_bp.route('/<string:post_id>', methods=['GET'])
def get_post(post_id: str):
    post_service = current_app.services['posts']
    post = post_service.get_post(post_id)
    return jsonify(PostSchema().dump(post)), 200

@posts_bp.route('', methods=['POST'])
@jwt_required()
def create_post():
    """새 게시글을 작성합니다. 성공 시 생성된 게시글을 201 상태 코드와 함께 반환합니다."""
    user_id = get_jwt_identity()
    post_service = current_app.services['posts']
    data = request.get_json(silent=True) or {}

    result = validate_payload(PayloadKind.POST, data)
    if not result.is_valid:
        return jsonify(result.errors), 400

    new_post = post_service.create_post(
        user_id, data['text'], data.get('displayName'), data.get('avatarUrl')
    )
    return jsonify(PostSchema().dump(new_post)), 201

@posts_bp.route('/<string:post_id>', methods=['DELETE'])
@jwt_required()
def delete_post(post_id: str):
    """게시글을 삭제합니다. (작성자 본인만 가능)"""
    user_id = get_jwt_identity()
    post_service = current_app.services['posts']
    post_service.delete_post(post_id, user_id)
    return jsonify({"success": True}), 200

@posts_bp.route('/like/<string:post_id>', methods=['POST'])
@jwt_required()
def like_post(post_id: str):
    user_id = get_jwt_identity()
    post_service = current_app.services['posts']
    post = post_service.like_post(post_id, user_id)
    return jsonify(PostSchema().dump(post)), 200

@posts_bp.route('/unlike/<string:post_id>', methods=['POST'])
@jwt_required()
def unlike_post(post_id: str):
    user_id = get_jwt_identity()
    post_service = current_app.services['posts']
    post = post_service.unlike_post(post_id, user_id)
    return jsonify(PostSchema().dump(post)), 200

@posts_bp.route('/comment/<string:post_id>', methods=['POST'])
@jwt_required()
def add_comment(post_id: str):
    """게시글에 댓글을 작성합니다."""
    user_id = get_jwt_identity()
    post_service = current_app.services['posts']
    data = request.get_json(silent=True) or {}

    result = validate_payload(PayloadKind.COMMENT, data)
    if not result.is_valid:
        return jsonify(result.errors), 400

    post = post_service.add_comment(
        post_id, user_id, data['text'], data.get('displayName'), data.get('avatarUrl')
    )
    return jsonify(PostSchema().dump(post)), 200

@posts_bp.route('/comment/<string:post_id>/<string:comment_id>', methods=['DELETE'])
@jwt_required()
def remove_comment(post_id: str, comment_id: str):
    """댓글을 삭제합니다. (댓글 작성자 본인만 가능)"""
    user_id = get_jwt_identity()
    post_service = current_app.services['posts']
    post = post_service.remove_comment(post_id, comment_id, user_id)
    return jsonify(PostSchema().dump(post)), 200
