# social_api/api/posts/__init__.py
