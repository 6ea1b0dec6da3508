# social_api/models/__init__.py
