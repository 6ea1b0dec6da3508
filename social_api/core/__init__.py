# social_api/core/__init__.py
