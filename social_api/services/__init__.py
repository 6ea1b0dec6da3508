# social_api/services/__init__.py
