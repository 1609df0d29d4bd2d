# commerce/api/__init__.py
