# File: /recordbase/__init__.py | Version: 1.0 | Title: Dynamic record query & validation engine
__version__ = "0.1.0"
