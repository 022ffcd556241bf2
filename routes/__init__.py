# Routes package __init__.py - re-exports routers for main.py convenience
from .scripts import router as scripts_router
from .review import router as review_router

__all__ = ['scripts_router', 'review_router']
