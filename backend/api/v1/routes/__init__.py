"""
API Routes Package
"""
from .search import search_router

__all__ = ["search_router"]
