"""API module initialization"""
from .routes import router

__all__ = ["router"]
