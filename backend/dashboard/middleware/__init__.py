"""
Middleware
"""
from .csrf import csrf_protect

__all__ = ['csrf_protect']
