"""
API blueprints
"""
from .sync import sync_bp
from .integrations import integrations_bp

__all__ = ['sync_bp', 'integrations_bp']
