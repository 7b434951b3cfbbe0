# Routes package

from chantally.routes.api import api_bp

__all__ = ['api_bp']
