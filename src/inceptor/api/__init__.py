"""HTTP server surface (FastAPI).

Usage::

    from inceptor.api import create_app

    app = create_app()
"""

from inceptor.api.app import create_app

__all__ = ["create_app"]
