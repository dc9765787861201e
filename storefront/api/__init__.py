"""
HTTP API — FastAPI over the op runner.

    from storefront.api import create_app

    app = create_app()
"""

from storefront.api._app import create_app
from storefront.api._errors import STATUS, ApiError

__all__ = ("create_app", "STATUS", "ApiError")
