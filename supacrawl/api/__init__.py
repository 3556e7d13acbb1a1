"""FastAPI HTTP layer package.

Public re-export so callers can write::

    from supacrawl.api import app

    uvicorn supacrawl.api:app --reload
"""

from supacrawl.api.app import app, create_app

__all__ = ["app", "create_app"]
