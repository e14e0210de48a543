"""
Common utilities shared by Scheduler services.

- ``services.common.http_errors``: error taxonomy and FastAPI handlers
- ``services.common.logging_config``: structlog setup and request logging
"""
