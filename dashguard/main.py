"""ASGI entrypoint: ``uvicorn dashguard.main:app``."""

from dashguard.core.app_factory import create_app

app = create_app()
