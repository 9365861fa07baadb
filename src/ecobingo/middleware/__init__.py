"""Middleware registration."""

from fastapi import FastAPI

from ecobingo.config import Settings
from ecobingo.middleware.cors import setup_cors
from ecobingo.middleware.error_handler import setup_error_handlers
from ecobingo.middleware.logging import setup_logging
from ecobingo.middleware.request_id import RequestIdMiddleware


def setup_middleware(app: FastAPI, settings: Settings) -> None:
    """Register logging, error handlers and middleware.

    Starlette runs middleware in reverse-add order, so CORS (added last) is
    outermost and also decorates error responses.
    """
    setup_logging(settings)
    setup_error_handlers(app)
    app.add_middleware(RequestIdMiddleware)
    setup_cors(app, settings)
