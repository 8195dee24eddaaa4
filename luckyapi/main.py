import logging

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from mangum import Mangum
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.cors import CORSMiddleware

from luckyapi import containers
from luckyapi.config import settings
from luckyapi.core.exception_handlers import (
    handle_base_api_exception,
    handle_http_exception,
    handle_unexpected_error,
    handle_validation_error,
)
from luckyapi.core.exceptions import BaseAPIException
from luckyapi.core.logging_middleware import LoggingMiddleware
from luckyapi.logging_config import setup_logging
from luckyapi.routers import group_router, health_router, order_router, wallet_router

load_dotenv("luckyapi/.env")
setup_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    app = FastAPI(title=settings.APP_NAME)
    app.container = containers.Container()  # type: ignore

    app.add_middleware(LoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ALLOW_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(BaseAPIException, handle_base_api_exception)
    app.add_exception_handler(StarletteHTTPException, handle_http_exception)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)

    app.include_router(health_router.router, prefix=settings.API_V1_STR)
    app.include_router(order_router.router, prefix=settings.API_V1_STR)
    app.include_router(wallet_router.router, prefix=settings.API_V1_STR)
    app.include_router(group_router.router, prefix=settings.API_V1_STR)

    logger.info(f"{settings.APP_NAME} started (environment={settings.ENVIRONMENT})")
    return app


app = create_app()

handler = Mangum(app)
