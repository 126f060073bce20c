import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from prime_hub.config import get_settings
from prime_hub.api.dependencies import app_lifespan
from prime_hub.api.exception_handlers import register_exception_handlers
from prime_hub.api.middleware import RequestIDMiddleware
from prime_hub.api.routes import functions_router, health_router_root


def create_application() -> FastAPI:
    settings = get_settings()

    if settings.log_level:
        logging.basicConfig(
            level=settings.log_level.upper(),
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )

    application = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        debug=settings.debug,
        lifespan=app_lifespan,
    )

    application.add_middleware(RequestIDMiddleware)
    # Added last so preflight requests are answered before anything else
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors.allow_origins,
        allow_credentials=settings.cors.allow_credentials,
        allow_methods=settings.cors.allow_methods,
        allow_headers=settings.cors.allow_headers,
        expose_headers=["X-Request-ID"],
    )

    register_exception_handlers(application)

    application.include_router(health_router_root)
    application.include_router(functions_router)

    return application


app = create_application()
