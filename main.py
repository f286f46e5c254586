from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from core.exceptions import AppError, app_exception_handler, global_exception_handler
from routes import admin_routes, auth, notification_routes, restaurant_routes
from services.container import ServiceContainer, build_container
from settings.config import settings
from utils.logger import get_logger

logger = get_logger("main")


def create_app(container: Optional[ServiceContainer] = None) -> FastAPI:
    container = container or build_container(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await container.store.startup()
        yield
        await container.store.close()

    app = FastAPI(title=settings.PROJECT_NAME, version="1.0.0", lifespan=lifespan)
    app.state.container = container

    @app.get("/")
    async def health_check():
        logger.info("Health check is successful")
        return {
            "status": "ok",
            "app": settings.PROJECT_NAME,
            "message": "FastAPI is running"
        }

    app.add_exception_handler(AppError, app_exception_handler)
    app.add_exception_handler(Exception, global_exception_handler)
    app.include_router(auth.router)
    app.include_router(restaurant_routes.router)
    app.include_router(admin_routes.router)
    app.include_router(notification_routes.router)
    return app


app = create_app()
