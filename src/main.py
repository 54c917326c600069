from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from src.config import settings
from src.database import create_db_engine, create_session_factory, init_db
from src.exceptions import register_exception_handlers
from src.logging_config import configure_logging
from src.utils import utcnow
from src.auth import router as auth_router
from src.auth.service import UserService
from src.batches import router as batches_router
from src.bookings import router as bookings_router
from src.countries import router as countries_router
from src.system_settings import router as settings_router
from src.tickets import router as tickets_router
from src.tickets.sweeper import LockSweeper
from src.umrah import router as umrah_router
from src.users import router as users_router


def create_app() -> FastAPI:
    """Build the application from the process settings; the engine is created here, once per app"""
    configure_logging(settings.LOG_LEVEL, settings.LOG_DIR)

    engine = create_db_engine(settings.database_url, echo=settings.SQL_ECHO)
    session_factory = create_session_factory(engine)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        init_db(engine)
        if settings.SEED_DEFAULT_USERS:
            with session_factory() as db:
                UserService.ensure_default_users(db)

        sweeper = None
        if settings.LOCK_SWEEPER_ENABLED:
            sweeper = LockSweeper(session_factory, settings.LOCK_SWEEP_INTERVAL_SECONDS)
            sweeper.start()

        logger.info(f"{settings.PROJECT_NAME} API ready ({settings.ENVIRONMENT})")
        yield

        if sweeper is not None:
            await sweeper.stop()
        engine.dispose()

    # Create FastAPI app
    app = FastAPI(
        title=settings.PROJECT_NAME,
        version="1.0.0",
        description="Ticket inventory and booking administration API",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.engine = engine
    app.state.session_factory = session_factory

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    # Include routers
    prefix = settings.API_PREFIX
    app.include_router(auth_router.router, prefix=f"{prefix}/auth", tags=["Authentication"])
    app.include_router(users_router.router, prefix=f"{prefix}/users", tags=["Users"])
    app.include_router(countries_router.router, prefix=f"{prefix}/countries", tags=["Countries & Airlines"])
    app.include_router(batches_router.router, prefix=f"{prefix}/batches", tags=["Ticket Batches"])
    app.include_router(tickets_router.router, prefix=f"{prefix}/tickets", tags=["Tickets"])
    app.include_router(bookings_router.router, prefix=f"{prefix}/bookings", tags=["Bookings"])
    app.include_router(umrah_router.router, prefix=f"{prefix}/umrah", tags=["Umrah"])
    app.include_router(settings_router.router, prefix=f"{prefix}/settings", tags=["Settings"])

    @app.get("/")
    def root():
        """Root endpoint"""
        return {
            "message": f"{settings.PROJECT_NAME} API",
            "version": "1.0.0",
            "docs": "/docs"
        }

    @app.get("/health")
    def health_check():
        """Health check endpoint"""
        return {"status": "healthy"}

    @app.get(f"{prefix}/ping")
    def ping():
        return {"message": f"{settings.PROJECT_NAME} API Server", "status": "healthy", "timestamp": utcnow()}

    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
