"""
FastAPI Application Entry Point
"""
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from pricemyfloor.core.config import settings
from pricemyfloor.api.v1.router import api_router
from pricemyfloor.database.connection import DatabasePool
from pricemyfloor.database.session import get_session, init_db, init_session_factory
from pricemyfloor.services.auth_service import AuthService
from pricemyfloor.utils.exceptions import ErrorType, FunctionError
from pricemyfloor.utils.logging import get_logger, app_logger

logger = get_logger(__name__)


def bootstrap_admin() -> None:
    """Create the configured admin account if it is missing"""
    config = settings.security.bootstrap_admin
    if config is None:
        return
    db = get_session()
    try:
        AuthService(db).ensure_admin(config)
    finally:
        db.close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for application startup and shutdown.
    Initializes database pool on startup and closes it on shutdown.
    """
    # Startup
    app_logger.info("🚀 [bold green]Initializing application...[/bold green]")
    try:
        app_logger.info("📊 [cyan]Initializing database connection pool...[/cyan]")
        DatabasePool.initialize()
        init_session_factory()
        if settings.database.create_tables:
            app_logger.info("🧱 [cyan]Creating database tables...[/cyan]")
            init_db()
        bootstrap_admin()
        app_logger.info("✅ [bold green]Application initialized successfully[/bold green]")
    except Exception as e:
        app_logger.error(f"❌ [bold red]Failed to initialize application:[/bold red] {e}")
        raise

    yield

    # Shutdown
    app_logger.info("🛑 [yellow]Shutting down application...[/yellow]")
    try:
        app_logger.info("📊 [cyan]Closing database connection pool...[/cyan]")
        DatabasePool.close()
        app_logger.info("✅ [bold green]Application shut down successfully[/bold green]")
    except Exception as e:
        app_logger.error(f"❌ [bold red]Error during application shutdown:[/bold red] {e}")


app = FastAPI(
    title=settings.project_name,
    version=settings.version,
    description=settings.description,
    openapi_url=f"{settings.api_v1_str}/openapi.json",
    lifespan=lifespan,
)

# CORS middleware
if settings.backend_cors_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[str(origin) for origin in settings.backend_cors_origins],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


@app.exception_handler(FunctionError)
async def function_error_handler(request: Request, exc: FunctionError):
    """Render domain errors as {"success": false, "error", "errorType"}"""
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Malformed request bodies use the same 400 shape as domain validation"""
    errors = exc.errors()
    details = "; ".join(
        f"{'.'.join(str(part) for part in error.get('loc', ())[1:]) or 'body'}: {error.get('msg')}"
        for error in errors
    )
    logger.warning(f"[yellow]⚠️  Invalid request to {request.url.path}:[/yellow] {details}")
    return JSONResponse(
        status_code=400,
        content={"success": False, "error": "Invalid request", "errorType": ErrorType.VALIDATION_ERROR, "details": details},
    )


# Include API router
app.include_router(api_router, prefix=settings.api_v1_str)


@app.get("/")
async def root():
    """Root endpoint"""
    return {"message": "Price My Floor API is running", "version": settings.version}


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    try:
        pool_status = DatabasePool.get_pool_status()
        return {
            "status": "healthy",
            "database": {
                "pool_initialized": pool_status["initialized"],
                "pool_size": pool_status["size"],
                "connections_checked_out": pool_status["checked_out"],
            }
        }
    except Exception as e:
        logger.error(f"Health check failed: {e}")
        return {"status": "unhealthy", "error": str(e)}
