"""
FastAPI Application Entry Point
"""
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from lead_router.core.config import settings
from lead_router.api.v1.router import api_router
from lead_router.database.connection import DatabasePool
from lead_router.database.session import get_session, init_db, init_session_factory
from lead_router.services.system_agent import ensure_system_agent
from lead_router.utils.logging import get_logger, app_logger, route_server_logs

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for application startup and shutdown.
    Initializes the database pool, creates tables and provisions the
    System Agent on startup; closes the pool on shutdown.
    """
    # Startup
    route_server_logs()
    app_logger.info("🚀 [bold green]Initializing application...[/bold green]")
    try:
        app_logger.info("📊 [cyan]Initializing database connection pool...[/cyan]")
        DatabasePool.initialize()
        init_session_factory()
        init_db()

        db = get_session()
        try:
            system_agent = ensure_system_agent(db)
            app_logger.info(f"🤖 [cyan]System Agent ready[/cyan] (id={system_agent.id})")
        finally:
            db.close()

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
    openapi_url=f"{settings.api_prefix}/openapi.json",
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


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Schema violations are reported as 400 with one entry per field"""
    errors = []
    for error in exc.errors():
        location = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path", "header")]
        errors.append({"field": ".".join(location) or "body", "message": error.get("msg", "Invalid value")})
    logger.info(f"[yellow]Rejected {request.method} {request.url.path}:[/yellow] {errors}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": "Validation Error", "errors": errors},
    )


# Include API router
app.include_router(api_router, prefix=settings.api_prefix)


@app.get("/")
async def root():
    """Root endpoint"""
    return {"message": "API is running", "version": settings.version}


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


def run() -> None:
    """Console entry point: serve the app with uvicorn"""
    import uvicorn

    uvicorn.run("lead_router.main:app", host="0.0.0.0", port=8000)
