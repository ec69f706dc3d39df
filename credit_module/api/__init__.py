"""
Credit Module API Application Factory
"""

from fastapi import FastAPI
import uvicorn

from .customers import router as customers_router
from .loans import router as loans_router
from .rbac import router as auth_router
from .. import __version__
from ..config import get_config
from ..logging_config import setup_logging


def create_app() -> FastAPI:
    """Create and configure the FastAPI application"""
    app = FastAPI(
        title="Credit Module API",
        description="Consumer credit loans with installment schedules and payment allocation",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc"
    )

    app.include_router(auth_router, prefix="/auth", tags=["Auth"])
    app.include_router(customers_router, prefix="/api/customers", tags=["Customers"])
    app.include_router(loans_router, prefix="/api/loans", tags=["Loans"])

    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        return {
            "status": "healthy",
            "service": "credit_module_api",
            "version": __version__
        }

    return app


app = create_app()


def run_server(host: str = "0.0.0.0", port: int = 8080, debug: bool = False):
    """Run the FastAPI server"""
    config = get_config()
    setup_logging(config.log_level, log_file=config.log_file)
    uvicorn.run(
        "credit_module.api:app",
        host=host,
        port=port,
        reload=debug,
        log_level=config.log_level.lower()
    )
