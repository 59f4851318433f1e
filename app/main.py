"""
Product Research Tracker
Main FastAPI application
"""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from contextlib import asynccontextmanager

from app.config import get_settings
from app.utils.logger import log
from app import __version__

# Import routers
from app.api import auth, health, products, sync
from app.services.session import SessionManager, build_client_context


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events"""
    settings = get_settings()

    # Startup
    log.info(f"Starting {settings.app_name} v{__version__}")
    log.info(f"Environment: {settings.environment}")

    context = await build_client_context(settings)
    manager = SessionManager(context)
    await manager.start()
    app.state.session_manager = manager

    yield

    # Shutdown
    await manager.close()
    log.info("Shutting down application")


# Create FastAPI app
app = FastAPI(
    title=get_settings().app_name,
    version=__version__,
    description="""
    Single-user product research tracker

    - Products with pricing, competitor intel and reference links
    - Break-even ROAS and margin computed on read
    - Live sync with a per-user remote collection
    - One-time migration of locally cached products on first sync
    """,
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(auth.router)
app.include_router(health.router, tags=["health"])
app.include_router(products.router)
app.include_router(products.selection_router)
app.include_router(sync.router)


@app.get("/robots.txt", response_class=PlainTextResponse)
async def robots_txt():
    """Block all crawlers"""
    return "User-agent: *\nDisallow: /\n"


@app.get("/")
async def root():
    """Root endpoint with API information"""
    settings = get_settings()
    return {
        "app": settings.app_name,
        "version": __version__,
        "docs": "/docs",
        "health": "/health",
        "status": "/status",
        "endpoints": {
            "sign_up": "POST /auth/signup",
            "login": "POST /auth/login",
            "logout": "POST /auth/logout",
            "list_products": "GET /products?q=",
            "create_product": "POST /products",
            "product_detail": "GET /products/{id}",
            "update_field": "PATCH /products/{id}",
            "update_competitor": "PATCH /products/{id}/competitors/{index}",
            "add_link": "POST /products/{id}/links",
            "update_link": "PATCH /products/{id}/links/{link_id}",
            "delete_link": "DELETE /products/{id}/links/{link_id}",
            "delete_product": "DELETE /products/{id}",
            "selection": "GET|PUT|DELETE /selection",
            "sync_status": "GET /sync/status"
        }
    }


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run("app.main:app", host=settings.api_host, port=settings.api_port, reload=settings.debug)
