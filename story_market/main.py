# story_market/main.py

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from story_market.config import ALLOWED_ORIGINS, SEARCH_RADIUS_KM
from story_market.logging_config import setup_logging
from story_market.middleware import RequestIDMiddleware
from story_market.routes.bookings import router as bookings_router
from story_market.routes.health import router as health_router
from story_market.routes.listings import router as listings_router
from story_market.routes.metrics import router as metrics_router
from story_market.routes.search import router as search_router

# Initialize structured logging
setup_logging()
logger = structlog.get_logger(__name__)

API_PREFIX = "/api/v1"

app = FastAPI(
    title="Story Marketplace API",
    description="Capacity-safe booking and ranked search for travel stories",
    version="1.0.0",
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS if "*" not in ALLOWED_ORIGINS else ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestIDMiddleware)

# Register routers
app.include_router(health_router, tags=["Health"])
app.include_router(metrics_router, tags=["Metrics"])
app.include_router(bookings_router, prefix=API_PREFIX, tags=["Bookings"])
app.include_router(search_router, prefix=API_PREFIX, tags=["Search"])
app.include_router(listings_router, prefix=API_PREFIX, tags=["Listings"])


@app.on_event("startup")
def startup_event() -> None:
    logger.info("application_started", search_radius_km=SEARCH_RADIUS_KM)
