import os

from dotenv import load_dotenv

load_dotenv()

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
DEBUG = LOG_LEVEL == "DEBUG"

DATABASE_URL = os.getenv("DATABASE_URL")
if not DATABASE_URL:
    raise ValueError("DATABASE_URL must be set in the environment")

SCHEMA = "marketplace"

ALLOWED_ORIGINS_RAW = os.getenv("ALLOWED_ORIGINS")
if not ALLOWED_ORIGINS_RAW:
    raise ValueError("ALLOWED_ORIGINS must be set in the environment")

ALLOWED_ORIGINS: list[str] = [
    origin.strip() for origin in ALLOWED_ORIGINS_RAW.split(",")
]

# Search
SEARCH_RADIUS_KM = float(os.getenv("SEARCH_RADIUS_KM", "500"))
DEFAULT_SEARCH_LIMIT = 20
RESULT_FLOOR = 10  # below this many results the same-state fallback runs
SAME_STATE_FALLBACK_LIMIT = 20

# Booking
PRICE_TOLERANCE = float(os.getenv("PRICE_TOLERANCE", "0.01"))
DEFAULT_PLATFORM_FEE = float(os.getenv("DEFAULT_PLATFORM_FEE", "50"))
PENDING_BOOKING_TIMEOUT_MINUTES = int(os.getenv("PENDING_BOOKING_TIMEOUT_MINUTES", "30"))
