import os
from decimal import Decimal
from dotenv import load_dotenv

load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./hotel.db")

JWT_SECRET = os.getenv("JWT_SECRET", "change-me")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", 60))

REDIS_URL = os.getenv("REDIS_URL")
LOG_DIR = os.getenv("LOG_DIR", "logs")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_RETENTION = os.getenv("LOG_RETENTION", "4 weeks")

# -------- PRICING --------
TAX_RATE_PERCENT = Decimal(os.getenv("TAX_RATE_PERCENT", "10"))
SERVICE_CHARGE_PERCENT = Decimal(os.getenv("SERVICE_CHARGE_PERCENT", "5"))
CURRENCY = os.getenv("CURRENCY", "VND")
CURRENCY_DECIMALS = int(os.getenv("CURRENCY_DECIMALS", 0))

# -------- TRANSACTIONS --------
TX_MAX_ATTEMPTS = int(os.getenv("TX_MAX_ATTEMPTS", 3))
TX_BACKOFF_SECONDS = float(os.getenv("TX_BACKOFF_SECONDS", 0.05))

# -------- LIFECYCLE --------
NO_SHOW_GRACE_DAYS = int(os.getenv("NO_SHOW_GRACE_DAYS", 0))
