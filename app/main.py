from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.db import base  # noqa: F401
from app.api.routes import bookings, rooms, service_bookings
from app.core.logging_config import get_logger

logger = get_logger()

app = FastAPI(
    title="Hotel Reservation API",
    version="1.0.0",
    description="Room availability, bookings, payments and in-stay service orders"
)

# Request Logging Middleware
@app.middleware("http")
async def log_requests(request, call_next):
    logger.info(f"REQUEST: {request.method} {request.url}")

    try:
        response = await call_next(request)
        logger.info(f"RESPONSE: {response.status_code} {request.url}")
        return response

    except Exception as e:
        logger.error(f"ERROR: {request.url} -> {str(e)}")
        raise e


app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# -------- ROUTERS --------
app.include_router(rooms.router)
app.include_router(bookings.router)
app.include_router(service_bookings.router)

@app.get("/", tags=["Root"])
def root():
    return {"message": "Backend running successfully"}
