# campus_booking/main.py
import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from campus_booking import __version__
from campus_booking.config import settings
from campus_booking.database import engine, Base
from campus_booking.errors import BookingServiceError, Busy
from campus_booking.routes import auth, bookings, resources, users

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Create the database tables
Base.metadata.create_all(bind=engine)

app = FastAPI(
    title="Campus Resource Booking",
    description="Reservations of rooms, labs and equipment for campus members",
    version=__version__,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(BookingServiceError)
async def booking_service_error_handler(request: Request, exc: BookingServiceError):
    headers = {}
    if isinstance(exc, Busy):
        headers["Retry-After"] = str(exc.retry_after_seconds)
    elif exc.status_code == 401:
        headers["WWW-Authenticate"] = "Bearer"
    if exc.status_code >= 500:
        logger.warning("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    # Malformed bodies and params use the same error shape as the service errors
    return JSONResponse(
        status_code=422,
        content={
            "code": "validation_error",
            "message": "Invalid request",
            "details": {"errors": jsonable_encoder(exc.errors())},
        },
    )


# Registering Routers
app.include_router(auth.router)
app.include_router(users.router)
app.include_router(resources.router)
app.include_router(bookings.router)

@app.get("/", tags=["Root"])
def read_root():
    return {"message": "Welcome to the Campus Resource Booking System"}
