# barberbook/main.py

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from barberbook.config import get_settings
from barberbook.db import init_db
from barberbook.errors import BookingError, MissingFieldsError
from barberbook.routers import (
    appointments_routes,
    availability_routes,
    booking_routes,
    shops_routes,
)

settings = get_settings()
logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    yield


app = FastAPI(title="Barberbook", lifespan=lifespan)

app.include_router(shops_routes.router)
app.include_router(availability_routes.router)
app.include_router(booking_routes.router)
app.include_router(appointments_routes.router)


@app.exception_handler(BookingError)
async def booking_error_handler(request: Request, exc: BookingError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    content = {"detail": str(exc), "reason": exc.reason}
    if isinstance(exc, MissingFieldsError):
        content["fields"] = exc.fields
    return JSONResponse(status_code=exc.status_code, content=content)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content={"message": "Invalid data", "errors": jsonable_encoder(exc.errors())},
    )


@app.get("/health")
def health_check():
    return {"status": "ok"}
