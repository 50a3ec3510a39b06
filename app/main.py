from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
import logging
import os

from app.routers import sales, rentals, visits
from app.routers.common import respond
from app.schemas.result import OperationResult

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(
    title="Estate Back-Office",
    version="1.0.0"
)


# --- Malformed payloads get the same envelope as any other validation failure ---
@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path"))
        errors.append(f"{location}: {error.get('msg')}" if location else error.get("msg"))
    return respond(OperationResult.validation_failed(errors))


# --- Register Routers ---
app.include_router(sales.router)      # /api/v1/sales/*
app.include_router(rentals.router)    # /api/v1/rentals/*
app.include_router(visits.router)     # /api/v1/visits/*


# --- Root health check ---
@app.get("/")
async def root():
    return {"message": "Estate Back-Office API is running"}
