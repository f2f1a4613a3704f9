import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager

from cineseat.db.init_db import create_database
from cineseat.db.base import Base
from cineseat.db.session import engine
from cineseat.core.config import settings
from cineseat.core.errors import CineSeatError
from cineseat.api.v1.router import api_router

logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: Ensure DB exists and create tables
    if settings.CREATE_DATABASE_ON_STARTUP:
        create_database()
    Base.metadata.create_all(bind=engine)
    logger.info("%s started.", settings.PROJECT_NAME)
    yield


app = FastAPI(title=settings.PROJECT_NAME, lifespan=lifespan)

# Set all CORS enabled origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(CineSeatError)
async def cineseat_error_handler(request: Request, exc: CineSeatError):
    """Booking-domain failures become {error, message[, unavailable_seat_ids]} bodies."""
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


app.include_router(api_router, prefix=settings.API_V1_STR)

@app.get("/")
def read_root():
    return {"Hello": "CineSeat"}
