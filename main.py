import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from config import get_settings
from database import engine, init_db
from errors import DependencyError, WardrobeAPIError
from logging_config import configure_logging
from rate_limits import limiter, rate_limit_exceeded_handler
# Import routers directly
from routers import auth_router, wardrobe_router, outfits_router, weather_router, chatbot_router

logger = logging.getLogger(__name__)

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(settings.log_level)
    init_db(engine)
    logger.info("Wardrobe API started (%s)", settings.environment)
    yield


app = FastAPI(title="Smart Wardrobe API", docs_url="/api-docs", lifespan=lifespan)

# Create the upload directory if it doesn't exist, StaticFiles requires it
os.makedirs(settings.upload_dir, exist_ok=True)
app.mount("/uploads", StaticFiles(directory=settings.upload_dir), name="uploads")

# Default limit on every route, stricter ones are declared on the auth routes
app.state.limiter = limiter
app.add_middleware(SlowAPIMiddleware)
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth_router)
app.include_router(wardrobe_router)
app.include_router(outfits_router)
app.include_router(weather_router)
app.include_router(chatbot_router)


# ---- Error handling ----

@app.exception_handler(WardrobeAPIError)
async def wardrobe_error_handler(request: Request, exc: WardrobeAPIError):
    content = {"message": exc.message}
    if isinstance(exc, DependencyError):
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        if settings.environment == "development":
            content["error"] = str(exc.__cause__ or exc)
    return JSONResponse(status_code=exc.status_code, content=content)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"message": exc.detail},
                        headers=getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    details = [
        {"field": ".".join(str(part) for part in error["loc"] if part != "body"), "message": error["msg"]}
        for error in exc.errors()
    ]
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST,
                        content={"message": "Validation failed", "details": details})


@app.middleware("http")
async def log_failed_requests(request: Request, call_next):
    response = await call_next(request)
    if response.status_code >= 400:
        logger.warning("%s %s %s", request.method, request.url.path, response.status_code)
    return response


@app.get("/")
def root():
    return {"message": "Welcome to the Smart Wardrobe API"}
