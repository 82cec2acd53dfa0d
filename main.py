import os
import sys
import asyncio
import logging
import threading
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

import database
import validation
from errors import ApiError
from routes import auth, favorites, feedback, reviews, rides, sell_vehicle

load_dotenv()

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger("dealership")

DEFAULT_CORS_ORIGINS = [
    "http://localhost:3000",
    "http://localhost:5173",
    "http://127.0.0.1:3000",
    "http://127.0.0.1:5173",
]
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", ",".join(DEFAULT_CORS_ORIGINS)).split(",") if o.strip()]
PORT = int(os.getenv("PORT", 5000))

# these groups answer {message, ...} without the success flag
PLAIN_ENVELOPE_PREFIXES = ("/api/auth", "/api/reviews")


def _fatal(message: str, exc_info=None) -> None:
    logger.critical(message, exc_info=exc_info)
    logging.shutdown()
    os._exit(1)


def install_fatal_handlers(loop: asyncio.AbstractEventLoop) -> None:
    """Errors nobody awaited or caught leave the process in an unknown state: log and exit"""

    def on_loop_error(loop, context):
        exc = context.get("exception")
        if exc is None:
            loop.default_exception_handler(context)
            return
        _fatal(f"Unhandled error in event loop: {context.get('message')}", exc_info=exc)

    def on_thread_error(args):
        name = args.thread.name if args.thread else "unknown"
        _fatal(f"Uncaught exception in thread {name}", exc_info=(args.exc_type, args.exc_value, args.exc_traceback))

    loop.set_exception_handler(on_loop_error)
    threading.excepthook = on_thread_error
    sys.excepthook = lambda *exc: _fatal("Uncaught exception", exc_info=exc)


def check_database() -> None:
    try:
        database.init_db()
    except Exception:
        logger.critical("MongoDB connection error", exc_info=True)
        sys.exit(1)


@asynccontextmanager
async def lifespan(app: FastAPI):
    check_database()
    install_fatal_handlers(asyncio.get_running_loop())
    logger.info("Server is running on port %s", PORT)
    yield


app = FastAPI(title="Vehicle Dealership API", lifespan=lifespan)


def envelope(request: Request, status_code: int, message: str, headers=None, **extra) -> JSONResponse:
    body = {"message": message}
    if not request.url.path.startswith(PLAIN_ENVELOPE_PREFIXES):
        body = {"success": False, **body}
    body.update({k: v for k, v in extra.items() if v is not None})
    return JSONResponse(status_code=status_code, content=jsonable_encoder(body), headers=headers)


@app.middleware("http")
async def limit_body_size(request: Request, call_next):
    length = request.headers.get("content-length")
    if length and length.isdigit() and int(length) > validation.MAX_BODY_BYTES:
        return envelope(request, 413, "Request entity too large")
    return await call_next(request)


# added last so it wraps the size check and 413s still carry CORS headers
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(StarletteHTTPException)
async def http_error(request: Request, exc: StarletteHTTPException):
    headers = getattr(exc, "headers", None)
    if isinstance(exc, ApiError):
        return envelope(request, exc.status_code, exc.message, headers=headers, errors=exc.errors, error=exc.error)
    return envelope(request, exc.status_code, str(exc.detail), headers=headers)


@app.exception_handler(RequestValidationError)
async def validation_error(request: Request, exc: RequestValidationError):
    errors = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ())]
        errors.append({
            "path": ".".join(loc[1:]) or (loc[0] if loc else ""),
            "msg": err.get("msg"),
            "location": loc[0] if loc else "body",
        })
    return envelope(request, 400, "Validation failed", errors=errors)


@app.exception_handler(Exception)
async def unexpected_error(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return envelope(request, 500, "Server error", error=str(exc))


app.include_router(auth.router, prefix="/api/auth", tags=["auth"])
app.include_router(reviews.router, prefix="/api/reviews", tags=["reviews"])
app.include_router(feedback.router, prefix="/api/feedback", tags=["feedback"])
app.include_router(rides.router, prefix="/api/test-rides", tags=["test-rides"])
app.include_router(favorites.router, prefix="/api/favorites", tags=["favorites"])
app.include_router(sell_vehicle.router, prefix="/api/sell-vehicle", tags=["sell-vehicle"])


@app.get("/")
def root():
    return {"message": "API is running..."}


@app.get("/test")
def test_database():
    return database.database_status()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=PORT)
