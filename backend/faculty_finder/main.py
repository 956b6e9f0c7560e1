import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager

from faculty_finder.config import get_settings
from faculty_finder.api import faculty


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, str(level or "INFO").upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: nothing is persisted between requests, only logging needs setup
    configure_logging(get_settings().log_level)
    yield


app = FastAPI(
    title="Faculty Finder API",
    description="Discovers and extracts faculty records from university directory websites",
    version="0.1.0",
    debug=get_settings().debug,
    lifespan=lifespan,
)

# CORS for frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request body"
    first = errors[0]
    field = ".".join(str(part) for part in first.get("loc", ()) if isinstance(part, str) and part != "body")
    detail = first.get("msg") or "invalid value"
    return f"Invalid request body: {field}: {detail}" if field else f"Invalid request body: {detail}"


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    # Every client error shares the {success, error} envelope of the routes
    return JSONResponse(status_code=400, content={"success": False, "error": validation_message(exc)})


# Include routers
app.include_router(faculty.router, tags=["faculty"])


@app.get("/health")
async def health_check():
    return {"status": "healthy"}


@app.get("/")
async def root():
    return {"message": "Faculty Finder API", "docs": "/docs"}
