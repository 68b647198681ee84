from contextlib import asynccontextmanager
from importlib.metadata import PackageNotFoundError, version

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from chanswer.ai.chat.router import router as chat_router
from chanswer.config import StoreBackend, get_app_settings, get_client_base_url
from chanswer.db.documents.router import router as documents_router
from chanswer.db.faqs.router import router as faq_router
from chanswer.utils.logger import logger


def get_version() -> str:
    """Get the installed package version."""
    try:
        return version("chanswer")
    except PackageNotFoundError:
        return "0.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_app_settings()
    uses_postgres = settings.store_backend == StoreBackend.POSTGRES
    if uses_postgres and settings.init_db_on_startup:
        from chanswer.db.database import init_db

        await init_db()
    logger.info(
        "Chanswer API started",
        environment=settings.environment.value,
        store_backend=settings.store_backend.value,
    )
    yield
    if uses_postgres:
        from chanswer.db.database import close_db

        await close_db()


app = FastAPI(
    title="Chanswer API",
    description="FAQ chat API with tool-augmented streaming turns",
    version=get_version(),
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[get_client_base_url()],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Malformed request bodies are client errors (400), not 422."""
    logger.info("Rejected malformed request", path=request.url.path, errors=len(exc.errors()))
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": jsonable_errors(exc)},
    )


def jsonable_errors(exc: RequestValidationError) -> list[dict]:
    return [
        {"loc": list(error.get("loc", ())), "msg": error.get("msg"), "type": error.get("type")}
        for error in exc.errors()
    ]


app.include_router(chat_router, prefix="/api")
app.include_router(faq_router, prefix="/api")
app.include_router(documents_router, prefix="/api")


@app.get("/")
async def root():
    """Root endpoint."""
    return {"status": "ok", "message": "Chanswer API is running"}


@app.get("/healthcheck")
async def healthcheck():
    """Health check endpoint."""
    return {"status": "ok", "message": "Chanswer API is running"}
