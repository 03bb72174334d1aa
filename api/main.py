import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from core import config, db, schema
from info import router as info_router
from songs import router as songs_router

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Settings, DB pool and schema are set up once per process.
    settings = config.load_settings()
    logging.getLogger().setLevel(settings.log_level)
    app.state.settings = settings

    await db.init_pool(settings)
    try:
        await schema.ensure_schema()
        yield
    finally:
        await db.close_pool()


app = FastAPI(title="song-library", lifespan=lifespan)


def _describe_validation_errors(exc: RequestValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(p) for p in error.get("loc", ()) if p != "body")
        message = str(error.get("msg", "invalid value"))
        parts.append(f"{location}: {message}" if location else message)
    return "; ".join(parts) or "Invalid request."


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    detail = _describe_validation_errors(exc)
    logger.error("invalid_request method=%s path=%s detail=%s", request.method, request.url.path, detail)
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": detail})


app.include_router(info_router.router, tags=["info"])
app.include_router(songs_router.router, tags=["songs"])


@app.get("/health")
def health() -> dict:
    return {"status": "ok"}


@app.get("/")
def root() -> dict:
    return {"message": "song-library api"}
