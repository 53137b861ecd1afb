import logging
import secrets

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from api.routes import bookings, plugin, products, rpc
from api.schemas import ErrorBody, describe_validation_errors
from core.config import settings
from core.errors import ErrorKind, PluginError
from core.plugin import get_plugin
from db.database import init_db

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Sample Inventory Plugin", version="1.0.0")

STATUS_BY_KIND = {
    ErrorKind.CONFIGURATION_ERROR: 400,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.UNSUPPORTED_CAPABILITY: 405,
    ErrorKind.INVALID_STATE: 409,
    ErrorKind.INVALID_REQUEST: 422,
    ErrorKind.BACKEND_UNAVAILABLE: 503,
}


@app.get("/health")
async def health():
    return {"status": "ok"}


# Only active when SHARED_SECRET is configured
@app.middleware("http")
async def shared_secret_middleware(request: Request, call_next):
    if not settings.shared_secret:
        return await call_next(request)

    exempt = {"/health", "/docs", "/openapi.json", "/redoc"}
    # RPC checks the secret from its own call metadata
    if request.url.path in exempt or request.url.path.startswith("/rpc/"):
        return await call_next(request)

    supplied = request.headers.get("sharedSecret", "")
    if not secrets.compare_digest(supplied.encode(), settings.shared_secret.encode()):
        return JSONResponse(
            status_code=401,
            content={"kind": "UNAUTHENTICATED", "detail": "Missing or invalid shared secret", "retryable": False},
        )
    return await call_next(request)


@app.exception_handler(PluginError)
async def plugin_error_handler(request: Request, exc: PluginError):
    logger.info("%s %s failed with %s: %s", request.method, request.url.path, exc.kind.value, exc)
    body = ErrorBody(kind=exc.kind.value, detail=str(exc), retryable=exc.retryable)
    return JSONResponse(status_code=STATUS_BY_KIND[exc.kind], content=body.model_dump())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    body = ErrorBody(kind=ErrorKind.INVALID_REQUEST.value, detail=describe_validation_errors(exc.errors()))
    return JSONResponse(status_code=422, content=body.model_dump())


app.include_router(plugin.router)
app.include_router(products.router)
app.include_router(bookings.router)
app.include_router(rpc.router)


@app.on_event("startup")
async def on_startup():
    await init_db()
    definition = get_plugin().definition()
    logger.info("Plugin '%s' ready with capabilities %s", definition.name, definition.capabilities)
