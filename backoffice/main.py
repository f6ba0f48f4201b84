import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .core.config import get_settings
from .core.errors import STATUS_BY_ERROR, BackofficeError, MutationResult, ValidationError
from .routers import auth, dashboard, deals, imports, inventory, requirements, users  # Import routers
from .services.common import format_validation_errors

settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Brokerage Back Office API")
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(BackofficeError)
async def backoffice_error_handler(request: Request, exc: BackofficeError):
    # reads raise instead of returning a MutationResult; render them the same way
    return JSONResponse(
        status_code=STATUS_BY_ERROR.get(exc.code, 500),
        content=MutationResult.failure(exc).to_dict(),
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    failure = MutationResult.failure(ValidationError(format_validation_errors(exc)))
    return JSONResponse(status_code=422, content=failure.to_dict())


# Register routers
app.include_router(auth.router)
app.include_router(inventory.router)
app.include_router(requirements.router)
app.include_router(users.router)
app.include_router(deals.router)
app.include_router(dashboard.router)
app.include_router(imports.router)
