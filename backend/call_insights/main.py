from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import logging

from .api.routes import api_router
from .config import get_settings
from .exceptions import CallInsightsError, UpstreamError
from .schemas.pydantic_schemas import ErrorResponse

# Configure logging
logging.basicConfig(
    level=getattr(logging, get_settings().log_level.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.StreamHandler(),
    ]
)

logger = logging.getLogger(__name__)

app = FastAPI(title="Call Insights")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(CallInsightsError)
async def call_insights_error_handler(request: Request, exc: CallInsightsError):
    logger.error(f"{request.method} {request.url.path} failed: {exc}")
    upstream_status = exc.upstream_status if isinstance(exc, UpstreamError) else None
    body = ErrorResponse(error=str(exc), code=exc.code, status_code=upstream_status)
    return JSONResponse(status_code=exc.status_code, content=body.model_dump(exclude_none=True))


app.include_router(api_router, prefix="/api")


@app.get("/")
async def root():
    return {"status": "ok"}
