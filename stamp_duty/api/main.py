"""FastAPI application main"""

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from contextlib import asynccontextmanager

from .. import __version__, config
from ..core import StampDutyError, get_default_rule_table
from .routers import fees


logger = logging.getLogger(__name__)

HTTP_STATUS = {
    "NOT_FOUND": 404,
    "BAD_REQUEST": 400,
    "VALIDATION_ERROR": 400,
    "RULE_TABLE_INVALID": 500,
    "INTERNAL_SERVER_ERROR": 500,
}

MESSAGES = {
    "NOT_FOUND": "Resource not found",
    "BAD_REQUEST": "Bad request",
    "INTERNAL_SERVER_ERROR": "Internal server error",
}


def configure_logging(level: str = config.LOG_LEVEL) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle"""
    configure_logging()
    # Load (and validate) the rule table before serving requests
    rule_table = get_default_rule_table()
    logger.info("Serving fee calculation with %s", rule_table)
    yield


app = FastAPI(
    title="Company Incorporation Fee API",
    description="Indicative SPICe+ registration fees and state-wise stamp duty",
    version=__version__,
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(
    fees.router,
    prefix="/api/v1/fees",
    tags=["fees"]
)


@app.exception_handler(StampDutyError)
async def stamp_duty_error_handler(request: Request, exc: StampDutyError):
    status_code = HTTP_STATUS.get(exc.code, 500)
    if status_code >= 500:
        logger.error("%s on %s: %s", exc.code, request.url.path, exc.message)
    return JSONResponse(status_code=status_code, content=exc.to_dict())


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 404:
        code = "NOT_FOUND"
        body = {"success": False, "code": code, "message": MESSAGES[code],
                "details": {"path": request.url.path}}
    else:
        code = "INTERNAL_SERVER_ERROR" if exc.status_code >= 500 else "BAD_REQUEST"
        body = {"success": False, "code": code, "message": str(exc.detail or MESSAGES[code])}
    return JSONResponse(status_code=exc.status_code, content=body)


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "app": "Company Incorporation Fee API",
        "version": __version__,
        "docs": "/docs"
    }


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy"}
