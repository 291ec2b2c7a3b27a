# ========================
# api_server.py
# ========================

"""
FastAPI Server for the Collection Engine

Provides REST API endpoints for running operation chains against posted collections.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Union

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field
import uvicorn

from src.collection import ChainRunner, CollectionError, Ray, scoped_engine
from src.collection.chain import CALLABLE_OPERATIONS, CHAINABLE_OPERATIONS, TERMINAL_OPERATIONS
from src.utils.config import Config
from src.utils.logging_setup import setup_logging

config = Config()

# Setup logging
setup_logging(log_level=config.LOG_LEVEL)
logger = logging.getLogger(__name__)
config.warn_invalid_settings()

# Initialize FastAPI app
app = FastAPI(
    title="Ray Collection API",
    description="Query and transform nested collections through chained operations",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class ChainStep(BaseModel):
    op: str = Field(..., description="Operation name, snake_case or camelCase")
    args: List[Any] = Field(default_factory=list, description="Positional arguments")


class ChainRequest(BaseModel):
    collection: Union[Dict[str, Any], List[Any]]
    steps: List[ChainStep] = Field(default_factory=list)


def get_request_ray(request: Request) -> Ray:
    """Return the engine bound to this request, creating it on first use."""
    return scoped_engine(request.state, strict=config.STRICT_SHAPES)


@app.exception_handler(CollectionError)
async def collection_error_handler(request: Request, exc: CollectionError):
    """Report engine and chain errors as unprocessable requests."""
    logger.warning(f"{request.method} {request.url.path} failed: {type(exc).__name__}: {exc}")
    return JSONResponse(
        status_code=422,
        content={"error": type(exc).__name__, "detail": str(exc)}
    )


@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "message": "Ray Collection API",
        "version": "1.0.0",
        "endpoints": {
            "chain": "/chain - Run an operation chain against a collection",
            "operations": "/operations - List available operations",
            "health": "/health - Health check",
            "api_docs": "/docs - API documentation"
        },
        "api_docs_url": "/docs"
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "timestamp": datetime.now().isoformat()
    }


@app.get("/operations")
async def list_operations():
    """List the operations that can be used in a chain over HTTP."""
    return {
        "chainable": [name for name in CHAINABLE_OPERATIONS if name not in CALLABLE_OPERATIONS],
        "terminal": [name for name in TERMINAL_OPERATIONS if name not in CALLABLE_OPERATIONS],
        "max_steps": config.MAX_CHAIN_STEPS
    }


@app.post("/chain")
def run_chain(payload: ChainRequest, engine: Ray = Depends(get_request_ray)):
    """
    Run an operation chain.

    Args:
        payload: Collection to load and the steps to apply

    Returns:
        dict: Result, number of steps executed and the terminal operation
    """
    runner = ChainRunner(engine=engine, allow_callables=False, config=config)
    outcome = runner.run(payload.collection, [step.model_dump() for step in payload.steps])

    logger.info(f"Chain of {outcome['steps_executed']} steps completed with '{outcome['terminal_operation']}'")
    return outcome


def start_server(host: str = None, port: int = None, reload: bool = False):
    """Start the FastAPI server."""
    host = host or config.API_HOST
    port = port or config.API_PORT
    logger.info(f"Starting Ray Collection API server on {host}:{port}")
    uvicorn.run(
        "api_server:app",
        host=host,
        port=port,
        reload=reload,
        log_level="info"
    )

if __name__ == "__main__":
    start_server(reload=True)
