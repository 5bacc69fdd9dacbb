"""Main FastAPI application."""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from contract_guard import __version__
from contract_guard.api.endpoints import router
from contract_guard.clients.model import ModelConfig
from contract_guard.utils.logging import get_logger, setup_logging

setup_logging()
logger = get_logger(__name__)

KEY_CHECK_PATH = "/check-open-ai-key"

app = FastAPI(
    title="Contract Guard",
    description=(
        "A conversational assistant that reviews contracts for non-lawyers and "
        "returns a structured risk analysis."
    ),
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_tags=[
        {
            "name": "Conversation",
            "description": "Stream contract review replies and resolve tool calls that need the user's approval.",
        },
        {
            "name": "Diagnostics",
            "description": "Credential check and a non-streaming debug review.",
        },
        {
            "name": "Health",
            "description": "Service health monitoring and status checks.",
        },
    ],
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_and_check_credentials(request: Request, call_next):
    """Log each request and warn when the model provider key is missing.

    Requests still go through; they fail later at the model call.
    """
    logger.info(f"Incoming request: {request.method} {request.url.path}")

    if request.url.path != KEY_CHECK_PATH:
        config = ModelConfig()
        if not config.has_api_key():
            logger.warning(
                f"{config.api_key_env} is not set. Export it in the environment before starting the server."
            )

    return await call_next(request)


app.include_router(router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("contract_guard.main:app", host="0.0.0.0", port=8000, reload=True, log_level="info")
