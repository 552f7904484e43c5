"""
Mint Action API - action protocol endpoints for an open-edition NFT drop.

Provides REST endpoints for:
- Describing the mint action (GET /api/mint)
- Building an unsigned claim transaction (POST /api/mint/{amount})
- Health checks (GET /health)
"""

import uvicorn
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional, Union

import structlog
from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import __version__
from .actions import (
    ActionError,
    ActionGetResponse,
    ActionLinks,
    ActionParameter,
    ActionPostResponse,
    LinkedAction,
)
from .config import Settings, get_settings
from .evm import EVMClient
from .mint import (
    ActionFailure,
    ChainClient,
    FailureKind,
    build_mint_response,
    failure_response,
)
from .models import HealthResponse

# Configure logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.JSONRenderer(),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
)

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    settings = get_settings()

    # One chain client for the whole process
    evm_client = EVMClient(settings)
    app.state.evm_client = evm_client

    logger.info(
        "API started",
        version=__version__,
        host=settings.host,
        port=settings.port,
        chain_id=settings.chain_id,
        nft_contract=settings.nft_contract_address,
    )

    yield

    # Cleanup
    await evm_client.close()
    app.state.evm_client = None

    logger.info("API stopped")


def get_evm_client(request: Request) -> Optional[ChainClient]:
    """Shared chain client created at startup."""
    return getattr(request.app.state, "evm_client", None)


# Create FastAPI app
app = FastAPI(
    title="Mint Action API",
    description="Action protocol endpoints for minting an open-edition NFT",
    version=__version__,
    lifespan=lifespan,
)


# Add CORS middleware
_settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.allowed_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ============================================================================
# Health Check
# ============================================================================


@app.get("/health", response_model=HealthResponse)
async def health_check(
    settings: Settings = Depends(get_settings),
    client: Optional[ChainClient] = Depends(get_evm_client),
) -> HealthResponse:
    """
    Check API health and connectivity.

    Returns service status and connectivity to the EVM RPC.
    """
    evm_ok = False

    if isinstance(client, EVMClient):
        evm_ok = await client.check_connectivity()

    return HealthResponse(
        status="ok" if evm_ok else "degraded",
        version=__version__,
        evm_rpc=evm_ok,
        chain_id=settings.chain_id,
        nft_contract=settings.nft_contract_address,
    )


# ============================================================================
# Mint Action
# ============================================================================


def _amount_label(amount: int) -> str:
    return f"{amount} NFT{'' if amount == 1 else 's'}"


@app.get(
    "/api/mint",
    response_model=ActionGetResponse,
    response_model_exclude_none=True,
)
async def describe_mint(settings: Settings = Depends(get_settings)) -> ActionGetResponse:
    """
    Describe the mint action.

    Offers one link per configured amount plus a free-form amount input.
    """
    actions = [
        LinkedAction(href=f"/api/mint/{amount}", label=_amount_label(amount))
        for amount in settings.mint_amount_options
    ]
    actions.append(
        LinkedAction(
            href="/api/mint/{amount}",
            label="Mint",
            parameters=[
                ActionParameter(name="amount", label="Enter amount of NFTs to mint"),
            ],
        )
    )

    return ActionGetResponse(
        chain_id=settings.chain_id,
        icon=settings.icon,
        label=settings.label,
        title=settings.title,
        description=settings.description,
        links=ActionLinks(actions=actions),
    )


@app.post(
    "/api/mint/{amount}",
    response_model=ActionPostResponse,
    response_model_exclude_none=True,
    responses={400: {"model": ActionError}, 500: {"model": ActionError}},
)
@app.post(
    "/api/mint/",
    response_model=ActionPostResponse,
    response_model_exclude_none=True,
    responses={400: {"model": ActionError}, 500: {"model": ActionError}},
    include_in_schema=False,
)
async def mint(
    request: Request,
    client: Optional[ChainClient] = Depends(get_evm_client),
) -> Union[ActionPostResponse, JSONResponse]:
    """
    Build an unsigned claim transaction for the caller's account.

    The wallet signs and sends the returned transaction itself.
    """
    if client is None:
        logger.error("Mint request before EVM client initialized")
        return failure_response(
            ActionFailure(FailureKind.INTERNAL, "EVM client not initialized")
        )

    try:
        payload = await request.json()
    except ValueError:
        result = ActionFailure(FailureKind.VALIDATION, "Invalid JSON body")
    else:
        result = await build_mint_response(
            client,
            payload,
            request.path_params.get("amount"),
        )

    if isinstance(result, ActionFailure):
        if result.kind is not FailureKind.INTERNAL:
            logger.warning(
                "Mint request rejected",
                kind=result.kind.value,
                reason=result.message,
                path=request.url.path,
            )
        return failure_response(result)

    return result


# ============================================================================
# Entry Point
# ============================================================================


def run() -> None:
    """Run the API server."""
    settings = get_settings()
    uvicorn.run(
        "mint_action_api.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )


if __name__ == "__main__":
    run()
