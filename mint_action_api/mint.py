"""
Mint request pipeline.

Each step either produces the next value or stops with an ActionFailure.
Failures are turned into HTTP responses in one place, failure_response().
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Protocol, Union

import structlog
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from .actions import (
    ActionPostResponse,
    TransactionParameters,
    create_action_error,
    format_validation_error,
    validate_action_post_request_body,
)
from .evm import PreparedTransaction, SerializableTransaction

logger = structlog.get_logger()

_DECIMAL = re.compile(r"[+-]?[0-9]+")
_PREFIXED = re.compile(r"0([xX][0-9a-fA-F]+|[oO][0-7]+|[bB][01]+)")


class ChainClient(Protocol):
    """What the mint pipeline needs from the shared chain client."""

    def get_contract(self, address: Optional[str] = None) -> Any: ...

    async def prepare_claim_to(
        self, contract: Any, to: str, from_: str, quantity: int
    ) -> PreparedTransaction: ...

    async def to_serializable_transaction(
        self, transaction: PreparedTransaction, from_: str
    ) -> SerializableTransaction: ...


class FailureKind(str, Enum):
    VALIDATION = "validation"
    CLIENT = "client"
    INTERNAL = "internal"


@dataclass(frozen=True)
class ActionFailure:
    """A request that stopped before producing a transaction."""

    kind: FailureKind
    message: str
    status_code: Optional[int] = None

    @classmethod
    def client(cls, message: str, status_code: int = 400) -> "ActionFailure":
        return cls(FailureKind.CLIENT, message, status_code)

    @property
    def http_status(self) -> int:
        if self.kind is FailureKind.VALIDATION:
            return 400
        if self.kind is FailureKind.CLIENT:
            return self.status_code or 400
        return 500


MintResult = Union[ActionPostResponse, ActionFailure]


def failure_response(failure: ActionFailure) -> JSONResponse:
    """Map a failure to its status code and ActionError body."""
    return JSONResponse(
        status_code=failure.http_status,
        content=create_action_error(failure.message).model_dump(by_alias=True),
    )


def parse_mint_amount(raw: str) -> Optional[int]:
    """
    Parse a mint amount path segment.

    Accepts decimal literals and 0x/0o/0b prefixed literals, with surrounding
    whitespace. Returns None if the text is not a non-negative integer, or is
    too long for int() to convert.
    """
    text = raw.strip()
    try:
        if _PREFIXED.fullmatch(text):
            return int(text, 0)
        if not _DECIMAL.fullmatch(text):
            return None
        amount = int(text)
    except ValueError:
        return None
    if amount < 0:
        return None
    return amount


async def build_mint_response(
    client: ChainClient,
    payload: Any,
    amount_str: Optional[str],
) -> MintResult:
    """
    Run the mint pipeline for one request.

    Validates the body and amount, then has the chain client build and
    resolve a claim transaction for the account.
    """
    try:
        body = validate_action_post_request_body(payload)
    except ValidationError as e:
        return ActionFailure(FailureKind.VALIDATION, format_validation_error(e))

    account = body.account

    if not amount_str:
        return ActionFailure.client("Mint amount is required")

    amount = parse_mint_amount(amount_str)
    if amount is None:
        return ActionFailure.client("Invalid NFT amount")

    try:
        contract = client.get_contract()
        logger.info("Drop contract resolved", contract=contract.address)

        prepared = await client.prepare_claim_to(
            contract,
            to=account,
            from_=account,
            quantity=amount,
        )
        serializable = await client.to_serializable_transaction(prepared, from_=account)

        logger.info(
            "Mint transaction built",
            account=account,
            amount=amount,
            to=serializable.to,
            value=str(serializable.value),
            chain_id=serializable.chain_id,
        )

        # Value goes out as a decimal string to keep full precision
        return ActionPostResponse(
            transaction=TransactionParameters(
                to=serializable.to,
                value=str(serializable.value),
                data=serializable.data,
                chain_id=serializable.chain_id,
            ),
            message=f"Mint {amount_str} NFT(s) to {account}",
        )

    except Exception as e:
        logger.error(
            "Failed to build mint transaction",
            error=str(e),
            account=account,
            amount=amount_str,
        )
        return ActionFailure(FailureKind.INTERNAL, str(e) or "Internal server error")
