"""
Action protocol schemas.

A GET on an action URL describes the action; a POST with the user's account
returns an unsigned transaction for the wallet to sign. Wire fields are
camelCase.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel
from web3 import Web3


EXPECTED_POST_BODY = '{"account": "0x<40 hex characters>"}'


class ActionModel(BaseModel):
    """Base for protocol payloads serialized with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ============================================================================
# GET
# ============================================================================

class ActionParameter(ActionModel):
    """User input collected before the action href is called."""

    name: str = Field(..., description="Placeholder name used in the href template")
    label: str = Field(..., description="Input placeholder text")
    required: Optional[bool] = Field(None, description="Whether input is required")


class LinkedAction(ActionModel):
    """One button offered by the action."""

    href: str = Field(..., description="POST target, may contain {parameter} placeholders")
    label: str = Field(..., description="Button text")
    parameters: Optional[list[ActionParameter]] = Field(
        None,
        description="Inputs substituted into the href",
    )


class ActionLinks(ActionModel):
    actions: list[LinkedAction]


class ActionGetResponse(ActionModel):
    """Metadata describing an action."""

    chain_id: int = Field(..., description="EVM chain ID the action targets")
    icon: str = Field(..., description="Icon image URL")
    label: str = Field(..., description="Default button label")
    title: str = Field(..., description="Action title")
    description: str = Field(..., description="Action description")
    disabled: Optional[bool] = Field(None, description="Whether the action is disabled")
    links: Optional[ActionLinks] = Field(None, description="Related actions")


# ============================================================================
# POST
# ============================================================================

class ActionPostRequestBody(ActionModel):
    """Body sent by the wallet when the user picks an action."""

    model_config = ConfigDict(
        extra="ignore",
        json_schema_extra={
            "examples": [
                {"account": "0x1234567890abcdef1234567890abcdef12345678"}
            ]
        },
    )

    account: str = Field(..., description="User EVM address (0x...)")

    @field_validator("account")
    @classmethod
    def _valid_address(cls, value: str) -> str:
        if not value.startswith("0x") or not Web3.is_address(value):
            raise ValueError("must be a valid EVM address")
        return value


class TransactionParameters(ActionModel):
    """Unsigned transaction fields returned to the wallet."""

    to: str = Field(..., description="Destination address")
    value: str = Field(..., description="Wei value as a decimal string")
    data: str = Field(..., description="Call data (0x...)")
    chain_id: int = Field(..., description="EVM chain ID")


class ActionPostResponse(ActionModel):
    transaction: TransactionParameters
    message: Optional[str] = None


class ActionError(ActionModel):
    message: str


def validate_action_post_request_body(body: Any) -> ActionPostRequestBody:
    """
    Validate a decoded POST body.

    Raises:
        ValidationError: with every violated field
    """
    return ActionPostRequestBody.model_validate(body)


def format_validation_error(exc: ValidationError) -> str:
    """Render all validation errors as one human-readable message."""
    issues = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"]) or "body"
        issues.append(f"{location}: {error['msg']}")
    return f"Invalid request body: {'; '.join(issues)}. Expected {EXPECTED_POST_BODY}"


def create_action_error(message: str) -> ActionError:
    return ActionError(message=message)
