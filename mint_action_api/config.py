"""
Configuration for the Mint Action API.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .chains import Chain, get_chain


DEFAULT_ICON = (
    "https://media.decentralized-content.com/-/rs:fit:1080:1080/f:best/"
    "aHR0cHM6Ly9tYWdpYy5kZWNlbnRyYWxpemVkLWNvbnRlbnQuY29tL2lwZnMvYmFmeWJlaWFmeWVs"
    "ZHB5YmgydGljbm10dW1mM2pubjdpdWlncWt5NnRtaDV4bTJ3aWY3dHZ4Mm15cWU"
)


class Settings(BaseSettings):
    """
    API configuration settings.

    All settings can be overridden via environment variables. One deployment
    serves exactly one drop contract on one chain.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # API Server
    host: str = Field(
        default="127.0.0.1",
        description="API host (127.0.0.1 for local only, 0.0.0.0 for external)",
    )
    port: int = Field(default=8000, description="API port")
    debug: bool = Field(default=False, description="Enable debug mode")

    # Actions are fetched cross-origin by wallets and unfurlers
    allowed_origins: list[str] = Field(
        default=["*"],
        description="CORS allowed origins"
    )

    # Chain
    chain_id: int = Field(default=84532, description="EVM chain ID (Base Sepolia)")
    thirdweb_client_id: str = Field(
        default="0ebefcf3e69b22d4a002b8c93ece19c8",
        description="Client ID used to key the chain RPC endpoint",
    )
    evm_rpc_url: Optional[str] = Field(
        default=None,
        description="EVM RPC URL (defaults to the client-id keyed RPC for the chain)",
    )

    # Drop
    nft_contract_address: str = Field(
        default="0x250E7409dA32f078E0531b2d7AAE388027743787",
        description="Open-edition ERC721 drop contract address",
    )
    mint_amount_options: list[int] = Field(
        default=[1, 2, 3],
        description="Amounts offered as one-click mint links",
    )

    # Action metadata
    icon: str = Field(default=DEFAULT_ICON, description="Action icon URL")
    label: str = Field(default="Mint NFT", description="Action button label")
    title: str = Field(default="Mint OpenEdition NFT", description="Action title")
    description: str = Field(
        default="Mint OpenEdition NFT to celebrate X",
        description="Action description",
    )

    @field_validator("mint_amount_options")
    @classmethod
    def _positive_amounts(cls, value: list[int]) -> list[int]:
        if any(amount <= 0 for amount in value):
            raise ValueError("mint amount options must be positive integers")
        return value

    @property
    def chain(self) -> Chain:
        """Resolved target chain.

        Unknown chain IDs are allowed when an explicit RPC URL is configured.
        """
        try:
            return get_chain(self.chain_id)
        except ValueError:
            if not self.evm_rpc_url:
                raise
            return Chain(id=self.chain_id, name=f"Chain {self.chain_id}")

    @property
    def rpc_url(self) -> str:
        """RPC URL used by the chain client."""
        return self.evm_rpc_url or self.chain.rpc_url(self.thirdweb_client_id)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
