"""
EVM client for building claim transactions against the drop contract.
"""

from dataclasses import dataclass
from typing import Any, Optional

from web3 import AsyncWeb3, AsyncHTTPProvider, Web3
from web3.types import TxParams

from .config import Settings


NATIVE_TOKEN_ADDRESS = "0xEeeeeEeeeEeEeeEeEeEeeEEEeeeeEeeeeeeeEEeE"
ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"
MAX_UINT256 = 2**256 - 1

# Contract ABI (minimal, open-edition ERC721 drop)
CLAIM_CONDITION_COMPONENTS = [
    {"name": "startTimestamp", "type": "uint256"},
    {"name": "maxClaimableSupply", "type": "uint256"},
    {"name": "supplyClaimed", "type": "uint256"},
    {"name": "quantityLimitPerWallet", "type": "uint256"},
    {"name": "merkleRoot", "type": "bytes32"},
    {"name": "pricePerToken", "type": "uint256"},
    {"name": "currency", "type": "address"},
    {"name": "metadata", "type": "string"},
]

DROP_ERC721_ABI = [
    {
        "inputs": [],
        "name": "getActiveClaimConditionId",
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [{"name": "_conditionId", "type": "uint256"}],
        "name": "getClaimConditionById",
        "outputs": [
            {
                "name": "condition",
                "type": "tuple",
                "components": CLAIM_CONDITION_COMPONENTS,
            }
        ],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [
            {"name": "_receiver", "type": "address"},
            {"name": "_quantity", "type": "uint256"},
            {"name": "_currency", "type": "address"},
            {"name": "_pricePerToken", "type": "uint256"},
            {
                "name": "_allowlistProof",
                "type": "tuple",
                "components": [
                    {"name": "proof", "type": "bytes32[]"},
                    {"name": "quantityLimitPerWallet", "type": "uint256"},
                    {"name": "pricePerToken", "type": "uint256"},
                    {"name": "currency", "type": "address"},
                ],
            },
            {"name": "_data", "type": "bytes"},
        ],
        "name": "claim",
        "outputs": [],
        "stateMutability": "payable",
        "type": "function",
    },
]

# Empty proof: claim under the public phase terms
PUBLIC_ALLOWLIST_PROOF = ([], 0, MAX_UINT256, ZERO_ADDRESS)


@dataclass(frozen=True)
class ClaimCondition:
    """Active claim phase of a drop."""

    start_timestamp: int
    max_claimable_supply: int
    supply_claimed: int
    quantity_limit_per_wallet: int
    merkle_root: bytes
    price_per_token: int
    currency: str
    metadata: str

    @property
    def is_native_currency(self) -> bool:
        return self.currency.lower() == NATIVE_TOKEN_ADDRESS.lower()


@dataclass(frozen=True)
class PreparedTransaction:
    """Contract call intent, not yet resolved against the chain."""

    to: str
    data: str
    value: int
    chain_id: int
    from_: str


@dataclass(frozen=True)
class SerializableTransaction:
    """Transaction with every field resolved, ready for signing."""

    to: str
    value: int
    data: str
    chain_id: int
    nonce: int
    gas: int
    max_fee_per_gas: Optional[int] = None
    max_priority_fee_per_gas: Optional[int] = None
    gas_price: Optional[int] = None


class EVMClient:
    """
    Async EVM client for drop contract interactions.

    Holds no per-request state; one instance is shared by all requests.
    """

    def __init__(self, settings: Settings):
        self.settings = settings
        self.chain = settings.chain
        self.w3 = AsyncWeb3(AsyncHTTPProvider(settings.rpc_url))

    async def check_connectivity(self) -> bool:
        """Check if EVM RPC is reachable."""
        try:
            await self.w3.eth.block_number
            return True
        except Exception:
            return False

    async def close(self) -> None:
        """Close the provider session."""
        await self.w3.provider.disconnect()

    async def get_nonce(self, address: str) -> int:
        """Get next nonce for account."""
        return await self.w3.eth.get_transaction_count(address)

    async def get_gas_price(self) -> int:
        """Get current legacy gas price."""
        return await self.w3.eth.gas_price

    def get_contract(self, address: Optional[str] = None) -> Any:
        """Get drop contract instance (the configured drop by default)."""
        return self.w3.eth.contract(
            address=Web3.to_checksum_address(address or self.settings.nft_contract_address),
            abi=DROP_ERC721_ABI,
        )

    async def get_active_claim_condition(self, contract: Any) -> ClaimCondition:
        """Read the currently active claim phase."""
        condition_id = await contract.functions.getActiveClaimConditionId().call()
        raw = await contract.functions.getClaimConditionById(condition_id).call()
        return ClaimCondition(*raw)

    async def prepare_claim_to(
        self,
        contract: Any,
        to: str,
        from_: str,
        quantity: int,
    ) -> PreparedTransaction:
        """
        Prepare a claim of `quantity` tokens to `to`, paid by `from_`.

        Uses the active claim phase price and currency. The wei value is only
        attached when the phase is priced in the native token.
        """
        condition = await self.get_active_claim_condition(contract)

        value = condition.price_per_token * quantity if condition.is_native_currency else 0
        data = contract.encode_abi(
            "claim",
            args=[
                Web3.to_checksum_address(to),
                quantity,
                condition.currency,
                condition.price_per_token,
                PUBLIC_ALLOWLIST_PROOF,
                b"",
            ],
        )

        return PreparedTransaction(
            to=contract.address,
            data=data,
            value=value,
            chain_id=self.chain.id,
            from_=Web3.to_checksum_address(from_),
        )

    async def to_serializable_transaction(
        self,
        transaction: PreparedTransaction,
        from_: str,
    ) -> SerializableTransaction:
        """
        Resolve nonce, gas and fees for a prepared transaction.

        Gas estimation executes the call, so a claim that would revert
        fails here.
        """
        sender = Web3.to_checksum_address(from_)
        tx: TxParams = {
            "from": sender,
            "to": transaction.to,
            "value": transaction.value,
            "data": transaction.data,
            "chainId": transaction.chain_id,
        }

        nonce = await self.get_nonce(sender)
        gas = await self.w3.eth.estimate_gas(tx)

        block = await self.w3.eth.get_block("latest")
        base_fee = block.get("baseFeePerGas")
        if base_fee is not None:
            priority_fee = await self.w3.eth.max_priority_fee
            return SerializableTransaction(
                to=transaction.to,
                value=transaction.value,
                data=transaction.data,
                chain_id=transaction.chain_id,
                nonce=nonce,
                gas=gas,
                max_fee_per_gas=base_fee * 2 + priority_fee,
                max_priority_fee_per_gas=priority_fee,
            )

        return SerializableTransaction(
            to=transaction.to,
            value=transaction.value,
            data=transaction.data,
            chain_id=transaction.chain_id,
            nonce=nonce,
            gas=gas,
            gas_price=await self.get_gas_price(),
        )
