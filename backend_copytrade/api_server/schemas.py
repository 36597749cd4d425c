"""
Request bodies for every write endpoint.

JSON keys are camelCase (walletAddress, maxPerTrade, ...); Python attributes are
snake_case. Wallet addresses are stripped and lowercased on the way in, so
handlers only ever see normalized addresses.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Annotated, Union

from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    StrictFloat,
    StrictInt,
    StrictStr,
    field_validator,
)

from backend_copytrade.utils.wallet_utils import normalize_address


def _address(value: str) -> str:
    address = normalize_address(value)
    if not address:
        raise ValueError("wallet address must be non-empty")
    return address


WalletAddress = Annotated[str, AfterValidator(_address)]

# Ten years, in seconds.
MAX_MARKET_DURATION_SEC = 10 * 365 * 24 * 3600


class _Body(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class WalletBody(_Body):
    """Body carrying only the caller's wallet (e.g. DELETE /copy-trades/{id})."""

    wallet_address: WalletAddress = Field(..., alias="walletAddress")


# -----------------------------------------------------------------------------
# Traders
# -----------------------------------------------------------------------------


class RegisterTraderRequest(_Body):
    """POST /api/traders/register body."""

    wallet_address: WalletAddress = Field(..., alias="walletAddress")
    is_public: StrictBool = Field(True, alias="isPublic")
    categories: list[str] = Field(default_factory=list, max_length=32)


# -----------------------------------------------------------------------------
# Markets
# -----------------------------------------------------------------------------


class CreateMarketRequest(_Body):
    """POST /api/markets/create body. duration is in seconds."""

    wallet_address: WalletAddress = Field(..., alias="walletAddress")
    question: str = Field(..., min_length=1, max_length=512)
    category: str = Field(..., min_length=1, max_length=64)
    duration: int = Field(..., gt=0, le=MAX_MARKET_DURATION_SEC)


class PlaceBetRequest(_Body):
    """POST /api/markets/{id}/bet body. prediction must be a JSON boolean."""

    wallet_address: WalletAddress = Field(..., alias="walletAddress")
    prediction: StrictBool
    amount: Union[StrictStr, StrictInt, StrictFloat]

    @field_validator("amount")
    @classmethod
    def _positive_decimal(cls, value: Union[str, int, float]) -> str:
        """Keep the amount as a decimal string; reject non-numeric and non-positive values."""
        try:
            parsed = Decimal(str(value).strip())
        except InvalidOperation as e:
            raise ValueError("amount must be a number") from e
        if not parsed.is_finite() or parsed <= 0:
            raise ValueError("amount must be positive")
        return str(value).strip()


# -----------------------------------------------------------------------------
# Copy trades
# -----------------------------------------------------------------------------


class CreateCopyTradeRequest(_Body):
    """POST /api/copy-trades body."""

    follower_address: WalletAddress = Field(..., alias="followerAddress")
    trader_address: WalletAddress = Field(..., alias="traderAddress")
    amount: float = Field(..., gt=0, allow_inf_nan=False)
    categories: list[str] = Field(default_factory=list)
    max_trades: int | None = Field(None, alias="maxTrades", gt=0)


class UpdateCopyTradeRequest(_Body):
    """
    PUT /api/copy-trades/{id} body. Only keys present in the JSON are applied;
    an explicit null maxTrades clears the cap.
    """

    wallet_address: WalletAddress = Field(..., alias="walletAddress")
    amount: float | None = Field(None, gt=0, allow_inf_nan=False)
    categories: list[str] | None = None
    max_trades: int | None = Field(None, alias="maxTrades", gt=0)
    active: StrictBool | None = None

    def updates(self) -> dict[str, object]:
        """Column updates for the fields the caller actually sent."""
        sent = self.model_fields_set
        out: dict[str, object] = {}
        if "amount" in sent and self.amount is not None:
            out["amount"] = self.amount
        if "categories" in sent and self.categories is not None:
            out["categories"] = list(self.categories)
        if "max_trades" in sent:
            out["max_trades"] = self.max_trades
        if "active" in sent and self.active is not None:
            out["active"] = self.active
        return out


# -----------------------------------------------------------------------------
# x402 agents
# -----------------------------------------------------------------------------


class CreateAgentRequest(_Body):
    """POST /api/x402/agent/create body. Spending limits must be positive."""

    follower_address: WalletAddress = Field(..., alias="followerAddress")
    trader_address: WalletAddress = Field(..., alias="traderAddress")
    max_per_trade: float = Field(..., alias="maxPerTrade", gt=0, allow_inf_nan=False)
    total_limit: float = Field(..., alias="totalLimit", gt=0, allow_inf_nan=False)
    categories: list[str] = Field(default_factory=list)


class AuthorizeAgentRequest(_Body):
    wallet_address: WalletAddress = Field(..., alias="walletAddress")
    spending_limit: float = Field(..., alias="spendingLimit", gt=0, allow_inf_nan=False)


class ToggleAgentRequest(_Body):
    wallet_address: WalletAddress = Field(..., alias="walletAddress")
    active: StrictBool


class ExecutionData(_Body):
    """One execution as reported by x402. timestamp accepts ISO 8601 or unix seconds/ms."""

    market_id: int | None = Field(None, alias="marketId")
    original_amount: Union[str, float, None] = Field(None, alias="originalAmount")
    copied_amount: Union[str, float, None] = Field(None, alias="copiedAmount")
    prediction: StrictBool | None = None
    tx_hash: str | None = Field(None, alias="txHash")
    timestamp: datetime | None = None


class WebhookExecutionRequest(_Body):
    """POST /api/x402/webhook/execution body."""

    agent_address: WalletAddress = Field(..., alias="agentAddress")
    execution_data: ExecutionData = Field(..., alias="executionData")
