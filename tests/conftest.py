"""
Pytest configuration and shared fixtures.

Provides reusable test fixtures for all test modules.
"""

import base64
from collections.abc import Iterator
from pathlib import Path

import base58
import pytest
from solders.hash import Hash
from solders.keypair import Keypair
from solders.message import MessageV0
from solders.pubkey import Pubkey
from solders.signature import Signature
from solders.system_program import TransferParams, transfer
from solders.transaction import VersionedTransaction

from relayarb.config.constants import SOL_MINT, USDC_MINT, USDT_MINT
from relayarb.config.settings import Settings
from relayarb.core.types import Opportunity, Quote, TransactionRecord, TxStatus
from relayarb.storage.ledger import Ledger
from relayarb.strategy.calculator import build_opportunity, calculate_round_trip


# =============================================================================
# Helpers
# =============================================================================


def make_quote(input_mint: str, output_mint: str, in_amount: int, out_amount: int) -> Quote:
    """Quote with a payload shaped like the aggregator's."""
    payload = {
        "inputMint": input_mint,
        "outputMint": output_mint,
        "inAmount": str(in_amount),
        "outAmount": str(out_amount),
        "slippageBps": 50,
        "routePlan": [],
    }
    return Quote(input_mint, output_mint, in_amount, out_amount, payload)


def make_opportunity(
    amount_in: int = 10_000_000,
    forward_out: int = 1_500_000,
    reverse_out: int = 10_040_000,
    candidate: str = USDC_MINT,
) -> Opportunity:
    """SOL -> candidate -> SOL opportunity priced from two quotes."""
    forward = make_quote(SOL_MINT, candidate, amount_in, forward_out)
    reverse = make_quote(candidate, SOL_MINT, forward_out, reverse_out)
    trip = calculate_round_trip(amount_in, forward, reverse)
    return build_opportunity(SOL_MINT, candidate, trip, forward, reverse)


def make_record(
    status: TxStatus = TxStatus.SUCCESS,
    signature: str | None = "sig",
    expected_profit: int = 40_000,
    cost_units: int = 100_000,
    tip_units: int = 10_000,
    refunded: bool = False,
    latency_ms: int = 120,
) -> TransactionRecord:
    """Transaction record with sensible defaults."""
    return TransactionRecord(
        network="devnet",
        token_in=SOL_MINT,
        token_out=USDC_MINT,
        amount_in=10_000_000,
        amount_out=1_500_000,
        expected_profit=expected_profit,
        status=status,
        tx_signature=signature,
        method="optimized",
        cost_units=cost_units,
        tip_units=tip_units,
        refunded=refunded,
        latency_ms=latency_ms,
    )


def make_unsigned_swap(payer: Pubkey) -> str:
    """Base64 unsigned versioned transaction paid by `payer`."""
    instruction = transfer(
        TransferParams(from_pubkey=payer, to_pubkey=Pubkey.new_unique(), lamports=1_000)
    )
    message = MessageV0.try_compile(payer, [instruction], [], Hash.default())
    transaction = VersionedTransaction.populate(message, [Signature.default()])
    return base64.b64encode(bytes(transaction)).decode("ascii")


# =============================================================================
# Wallet Fixtures
# =============================================================================


@pytest.fixture
def keypair() -> Keypair:
    """Fresh random wallet."""
    return Keypair()


@pytest.fixture
def wallet_secret(keypair: Keypair) -> str:
    """Base58 export of the test wallet."""
    return base58.b58encode(bytes(keypair)).decode()


# =============================================================================
# Configuration Fixtures
# =============================================================================


@pytest.fixture
def settings(tmp_path: Path, wallet_secret: str) -> Settings:
    """Settings isolated from any local .env file."""
    return Settings(
        _env_file=None,
        wallet_private_key=wallet_secret,
        gateway_api_key="test-key",
        database_path=str(tmp_path / "bot.db"),
    )


# =============================================================================
# Storage Fixtures
# =============================================================================


@pytest.fixture
def ledger(tmp_path: Path) -> Iterator[Ledger]:
    """Opened ledger in a temporary directory."""
    db = Ledger(tmp_path / "ledger.db").open()
    yield db
    db.close()


# =============================================================================
# Market Data Fixtures
# =============================================================================


@pytest.fixture
def opportunity() -> Opportunity:
    """0.4% SOL -> USDC -> SOL opportunity."""
    return make_opportunity()


@pytest.fixture
def rich_opportunity() -> Opportunity:
    """0.8% SOL -> USDT -> SOL opportunity."""
    return make_opportunity(reverse_out=10_080_000, candidate=USDT_MINT)
