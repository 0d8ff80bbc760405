"""
Transaction signing with the local wallet keypair.

The aggregator returns an unsigned versioned transaction; before it
is relayed it gets a fresh blockhash and the wallet's signature.
"""

import base64

import base58
import orjson
from solders.hash import Hash
from solders.keypair import Keypair
from solders.message import Message, MessageV0
from solders.pubkey import Pubkey
from solders.transaction import VersionedTransaction

from relayarb.config.constants import PLACEHOLDER_PRIVATE_KEY
from relayarb.core.errors import ExecutionError, FatalStartupError


def load_keypair(secret: str | None) -> Keypair:
    """
    Parse a wallet secret.

    Accepts a base58 string (wallet export format) or a JSON byte
    array (CLI keyfile format).

    Raises:
        FatalStartupError: If the secret is missing, the sample
            placeholder, or not a valid 64-byte keypair.
    """
    if not secret or not secret.strip():
        raise FatalStartupError("WALLET_PRIVATE_KEY is not set")

    secret = secret.strip()
    if secret == PLACEHOLDER_PRIVATE_KEY:
        raise FatalStartupError("WALLET_PRIVATE_KEY still holds the sample placeholder")

    try:
        if secret.startswith("["):
            raw = bytes(orjson.loads(secret))
        else:
            raw = base58.b58decode(secret)
        return Keypair.from_bytes(raw)
    except Exception as e:
        raise FatalStartupError(f"Invalid WALLET_PRIVATE_KEY: {e}") from e


class TransactionSigner:
    """
    Signs swap transactions for a single wallet.

    The wallet must already be the fee payer (first account key) of
    every transaction it signs; the aggregator builds swaps that way
    for the userPublicKey it is given.
    """

    __slots__ = ("_keypair",)

    def __init__(self, keypair: Keypair) -> None:
        """
        Initialize signer.

        Args:
            keypair: Wallet keypair.
        """
        self._keypair = keypair

    @classmethod
    def from_secret(cls, secret: str | None) -> "TransactionSigner":
        """Build a signer from a configured secret (see load_keypair)."""
        return cls(load_keypair(secret))

    @property
    def public_key(self) -> Pubkey:
        """Wallet address."""
        return self._keypair.pubkey()

    def decode(self, encoded: str) -> VersionedTransaction:
        """
        Deserialize a base64 transaction.

        Raises:
            ExecutionError: If the payload is not a valid transaction.
        """
        try:
            return VersionedTransaction.from_bytes(base64.b64decode(encoded))
        except Exception as e:
            raise ExecutionError(f"Cannot decode swap transaction: {e}") from e

    def sign(self, transaction: VersionedTransaction, blockhash: Hash) -> VersionedTransaction:
        """
        Re-stamp a transaction with a recent blockhash and sign it.

        Args:
            transaction: Unsigned (or stale) transaction.
            blockhash: Recent blockhash from the ledger.

        Returns:
            New signed transaction; the input is left untouched.

        Raises:
            ExecutionError: If the wallet is not the fee payer.
        """
        message = transaction.message
        payer = message.account_keys[0] if message.account_keys else None
        if payer != self.public_key:
            raise ExecutionError(f"Fee payer {payer} is not the wallet {self.public_key}")

        if isinstance(message, MessageV0):
            restamped: Message | MessageV0 = MessageV0(
                message.header,
                message.account_keys,
                blockhash,
                message.instructions,
                message.address_table_lookups,
            )
        else:
            header = message.header
            restamped = Message.new_with_compiled_instructions(
                header.num_required_signatures,
                header.num_readonly_signed_accounts,
                header.num_readonly_unsigned_accounts,
                message.account_keys,
                blockhash,
                message.instructions,
            )

        return VersionedTransaction(restamped, [self._keypair])

    def sign_encoded(self, encoded: str, blockhash: Hash) -> VersionedTransaction:
        """Decode, re-stamp and sign a base64 transaction."""
        return self.sign(self.decode(encoded), blockhash)
