"""Transaction signing through eth-account."""

from __future__ import annotations

from dataclasses import dataclass

from eth_account import Account
from eth_utils import to_checksum_address

# Fixed limit; gas is never estimated.
SUFFICIENT_GAS_LIMIT = 3_000_000


@dataclass(frozen=True)
class UnsignedTransaction:
    """Legacy transaction fields before signing."""

    to: str
    nonce: int
    gas_price: int
    data: bytes
    value: int = 0
    gas: int = SUFFICIENT_GAS_LIMIT


@dataclass(frozen=True)
class SignedTransaction:
    raw: bytes
    tx_hash: str


def address_of(private_key: str) -> str:
    """Checksummed address controlled by ``private_key``."""

    return Account.from_key(private_key).address


class Signer:
    """Signs legacy transactions with replay protection bound to a chain id."""

    def sign(self, tx: UnsignedTransaction, chain_id: int, private_key: str) -> SignedTransaction:
        if chain_id <= 0:
            raise ValueError("chain id must be positive to sign a transaction")
        signed = Account.sign_transaction(
            {
                "to": to_checksum_address(tx.to),
                "nonce": tx.nonce,
                "gas": tx.gas,
                "gasPrice": tx.gas_price,
                "value": tx.value,
                "data": "0x" + tx.data.hex(),
                "chainId": chain_id,
            },
            private_key,
        )
        return SignedTransaction(raw=bytes(signed.raw_transaction), tx_hash="0x" + bytes(signed.hash).hex())
