"""
core/identity.py
32-byte identities (players, admin, house wallet, bets, token mints)
carried as base58 text, the way Solana-style ledgers print public keys.
"""

import secrets

import base58

from core.constants import ADDRESS_LENGTH
from core.errors import InvalidParameter


def address_to_bytes(address: str) -> bytes:
    """Decode a base58 identity into its 32 raw bytes."""
    try:
        raw = base58.b58decode(address)
    except ValueError as exc:
        raise InvalidParameter(f"Not a base58 address: {address!r}") from exc
    if len(raw) != ADDRESS_LENGTH:
        raise InvalidParameter(
            f"Address must decode to {ADDRESS_LENGTH} bytes, got {len(raw)}"
        )
    return raw


def bytes_to_address(raw: bytes) -> str:
    if len(raw) != ADDRESS_LENGTH:
        raise InvalidParameter(
            f"Address must be {ADDRESS_LENGTH} bytes, got {len(raw)}"
        )
    return base58.b58encode(raw).decode("ascii")


def validate_address(address: str) -> str:
    """Return the address unchanged if it is a well-formed identity."""
    address_to_bytes(address)
    return address


def new_address() -> str:
    """Fresh random identity, used for bet (escrow) addresses."""
    return bytes_to_address(secrets.token_bytes(ADDRESS_LENGTH))
