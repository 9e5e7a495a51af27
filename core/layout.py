"""
core/layout.py
Byte-exact account layouts for PlatformConfig and Bet records.

Fields are packed little-endian in declaration order, Borsh style, so a
record written here can be read by any consumer of the original account
format. An optional 8-byte account discriminator
(sha256("account:<Name>")[:8]) can prefix the body.

    PlatformConfig  99 bytes   admin | house_wallet | fee_bps u16 | min u64 |
                               max u64 | total_bets u64 | total_volume u64 |
                               is_active u8
    Bet            115 bytes   player | amount u64 | prediction u8 | mint |
                               start i64 | end i64 | start_price u64 |
                               end_price u64 | settled u8 | winner u8 | payout u64
"""

import hashlib
import struct
from dataclasses import dataclass

from core.errors import InvalidParameter
from core.identity import address_to_bytes, bytes_to_address

PLATFORM_STRUCT = struct.Struct("<32s32sHQQQQ?")
BET_STRUCT = struct.Struct("<32sQ?32sqqQQ??Q")

DISCRIMINATOR_LENGTH = 8


def account_discriminator(name: str) -> bytes:
    """First 8 bytes of sha256("account:<name>")."""
    return hashlib.sha256(f"account:{name}".encode()).digest()[:DISCRIMINATOR_LENGTH]


PLATFORM_DISCRIMINATOR = account_discriminator("Platform")
BET_DISCRIMINATOR = account_discriminator("Bet")


@dataclass(frozen=True)
class PlatformLayout:
    admin: str
    house_wallet: str
    house_fee_bps: int
    min_bet: int
    max_bet: int
    total_bets: int
    total_volume: int
    is_active: bool


@dataclass(frozen=True)
class BetLayout:
    player: str
    amount: int
    prediction: bool
    token_mint: str
    start_time: int
    end_time: int
    start_price: int
    end_price: int
    is_settled: bool
    is_winner: bool
    payout: int


def _pack(fmt: struct.Struct, *values) -> bytes:
    try:
        return fmt.pack(*values)
    except struct.error as exc:
        raise InvalidParameter(f"Field out of range for layout: {exc}") from exc


def _strip(data: bytes, fmt: struct.Struct, discriminator: bytes) -> bytes:
    """Drop a leading discriminator if present and check the body size."""
    if len(data) == fmt.size + DISCRIMINATOR_LENGTH:
        if data[:DISCRIMINATOR_LENGTH] != discriminator:
            raise InvalidParameter("Account discriminator mismatch")
        data = data[DISCRIMINATOR_LENGTH:]
    if len(data) != fmt.size:
        raise InvalidParameter(f"Expected {fmt.size} bytes, got {len(data)}")
    return data


def encode_platform(layout: PlatformLayout, with_discriminator: bool = False) -> bytes:
    body = _pack(
        PLATFORM_STRUCT,
        address_to_bytes(layout.admin),
        address_to_bytes(layout.house_wallet),
        layout.house_fee_bps,
        layout.min_bet,
        layout.max_bet,
        layout.total_bets,
        layout.total_volume,
        layout.is_active,
    )
    return PLATFORM_DISCRIMINATOR + body if with_discriminator else body


def decode_platform(data: bytes) -> PlatformLayout:
    fields = PLATFORM_STRUCT.unpack(_strip(data, PLATFORM_STRUCT, PLATFORM_DISCRIMINATOR))
    admin, house_wallet, *rest = fields
    return PlatformLayout(bytes_to_address(admin), bytes_to_address(house_wallet), *rest)


def encode_bet(layout: BetLayout, with_discriminator: bool = False) -> bytes:
    body = _pack(
        BET_STRUCT,
        address_to_bytes(layout.player),
        layout.amount,
        layout.prediction,
        address_to_bytes(layout.token_mint),
        layout.start_time,
        layout.end_time,
        layout.start_price,
        layout.end_price,
        layout.is_settled,
        layout.is_winner,
        layout.payout,
    )
    return BET_DISCRIMINATOR + body if with_discriminator else body


def decode_bet(data: bytes) -> BetLayout:
    (player, amount, prediction, mint, start_time, end_time,
     start_price, end_price, is_settled, is_winner, payout) = BET_STRUCT.unpack(
        _strip(data, BET_STRUCT, BET_DISCRIMINATOR)
    )
    return BetLayout(
        player=bytes_to_address(player),
        amount=amount,
        prediction=prediction,
        token_mint=bytes_to_address(mint),
        start_time=start_time,
        end_time=end_time,
        start_price=start_price,
        end_price=end_price,
        is_settled=is_settled,
        is_winner=is_winner,
        payout=payout,
    )


def platform_layout(config) -> PlatformLayout:
    """Snapshot a PlatformConfig row into its layout."""
    return PlatformLayout(
        admin=config.admin,
        house_wallet=config.house_wallet,
        house_fee_bps=config.house_fee_bps,
        min_bet=config.min_bet,
        max_bet=config.max_bet,
        total_bets=config.total_bets,
        total_volume=config.total_volume,
        is_active=config.is_active,
    )


def bet_layout(bet) -> BetLayout:
    """Snapshot a Bet row into its layout."""
    return BetLayout(
        player=bet.player,
        amount=bet.amount,
        prediction=bet.prediction,
        token_mint=bet.token_mint,
        start_time=bet.start_time,
        end_time=bet.end_time,
        start_price=bet.start_price,
        end_price=bet.end_price,
        is_settled=bet.is_settled,
        is_winner=bet.is_winner,
        payout=bet.payout,
    )
