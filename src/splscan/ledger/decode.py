"""Binary decoding of mint and metadata account payloads.

``decode_primary`` reads the packed SPL token ``Mint`` layout and
``decode_secondary`` the borsh-encoded Metaplex ``Metadata`` layout. Both
are pure and raise ``MalformedPrimary`` / ``MalformedSecondary`` for any
payload they cannot read, never a bare ``struct.error`` or ``IndexError``.

The ``encode_*`` counterparts write the same layouts; string fields are
padded with NULs to their maxima the way the metadata program stores them.
"""

from __future__ import annotations

import struct

from solders.pubkey import Pubkey

from splscan.core.errors import DecodeError, MalformedPrimary, MalformedSecondary
from splscan.core.models import Creator, PrimaryRecord, SecondaryRecord, trim_nul
from splscan.ledger.layout import (
    COPTION_NONE,
    COPTION_SOME,
    MAX_CREATOR_LIMIT,
    MAX_NAME_LENGTH,
    MAX_SYMBOL_LENGTH,
    MAX_URI_LENGTH,
    METADATA_V1_KEY,
    MINT_LEN,
    PUBKEY_LEN,
)


class _Reader:
    """Cursor over a payload that raises ``error`` on any short or invalid read."""

    def __init__(self, data: bytes, error: type[DecodeError]):
        self._data = memoryview(data)
        self._pos = 0
        self._error = error

    def take(self, size: int) -> bytes:
        end = self._pos + size
        if end > len(self._data):
            raise self._error(
                f"payload truncated: need {size} bytes at offset {self._pos}, have {len(self._data) - self._pos}"
            )
        chunk = self._data[self._pos:end].tobytes()
        self._pos = end
        return chunk

    def u8(self) -> int:
        return self.take(1)[0]

    def u16(self) -> int:
        return struct.unpack("<H", self.take(2))[0]

    def u32(self) -> int:
        return struct.unpack("<I", self.take(4))[0]

    def u64(self) -> int:
        return struct.unpack("<Q", self.take(8))[0]

    def flag(self) -> bool:
        value = self.u8()
        if value > 1:
            raise self._error(f"invalid bool byte {value} at offset {self._pos - 1}")
        return value == 1

    def pubkey(self) -> Pubkey:
        return Pubkey.from_bytes(self.take(PUBKEY_LEN))

    def coption_pubkey(self) -> Pubkey | None:
        tag = self.u32()
        raw = self.take(PUBKEY_LEN)
        if tag == COPTION_NONE:
            return None
        if tag == COPTION_SOME:
            return Pubkey.from_bytes(raw)
        raise self._error(f"invalid COption tag {tag}")

    def string(self, max_len: int, field: str) -> str:
        length = self.u32()
        if length > max_len:
            raise self._error(f"{field} length {length} exceeds maximum {max_len}")
        raw = self.take(length)
        try:
            return trim_nul(raw.decode("utf-8"))
        except UnicodeDecodeError as e:
            raise self._error(f"{field} is not valid UTF-8", cause=e) from e


def decode_primary(data: bytes, key: Pubkey | str) -> PrimaryRecord:
    """Decode a mint account.

    Raises:
        MalformedPrimary: wrong length, bad ``COption`` tag, invalid or
            unset ``is_initialized`` flag.
    """
    if len(data) != MINT_LEN:
        raise MalformedPrimary(f"mint account must be {MINT_LEN} bytes, got {len(data)}")
    reader = _Reader(data, MalformedPrimary)
    reader.coption_pubkey()  # mint authority
    supply = reader.u64()
    decimals = reader.u8()
    if not reader.flag():
        raise MalformedPrimary("mint is not initialized")
    reader.coption_pubkey()  # freeze authority
    return PrimaryRecord(key=str(key), supply=supply, decimals=decimals)


def decode_secondary(data: bytes, key: Pubkey | str) -> SecondaryRecord:
    """Decode a metadata account.

    Only the fields through ``is_mutable`` are read; anything after them
    (edition nonce, token standard, collection ...) is ignored.

    Raises:
        MalformedSecondary: truncated payload, wrong account key, oversize
            or non-UTF-8 string, too many creators, invalid bool.
    """
    reader = _Reader(data, MalformedSecondary)
    account_key = reader.u8()
    if account_key != METADATA_V1_KEY:
        raise MalformedSecondary(f"account key {account_key} is not MetadataV1")
    update_authority = reader.pubkey()
    mint = reader.pubkey()
    name = reader.string(MAX_NAME_LENGTH, "name")
    symbol = reader.string(MAX_SYMBOL_LENGTH, "symbol")
    uri = reader.string(MAX_URI_LENGTH, "uri")
    seller_fee_basis_points = reader.u16()

    creators: list[Creator] | None = None
    if reader.flag():
        count = reader.u32()
        if count > MAX_CREATOR_LIMIT:
            raise MalformedSecondary(f"{count} creators exceeds limit of {MAX_CREATOR_LIMIT}")
        creators = []
        for _ in range(count):
            address = reader.pubkey()
            verified = reader.flag()
            share = reader.u8()
            creators.append(Creator(address=str(address), verified=verified, share=share))

    primary_sale_happened = reader.flag()
    is_mutable = reader.flag()

    return SecondaryRecord(
        key=str(key),
        mint=str(mint),
        update_authority=str(update_authority),
        name=name,
        symbol=symbol,
        uri=uri,
        seller_fee_basis_points=seller_fee_basis_points,
        creators=creators,
        primary_sale_happened=primary_sale_happened,
        is_mutable=is_mutable,
    )


# =============================================================================
# ENCODING
# =============================================================================


def _coption(value: Pubkey | None) -> bytes:
    if value is None:
        return struct.pack("<I", COPTION_NONE) + bytes(PUBKEY_LEN)
    return struct.pack("<I", COPTION_SOME) + bytes(value)


def _padded_string(value: str, max_len: int) -> bytes:
    raw = value.encode("utf-8")
    if len(raw) > max_len:
        raise ValueError(f"{value!r} is longer than {max_len} bytes")
    raw = raw.ljust(max_len, b"\x00")
    return struct.pack("<I", len(raw)) + raw


def encode_primary(
    record: PrimaryRecord,
    mint_authority: Pubkey | None = None,
    freeze_authority: Pubkey | None = None,
) -> bytes:
    """Pack a mint record into the 82-byte SPL token layout."""
    return (
        _coption(mint_authority)
        + struct.pack("<QB?", record.supply, record.decimals, True)
        + _coption(freeze_authority)
    )


def encode_secondary(record: SecondaryRecord) -> bytes:
    """Serialize a metadata record into the MetadataV1 layout."""
    parts = [
        bytes([METADATA_V1_KEY]),
        bytes(Pubkey.from_string(record.update_authority)),
        bytes(Pubkey.from_string(record.mint)),
        _padded_string(record.name, MAX_NAME_LENGTH),
        _padded_string(record.symbol, MAX_SYMBOL_LENGTH),
        _padded_string(record.uri, MAX_URI_LENGTH),
        struct.pack("<H", record.seller_fee_basis_points),
    ]
    if record.creators is None:
        parts.append(b"\x00")
    else:
        parts.append(b"\x01" + struct.pack("<I", len(record.creators)))
        for creator in record.creators:
            parts.append(bytes(Pubkey.from_string(creator.address)))
            parts.append(struct.pack("<?B", creator.verified, creator.share))
    parts.append(struct.pack("<??", record.primary_sale_happened, record.is_mutable))
    return b"".join(parts)


__all__ = [
    "decode_primary",
    "decode_secondary",
    "encode_primary",
    "encode_secondary",
]
