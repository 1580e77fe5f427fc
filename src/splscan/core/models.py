"""Record types that flow between pipeline stages.

All records are frozen pydantic models so a stage's output can be dumped to
and reloaded from its JSON artifact without loss. Addresses are base58
strings validated against ``solders.pubkey.Pubkey``.
"""

from __future__ import annotations

from typing import Annotated

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel
from solders.pubkey import Pubkey

MAINNET_CHAIN_ID = 101


def _check_address(value: str) -> str:
    try:
        Pubkey.from_string(value)
    except Exception as e:
        raise ValueError(f"not a base58 address: {value!r}") from e
    return value


Address = Annotated[str, AfterValidator(_check_address)]


def trim_nul(value: str) -> str:
    return value.rstrip("\x00")


class _Record(BaseModel):
    model_config = ConfigDict(frozen=True)


class PrimaryRecord(_Record):
    """A decoded SPL token mint."""

    key: Address
    supply: int = Field(ge=0, lt=2**64)
    decimals: int = Field(ge=0, lt=2**8)

    @property
    def pubkey(self) -> Pubkey:
        return Pubkey.from_string(self.key)


class Creator(_Record):
    address: Address
    verified: bool
    share: int = Field(ge=0, le=255)


class SecondaryRecord(_Record):
    """A decoded Metaplex metadata account."""

    key: Address
    mint: Address
    update_authority: Address
    name: str
    symbol: str
    uri: str
    seller_fee_basis_points: int = 0
    creators: list[Creator] | None = None
    primary_sale_happened: bool = False
    is_mutable: bool = True


class JoinedRecord(_Record):
    """A fungible mint together with its metadata account."""

    primary: PrimaryRecord
    secondary: SecondaryRecord

    @model_validator(mode="after")
    def _metadata_belongs_to_mint(self) -> JoinedRecord:
        if self.secondary.mint != self.primary.key:
            raise ValueError(
                f"metadata {self.secondary.key} belongs to mint {self.secondary.mint}, "
                f"not {self.primary.key}"
            )
        return self


class PublicEntry(_Record):
    """One entry of the public token list."""

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    chain_id: int = MAINNET_CHAIN_ID
    address: Address
    symbol: str
    name: str
    decimals: int
    logo_uri: str

    @model_validator(mode="before")
    @classmethod
    def _trim_padding(cls, data):
        if isinstance(data, dict):
            data = {k: trim_nul(v) if isinstance(v, str) else v for k, v in data.items()}
        return data

    @classmethod
    def from_joined(cls, record: JoinedRecord) -> PublicEntry:
        metadata = record.secondary
        return cls(
            address=record.primary.key,
            symbol=metadata.symbol,
            name=metadata.name,
            decimals=record.primary.decimals,
            logo_uri=metadata.uri,
        )

    @property
    def has_uri(self) -> bool:
        return bool(self.logo_uri)


class SubmissionReceipt(_Record):
    target: Address
    signature: str
    attempts: int


class ClaimEntry(_Record):
    handle: str
    amount: int = Field(ge=0)


__all__ = [
    "MAINNET_CHAIN_ID",
    "Address",
    "PrimaryRecord",
    "Creator",
    "SecondaryRecord",
    "JoinedRecord",
    "PublicEntry",
    "SubmissionReceipt",
    "ClaimEntry",
    "trim_nul",
]
