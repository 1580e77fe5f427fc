"""On-chain layout constants for SPL token mints and Metaplex metadata.

The creator filter offsets below are computed from the fixed metadata layout
(strings are stored padded to their maxima). Any change to the metadata
layout means recomputing ``CREATORS_OFFSET``.
"""

from solders.pubkey import Pubkey

TOKEN_PROGRAM_ID = Pubkey.from_string("TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA")
TOKEN_METADATA_PROGRAM_ID = Pubkey.from_string("metaqbxxUerdq28cj1RbAWkYQm3ybzjb6a8bt518x1s")

METADATA_SEED = b"metadata"

PUBKEY_LEN = 32

# spl_token::state::Mint
MINT_LEN = 82
COPTION_NONE = 0
COPTION_SOME = 1

# mpl_token_metadata::state::Key::MetadataV1
METADATA_V1_KEY = 4

MAX_NAME_LENGTH = 32
MAX_SYMBOL_LENGTH = 10
MAX_URI_LENGTH = 200
MAX_CREATOR_LIMIT = 5
# address + verified + share
CREATOR_LEN = PUBKEY_LEN + 1 + 1

# MetadataInstruction::SignMetadata
SIGN_METADATA_INSTRUCTION = 7

STRING_PREFIX_LEN = 4

CREATORS_OFFSET = (
    1  # key
    + PUBKEY_LEN  # update authority
    + PUBKEY_LEN  # mint
    + STRING_PREFIX_LEN + MAX_NAME_LENGTH
    + STRING_PREFIX_LEN + MAX_SYMBOL_LENGTH
    + STRING_PREFIX_LEN + MAX_URI_LENGTH
    + 2  # seller fee basis points
    + 1  # creators option tag
    + 4  # creators vec length
)


def creator_offset(position: int) -> int:
    """Byte offset of the creator address at ``position`` in a padded metadata account."""
    if not 0 <= position < MAX_CREATOR_LIMIT:
        raise ValueError(f"creator position must be in [0, {MAX_CREATOR_LIMIT - 1}], got {position}")
    return CREATORS_OFFSET + position * CREATOR_LEN
