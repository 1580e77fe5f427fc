"""
splscan — SPL token-list miner.

Scans the Solana ledger for fungible SPL mints, joins them with their
Metaplex metadata, and publishes a token list. Also finds and signs
metadata accounts awaiting a creator's attestation, and generates claim
lists for token distributions.

Packages:
    core       errors, logging, settings, record models
    ledger     binary layouts, decoding, address derivation, RPC client
    execution  rate limiting, retry, thread-pool batches
    pipeline   stages, correlation, persistence, creators, claims
    cli        Typer application
"""

__version__ = "0.1.0"
