"""Ledger access: account layouts, decoding, address derivation and the RPC client."""
