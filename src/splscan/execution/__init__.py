"""Execution primitives: rate limiting, retry and thread-pool batches."""
