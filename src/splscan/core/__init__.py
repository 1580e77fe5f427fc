"""Core primitives: errors, logging, settings and record models."""
