"""Core infrastructure: clock, config, logging, serialization, signing, rate limiting."""
