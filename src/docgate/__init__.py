"""
docgate: rate-limited, signed document submission to a remote registry.

Every submission passes an in-process token bucket before any
serialization, signing or network work happens.
"""

__version__ = "0.1.0"
