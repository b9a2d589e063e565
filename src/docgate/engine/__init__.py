"""Submission engine: the rate-limited gate in front of the registry."""

from docgate.engine.gate import SUBMISSION_COST, DocumentGate, RequestEnvelope

__all__ = ["SUBMISSION_COST", "DocumentGate", "RequestEnvelope"]
