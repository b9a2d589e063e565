"""Submission outcomes.

These types answer: "What happened to a submit() call?"

IMPORTANT:
- REJECTED means the limiter said no. Nothing was serialized, signed or sent.
- ADMITTED always carries a SubmissionOutcome, which is either a success or
  a FailureInfo naming the collaborator that failed.
- Rejection carries no retry-after hint. Retry policy belongs to callers.
"""

from __future__ import annotations

from dataclasses import dataclass

from docgate.contracts.enums import FailureKind, SubmissionStatus


@dataclass(frozen=True, slots=True)
class FailureInfo:
    """Type-safe failure details for an admitted submission.

    Fields:
        kind: Which collaborator failed
        message: Human-readable error message
    """

    kind: FailureKind
    message: str

    @classmethod
    def from_exception(cls, kind: FailureKind, exc: BaseException) -> FailureInfo:
        """Build FailureInfo from a collaborator exception."""
        return cls(kind=kind, message=f"{type(exc).__name__}: {exc}")


@dataclass(frozen=True, slots=True)
class SubmissionOutcome:
    """Result of the serialize → sign → transmit path.

    Use the factory methods to create instances.
    """

    succeeded: bool
    status_code: int | None = None
    failure: FailureInfo | None = None

    def __post_init__(self) -> None:
        if self.succeeded and self.failure is not None:
            raise ValueError("Successful outcome cannot carry failure info")
        if not self.succeeded and self.failure is None:
            raise ValueError("Failed outcome requires failure info")

    @classmethod
    def success(cls, status_code: int) -> SubmissionOutcome:
        return cls(succeeded=True, status_code=status_code)

    @classmethod
    def failed(
        cls,
        kind: FailureKind,
        message: str,
        *,
        status_code: int | None = None,
    ) -> SubmissionOutcome:
        return cls(
            succeeded=False,
            status_code=status_code,
            failure=FailureInfo(kind=kind, message=message),
        )

    @classmethod
    def from_exception(cls, kind: FailureKind, exc: BaseException) -> SubmissionOutcome:
        return cls(succeeded=False, failure=FailureInfo.from_exception(kind, exc))


@dataclass(frozen=True, slots=True)
class SubmissionResult:
    """Result of DocumentGate.submit().

    Invariant: status == ADMITTED iff outcome is not None.
    """

    status: SubmissionStatus
    outcome: SubmissionOutcome | None = None

    def __post_init__(self) -> None:
        if self.status == SubmissionStatus.ADMITTED and self.outcome is None:
            raise ValueError("Admitted result requires an outcome")
        if self.status == SubmissionStatus.REJECTED and self.outcome is not None:
            raise ValueError("Rejected result cannot carry an outcome")

    @classmethod
    def rejected(cls) -> SubmissionResult:
        """Limiter denied admission; no side effects occurred."""
        return cls(status=SubmissionStatus.REJECTED)

    @classmethod
    def admitted(cls, outcome: SubmissionOutcome) -> SubmissionResult:
        return cls(status=SubmissionStatus.ADMITTED, outcome=outcome)

    @property
    def is_rejected(self) -> bool:
        return self.status == SubmissionStatus.REJECTED

    @property
    def is_admitted(self) -> bool:
        return self.status == SubmissionStatus.ADMITTED

    @property
    def succeeded(self) -> bool:
        """True only for admitted submissions the registry accepted."""
        return self.outcome is not None and self.outcome.succeeded
