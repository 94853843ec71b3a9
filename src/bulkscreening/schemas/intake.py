from __future__ import annotations

from enum import Enum

from .base import CamelModel


class ViolationCode(str, Enum):
    """Closed set of reasons a batch can be refused at intake."""

    INVALID_JOB_REFERENCE = "INVALID_JOB_REFERENCE"
    EMPTY_BATCH = "EMPTY_BATCH"
    BATCH_TOO_LARGE = "BATCH_TOO_LARGE"
    UNSUPPORTED_FILE_TYPE = "UNSUPPORTED_FILE_TYPE"
    FILE_TOO_LARGE = "FILE_TOO_LARGE"
    DUPLICATE_FILE = "DUPLICATE_FILE"


class IntakeViolation(CamelModel):
    """A single intake problem; file-level problems carry the offending position."""

    code: ViolationCode
    message: str
    index: int | None = None
    filename: str | None = None
