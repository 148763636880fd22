"""Shared result types and interfaces for image analyzers."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import BinaryIO, Generic, Protocol, TypeVar

from ..utils.streams import SourceReadError, StreamSnapshotter

T = TypeVar("T")
T_co = TypeVar("T_co", covariant=True)

logger = logging.getLogger(__name__)


class FailureKind(str, Enum):
    """Why an analyzer could not produce a value."""

    REMOTE = "remote"
    TIMEOUT = "timeout"
    PARSE = "parse"
    CONFIG = "config"
    INPUT = "input"


class AnalyzerError(RuntimeError):
    """Raised inside an analyzer when it cannot produce output."""

    def __init__(self, message: str, kind: FailureKind = FailureKind.REMOTE) -> None:
        super().__init__(message)
        self.kind = kind


@dataclass(frozen=True, slots=True)
class AnalyzerResult(Generic[T]):
    """Outcome of one analyzer invocation: a value, or an unavailable marker."""

    value: T | None = None
    failure: FailureKind | None = None
    message: str | None = None

    @classmethod
    def ok(cls, value: T) -> AnalyzerResult[T]:
        return cls(value=value)

    @classmethod
    def unavailable(cls, kind: FailureKind, message: str | None = None) -> AnalyzerResult[T]:
        return cls(failure=kind, message=message)

    @property
    def available(self) -> bool:
        return self.failure is None

    def value_or(self, default: T) -> T:
        """Return the value, or ``default`` when the analyzer failed."""
        if self.failure is not None or self.value is None:
            return default
        return self.value


class Analyzer(Protocol[T_co]):
    """Interface every analyzer satisfies."""

    name: str

    def analyze(self, snapshot: BinaryIO) -> T_co:
        """Derive a value from a private snapshot; raise ``AnalyzerError`` on failure."""


def run_analyzer(analyzer: Analyzer[T], snapshotter: StreamSnapshotter) -> AnalyzerResult[T]:
    """Take a snapshot, run ``analyzer`` on it and absorb any failure."""
    try:
        snapshot = snapshotter.snapshot()
    except SourceReadError as exc:
        logger.warning("Analyzer '%s' could not snapshot the image: %s", analyzer.name, exc)
        return AnalyzerResult.unavailable(FailureKind.INPUT, str(exc))

    with snapshot:
        try:
            value = analyzer.analyze(snapshot)
        except AnalyzerError as exc:
            logger.warning(
                "Analyzer '%s' unavailable (%s): %s", analyzer.name, exc.kind.value, exc
            )
            return AnalyzerResult.unavailable(exc.kind, str(exc))
        except Exception as exc:
            logger.exception("Analyzer '%s' failed unexpectedly", analyzer.name)
            return AnalyzerResult.unavailable(FailureKind.REMOTE, str(exc))
    return AnalyzerResult.ok(value)
