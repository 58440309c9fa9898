"""Soft-failure diagnostics shared by the range slicer and the resolver.

Resolution never raises for a missing reference or a bad range. Each
problem becomes a Diagnostic that the caller collects (when it passes a
list) and that is always logged at WARNING, so the host decides whether
to surface it.
"""

import logging
from dataclasses import dataclass


REFERENCE_NOT_FOUND = "reference_not_found"
RANGE_INVALID = "range_invalid"


@dataclass(frozen=True)
class Diagnostic:
    kind: str
    message: str
    key: str | None = None
    range: str | None = None

    def __str__(self) -> str:
        return self.message


def report(
    diagnostics: list[Diagnostic] | None,
    logger: logging.Logger,
    kind: str,
    message: str,
    key: str | None = None,
    range: str | None = None,
) -> Diagnostic:
    """Log a diagnostic and append it to the sink if one was given."""
    diag = Diagnostic(kind=kind, message=message, key=key, range=range)
    logger.warning(message)
    if diagnostics is not None:
        diagnostics.append(diag)
    return diag
