from dataclasses import dataclass
from enum import Enum
from typing import Optional


class Decision(str, Enum):
    ACCEPT = 'accept'
    REJECT = 'reject'
    WARN = 'warn'


@dataclass(frozen=True)
class Thresholds:
    """Occurrence-count cutoffs.

    ``reject`` applies to new registrations. ``warn`` applies to sign-in
    warnings and to password changes on existing records; it falls back to
    ``reject`` when unset.
    """

    reject: int = 1
    warn: Optional[int] = None

    def __post_init__(self):
        if self.reject < 1:
            raise ValueError('reject threshold must be a positive integer')
        if self.warn is not None and self.warn < 1:
            raise ValueError('warn threshold must be a positive integer')

    @property
    def warn_or_reject(self) -> int:
        return self.warn if self.warn is not None else self.reject


def effective_threshold(is_existing_record: bool, thresholds: Thresholds) -> int:
    # An existing user who already has a breached password can move to a
    # different one that sits between the warn and reject cutoffs.
    if is_existing_record:
        return thresholds.warn_or_reject
    return thresholds.reject


def evaluate(occurrence_count: int, is_existing_record: bool, thresholds: Thresholds,
             blocking: bool = True) -> Decision:
    """Map an occurrence count to a decision.

    Blocking validation returns REJECT at or above the effective threshold.
    The post sign-in path (``blocking=False``) returns WARN at or above
    ``warn`` (or ``reject``), whatever the record state.
    """
    if occurrence_count < 0:
        raise ValueError('occurrence count cannot be negative')
    if occurrence_count == 0:
        return Decision.ACCEPT

    if blocking:
        if occurrence_count >= effective_threshold(is_existing_record, thresholds):
            return Decision.REJECT
        return Decision.ACCEPT

    if occurrence_count >= thresholds.warn_or_reject:
        return Decision.WARN
    return Decision.ACCEPT
