"""
Maps a probe outcome to a link status.
"""
from dataclasses import dataclass, field
from typing import FrozenSet

from .models import Classification, LinkStatus, ProbeOutcome


@dataclass(frozen=True)
class ClassifierConfig:
    """Thresholds and status code sets used by classify()"""
    probe_timeout_ms: int = 5000
    slow_threshold_ms: int = 1000
    blocked_codes: FrozenSet[int] = field(default_factory=lambda: frozenset({401, 403, 407, 451}))
    failed_codes: FrozenSet[int] = field(default_factory=lambda: frozenset({500, 502, 503, 504}))
    redirect_codes: FrozenSet[int] = field(default_factory=lambda: frozenset({301, 302, 303, 307, 308}))


DEFAULT_CLASSIFIER_CONFIG = ClassifierConfig()


def classify(outcome: ProbeOutcome, config: ClassifierConfig = DEFAULT_CLASSIFIER_CONFIG) -> Classification:
    """Classify a single probe outcome.

    Checks run in a fixed order: a timeout wins over everything, then
    blocked codes, failed codes, unfollowed redirects, slow responses and
    finally plain success. Anything left over is a failure.
    """
    if outcome.timed_out:
        return Classification(LinkStatus.TIMEOUT, config.probe_timeout_ms, 0)

    code = outcome.http_code
    latency = outcome.latency_ms

    if code in config.blocked_codes:
        return Classification(LinkStatus.BLOCKED, latency, code)
    if code in config.failed_codes:
        return Classification(LinkStatus.FAILED, latency, code)

    if outcome.succeeded:
        if code in config.redirect_codes:
            return Classification(LinkStatus.REDIRECT, latency, code)
        if latency > config.slow_threshold_ms:
            return Classification(LinkStatus.SLOW, latency, code)
        return Classification(LinkStatus.WORKING, latency, code)

    return Classification(LinkStatus.FAILED, latency, code)
