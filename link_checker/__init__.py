"""
Link checker source package
"""
from .models import (
    LinkStatus, LinkRecord, ProbeOutcome, Classification,
    ScanState, ScanProgress, IngestSummary,
)
from .exceptions import LinkCheckerError, DuplicateURLError, LinkNotFoundError, FetchError
from .classifier import ClassifierConfig, classify
from .link_store import LinkStore
from .checker import Checker, HttpChecker, SimulatedChecker
from .remote_fetcher import RemoteFetcher
from .ingestion import IngestionPipeline
from .scan_coordinator import CancellationToken, ScanCoordinator, run_scan
from .status_tracker import StatusTracker, get_status_tracker
from .tui import ScanTUI

__all__ = [
    'LinkStatus',
    'LinkRecord',
    'ProbeOutcome',
    'Classification',
    'ScanState',
    'ScanProgress',
    'IngestSummary',
    'LinkCheckerError',
    'DuplicateURLError',
    'LinkNotFoundError',
    'FetchError',
    'ClassifierConfig',
    'classify',
    'LinkStore',
    'Checker',
    'HttpChecker',
    'SimulatedChecker',
    'RemoteFetcher',
    'IngestionPipeline',
    'CancellationToken',
    'ScanCoordinator',
    'run_scan',
    'StatusTracker',
    'get_status_tracker',
    'ScanTUI'
]
