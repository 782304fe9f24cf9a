"""Bus operations: discovery sweep and address reassignment."""

from .scan import SCAN_ORDER, ScanListener, ScanOrchestrator, ScanOutcome, ScanState
