"""Scan orchestration."""

from .orchestrator import ScanOrchestrator, print_scan_summary, split_budget

__all__ = ["ScanOrchestrator", "print_scan_summary", "split_budget"]
