"""AI search orchestration."""

from .orchestrator import SearchOrchestrator, SearchOutcome, SearchState

__all__ = ["SearchOrchestrator", "SearchOutcome", "SearchState"]
