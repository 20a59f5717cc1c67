from claypilot.config import ClayConfig
from claypilot.core.errors import AutomationError, ErrorKind
from claypilot.core.events import EventLog
from claypilot.core.retry import Backoff, RetryPolicy, retry
from claypilot.driver.facade import DriverFacade
from claypilot.session.store import SessionStore
from claypilot.selectors.prober import SelectorProber
from claypilot.workflows.context import WorkflowContext
from claypilot.workflows.manager import WORKFLOWS, WorkflowManager, WorkflowRunResult
from claypilot.workflows.types import EnrichmentType, PipelineConfig

__all__ = [
    "ClayConfig",
    "AutomationError",
    "ErrorKind",
    "EventLog",
    "Backoff",
    "RetryPolicy",
    "retry",
    "DriverFacade",
    "SessionStore",
    "SelectorProber",
    # Workflows
    "WORKFLOWS",
    "EnrichmentType",
    "PipelineConfig",
    "WorkflowContext",
    "WorkflowManager",
    "WorkflowRunResult",
]
