"""Shared base for the scout (discovery) and analyst (scoring) agents."""

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Callable, Optional

if TYPE_CHECKING:
    from ..services.gemini_service import GeminiService

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str], None]


class BaseAgent(ABC):
    """
    Common plumbing for prospecting agents.

    Live agents are built around a GeminiService; mock agents leave it unset
    and answer from sample data. Progress goes to the log under the agent's
    role and, when given, to an `on_progress` callback.
    """

    #: Label used in progress log lines
    role: str = "Agent"

    def __init__(
        self,
        gemini_service: Optional["GeminiService"] = None,
        on_progress: Optional[ProgressCallback] = None
    ):
        """
        Args:
            gemini_service: Service used by live agents; None for mock agents
            on_progress: Optional callback for progress messages
        """
        self.gemini = gemini_service
        self.on_progress = on_progress

    @property
    def is_live(self) -> bool:
        return self.gemini is not None

    def require_gemini(self) -> "GeminiService":
        """Return the Gemini service, or raise if this agent was built without one."""
        if self.gemini is None:
            raise ValueError(f"{type(self).__name__} needs a GeminiService")
        return self.gemini

    def report_progress(self, message: str) -> None:
        logger.info("[%s] %s", self.role, message)
        if self.on_progress:
            self.on_progress(message)

    @abstractmethod
    def execute(self, **kwargs) -> Any:
        """Run the agent's task: search results for a scout, an insight for an analyst."""
