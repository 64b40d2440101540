from abc import ABC, abstractmethod
from typing import Any, Dict, Optional


class ReportingClientPort(ABC):
    """
    Port for the Google Analytics Reporting API (v4 batchGet).
    """

    @abstractmethod
    def execute_report(self, request: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """
        Executes a single reportRequest and returns the raw batchGet response
        ({"reports": [...]}). May return None/empty when the transport hands back
        nothing. Raises ReportingApiError on API errors.
        """
        pass
