from abc import ABC, abstractmethod
from typing import List, Optional

from core_domain.value_objects.search_engine import SearchEngineDefinition


class SearchEngineCatalogPort(ABC):
    """
    Port for the reference table of known search engines.
    """

    @abstractmethod
    def get_definitions(self) -> List[SearchEngineDefinition]:
        pass

    @abstractmethod
    def get_definition_by_host(self, host: str) -> Optional[SearchEngineDefinition]:
        pass
