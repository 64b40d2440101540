from abc import ABC, abstractmethod
from typing import Dict


class SiteConfigPort(ABC):
    """
    Port for reading the local site configuration relevant to an import.
    """

    @abstractmethod
    def is_ecommerce_enabled(self, site_id: int) -> bool:
        pass

    @abstractmethod
    def get_goals_mapping(self, site_id: int) -> Dict[int, int]:
        """Returns {local goal id: GA goal id} for the site."""
        pass
