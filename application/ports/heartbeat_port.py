from abc import ABC, abstractmethod


class HeartbeatPort(ABC):
    """
    Port for keeping an otherwise idle side connection (database) alive while
    the importer waits on the reporting API.
    """

    @abstractmethod
    def ping(self) -> None:
        pass
