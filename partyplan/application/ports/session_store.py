from abc import ABC, abstractmethod
from typing import Any


class SessionStorePort(ABC):
    @abstractmethod
    def get(self, session_id: str, key: str) -> Any | None:
        raise NotImplementedError

    @abstractmethod
    def set(self, session_id: str, key: str, value: Any) -> None:
        raise NotImplementedError

    @abstractmethod
    def delete(self, session_id: str, key: str) -> None:
        raise NotImplementedError
