from __future__ import annotations

from abc import ABC, abstractmethod

from ..models import NotificationResult


class Notifier(ABC):
    name: str

    @abstractmethod
    def notify_updated(self, url: str) -> NotificationResult:
        raise NotImplementedError
