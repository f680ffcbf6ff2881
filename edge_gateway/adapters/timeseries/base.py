from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Sequence

from edge_gateway.schemas.health import DependencyStatus


class AbstractTimeSeriesWriter(ABC):
    """Interface for sinks that accept line-protocol records."""

    @abstractmethod
    async def write(self, lines: Sequence[str]) -> None:
        """Write line-protocol records in one batch.

        Args:
            lines: Rendered records, one per element.

        Raises:
            TimeSeriesWriteError: If the sink rejects the batch or is unreachable.
        """
        ...

    @abstractmethod
    async def check_health(self) -> DependencyStatus:
        """Probe the sink without raising."""
        ...

    async def aclose(self) -> None:
        """Release network resources held by the writer."""
        return None
