"""
Repository interfaces - Define contracts for data access
"""
from abc import ABC, abstractmethod

from .models import SourceQuery, StoreResult


class IContentStore(ABC):
    """Read-only access to the notes, roadmaps and study_rooms tables"""

    @abstractmethod
    async def execute(self, query: SourceQuery) -> StoreResult:
        """
        Run a source query

        Returns:
            Rows inside the query's range window and the total matching count

        Raises:
            ContentStoreError: If the backing store reports a failure
        """
        pass
