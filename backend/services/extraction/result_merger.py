"""
Merging and deduplication of task lists from several extraction passes.
"""
import logging
from datetime import datetime
from typing import Iterable, List, Sequence

from models.task_models import CandidateTask

logger = logging.getLogger(__name__)


class ResultMerger:
    """Combines extraction passes into one date-ordered task list.

    Tasks are identical when title and due date match exactly. Near
    duplicates ("Quiz 1" vs "quiz one") are kept apart, so a generic title
    that lands on the same fallback date twice collapses into one task.
    """

    def merge(self, passes: Sequence[Iterable[CandidateTask]]) -> List[CandidateTask]:
        """
        Merge passes in priority order.

        Args:
            passes: Task lists, highest priority first. The first occurrence
                of a (title, due_date) key wins.

        Returns:
            Deduplicated tasks sorted ascending by due date (stable)
        """
        seen = set()
        merged: List[CandidateTask] = []
        dropped = 0

        for tasks in passes:
            for task in tasks or []:
                key = task.dedup_key
                if key in seen:
                    dropped += 1
                    continue
                seen.add(key)
                merged.append(task)

        if dropped:
            logger.debug("Dropped %d duplicate tasks while merging %d passes", dropped, len(passes))
        return sorted(merged, key=self._sort_key)

    def _sort_key(self, task: CandidateTask):
        # Undated templates never reach the caller; keep them last if they do
        return (task.due_date is None, task.due_date or datetime.max)


# Global merger instance
result_merger = ResultMerger()
