"""
Organization-wide overview of the objectives workers miss most often.
"""
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from compliance_training.core.config import settings
from compliance_training.core.analytics.aggregation import (
    rank_struggling_objectives,
    tally_objectives,
)
from compliance_training.core.analytics.schemas import StrugglingObjective
from compliance_training.core.analytics.store import PerformanceStore

logger = logging.getLogger(__name__)


class OrgOverviewSummarizer:
    """Ranks an organization's objectives by incorrect-answer rate."""

    def __init__(self, db: Session, limit: Optional[int] = None):
        self.store = PerformanceStore(db)
        self.limit = settings.TOP_STRUGGLING_LIMIT if limit is None else limit

    def summarize(self, organization_id: int) -> List[StrugglingObjective]:
        """
        Find the objectives the organization's workers struggle with most.

        Stops as soon as a stage comes back empty (no workers, no attempts
        or no answers) and returns an empty list.

        Args:
            organization_id: Organization ID

        Returns:
            At most `limit` objectives, highest incorrect percentage first

        Raises:
            StoreReadError: If the record store fails
        """
        workers = self.store.workers_in_organization(organization_id)
        if not workers:
            return []

        attempts = self.store.attempts_for_workers([int(w.id) for w in workers])  # type: ignore
        if not attempts:
            return []

        answers = self.store.answers_for_attempts([int(a.id) for a in attempts])  # type: ignore
        if not answers:
            return []

        tallies = tally_objectives(answers, {int(a.id): a for a in attempts})  # type: ignore
        ranked = rank_struggling_objectives(tallies.values(), self.limit)

        logger.info(
            f"Org {organization_id} overview: {len(tallies)} objectives from "
            f"{len(answers)} answers, returning {len(ranked)}"
        )
        return ranked
