"""
Submission repository.

State changes that can race (finishing, claiming the analysis step,
writing back its outcome) are conditional UPDATE statements: each one
names the state it expects, and the returned row count says whether this
caller won. Admin review edits are last-writer-wins.
"""
import logging
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from psychevaluator.core.datetime_utils import utc_now
from psychevaluator.models import AnalysisStatus, Test, TestSubmission

logger = logging.getLogger(__name__)


class SubmissionRepository:
    """Persistence for TestSubmission records."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, test_id: str, full_name: str, email: str) -> TestSubmission:
        """Create an answer-less submission at Start."""
        submission = TestSubmission(
            test_id=test_id,
            full_name=full_name,
            email=email,
            answers=[],
            time_taken=0,
            started_at=utc_now(),
            analysis_status=AnalysisStatus.PENDING_AI,
        )
        self.db.add(submission)
        await self.db.commit()
        await self.db.refresh(submission)
        return submission

    async def get(self, submission_id: str) -> Optional[TestSubmission]:
        result = await self.db.execute(
            select(TestSubmission)
            .where(TestSubmission.id == submission_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def list_with_titles(
        self,
        status: Optional[AnalysisStatus] = None,
        test_id: Optional[str] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> List[Tuple[TestSubmission, Optional[str]]]:
        """
        Submissions newest first, each paired with its test's title.

        The title is None when the test has since been deleted.
        """
        query = select(TestSubmission, Test.title).outerjoin(
            Test, Test.id == TestSubmission.test_id
        )
        if status is not None:
            query = query.where(TestSubmission.analysis_status == status)
        if test_id is not None:
            query = query.where(TestSubmission.test_id == test_id)
        query = (
            query.order_by(
                func.coalesce(
                    TestSubmission.submitted_at, TestSubmission.started_at
                ).desc()
            )
            .limit(limit)
            .offset(offset)
        )
        result = await self.db.execute(query)
        return [(row[0], row[1]) for row in result.all()]

    async def count_by_status(self) -> Dict[AnalysisStatus, int]:
        """Number of finished submissions in each status (zero-filled)."""
        result = await self.db.execute(
            select(TestSubmission.analysis_status, func.count(TestSubmission.id))
            .where(TestSubmission.submitted_at.is_not(None))
            .group_by(TestSubmission.analysis_status)
        )
        counts = {status: 0 for status in AnalysisStatus}
        for status, count in result.all():
            counts[AnalysisStatus(status)] = int(count)
        return counts

    async def count(self, finished_only: bool = False) -> int:
        query = select(func.count(TestSubmission.id))
        if finished_only:
            query = query.where(TestSubmission.submitted_at.is_not(None))
        return int(await self.db.scalar(query) or 0)

    async def finish(
        self,
        submission_id: str,
        answers: List[Dict[str, Any]],
        submitted_at: datetime,
        time_taken: int,
    ) -> bool:
        """
        Store the final answers once.

        Returns:
            False if the submission was already finished (or does not exist)
        """
        result = await self.db.execute(
            update(TestSubmission)
            .where(
                TestSubmission.id == submission_id,
                TestSubmission.submitted_at.is_(None),
            )
            .values(
                answers=answers,
                submitted_at=submitted_at,
                time_taken=time_taken,
                analysis_status=AnalysisStatus.PENDING_AI,
                updated_at=submitted_at,
            )
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()
        return result.rowcount == 1

    async def claim_for_analysis(
        self, submission_id: str, now: datetime, claim_timeout_seconds: int
    ) -> bool:
        """
        Take the right to run analysis for a finished pending_ai submission.

        A claim older than ``claim_timeout_seconds`` counts as abandoned and
        may be taken again.

        Returns:
            True if this caller holds the claim
        """
        stale_before = now - timedelta(seconds=claim_timeout_seconds)
        result = await self.db.execute(
            update(TestSubmission)
            .where(
                TestSubmission.id == submission_id,
                TestSubmission.analysis_status == AnalysisStatus.PENDING_AI,
                TestSubmission.submitted_at.is_not(None),
                or_(
                    TestSubmission.analysis_claimed_at.is_(None),
                    TestSubmission.analysis_claimed_at < stale_before,
                ),
            )
            .values(analysis_claimed_at=now)
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()
        return result.rowcount == 1

    async def record_analysis(
        self,
        submission_id: str,
        claimed_at: datetime,
        analysis_status: AnalysisStatus,
        psychological_traits: Optional[str],
        ai_error: Optional[str],
        ai_error_category: Optional[str],
    ) -> bool:
        """
        Write back an analysis outcome under the caller's claim.

        The write only lands while the submission is still pending_ai and
        still carries this caller's claim, so an admin status change or a
        newer claim made meanwhile is not overwritten.

        Returns:
            True if the outcome was stored
        """
        result = await self.db.execute(
            update(TestSubmission)
            .where(
                TestSubmission.id == submission_id,
                TestSubmission.analysis_status == AnalysisStatus.PENDING_AI,
                TestSubmission.analysis_claimed_at == claimed_at,
            )
            .values(
                analysis_status=analysis_status,
                psychological_traits=psychological_traits,
                ai_error=ai_error,
                ai_error_category=ai_error_category,
                updated_at=utc_now(),
            )
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()
        return result.rowcount == 1

    async def update_review(
        self,
        submission: TestSubmission,
        changes: Dict[str, Any],
    ) -> TestSubmission:
        """
        Apply an admin review (notes and/or status).

        Resetting to pending_ai clears the analysis claim, the trait text,
        and the AI error so the analysis step can run again.
        """
        if "manual_analysis_notes" in changes:
            submission.manual_analysis_notes = changes["manual_analysis_notes"]
        if "analysis_status" in changes:
            new_status = AnalysisStatus(changes["analysis_status"])
            submission.analysis_status = new_status
            if new_status == AnalysisStatus.PENDING_AI:
                submission.analysis_claimed_at = None
                submission.psychological_traits = None
                submission.ai_error = None
                submission.ai_error_category = None
        await self.db.commit()
        await self.db.refresh(submission)
        return submission
