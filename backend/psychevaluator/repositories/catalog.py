"""
Catalog repository: tests and their ordered questions.

Every write commits its own transaction. Callers wrap calls in
``handle_db_error`` to turn store failures into HTTP errors.
"""
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from psychevaluator.models import Question, Test

logger = logging.getLogger(__name__)


class CatalogRepository:
    """Persistence for Test and Question records."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_tests(self, published_only: bool = False) -> List[Test]:
        """Tests ordered newest first; questions are loaded with each test."""
        query = select(Test).order_by(Test.created_at.desc(), Test.title)
        if published_only:
            query = query.where(Test.is_published.is_(True))
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def get_test(
        self, test_id: str, published_only: bool = False
    ) -> Optional[Test]:
        query = select(Test).where(Test.id == test_id)
        if published_only:
            query = query.where(Test.is_published.is_(True))
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def create_test(
        self, title: str, description: str = "", is_published: bool = True
    ) -> Test:
        test = Test(title=title, description=description, is_published=is_published)
        self.db.add(test)
        await self.db.commit()
        await self.db.refresh(test)
        logger.info(f"Created test {test.id}", extra={"test_id": test.id})
        return test

    async def update_test(self, test: Test, changes: Dict[str, Any]) -> Test:
        """Apply field changes to a test. Unknown keys are ignored."""
        for field in ("title", "description", "is_published"):
            if field in changes:
                setattr(test, field, changes[field])
        await self.db.commit()
        await self.db.refresh(test)
        return test

    async def delete_test(self, test: Test) -> None:
        """Delete a test and, through the cascade, all of its questions."""
        test_id = test.id
        await self.db.delete(test)
        await self.db.commit()
        logger.info(f"Deleted test {test_id}", extra={"test_id": test_id})

    async def count_tests(self, published_only: bool = False) -> int:
        query = select(func.count(Test.id))
        if published_only:
            query = query.where(Test.is_published.is_(True))
        return int(await self.db.scalar(query) or 0)

    async def get_question(self, test_id: str, question_id: str) -> Optional[Question]:
        result = await self.db.execute(
            select(Question).where(
                Question.id == question_id, Question.test_id == test_id
            )
        )
        return result.scalar_one_or_none()

    async def add_question(self, test: Test, fields: Dict[str, Any]) -> Question:
        """Append a question after the test's current last question."""
        last_position = await self.db.scalar(
            select(func.max(Question.position)).where(Question.test_id == test.id)
        )
        question = Question(
            test_id=test.id,
            position=(last_position + 1) if last_position is not None else 0,
            **fields,
        )
        self.db.add(question)
        await self.db.commit()
        await self.db.refresh(question)
        # The test's selectin-loaded question list is now stale
        await self.db.refresh(test, attribute_names=["questions"])
        return question

    async def update_question(
        self, question: Question, fields: Dict[str, Any]
    ) -> Question:
        """Replace a question's type-dependent fields with a validated set."""
        for name, value in fields.items():
            setattr(question, name, value)
        await self.db.commit()
        await self.db.refresh(question)
        return question

    async def delete_question(self, question: Question) -> None:
        await self.db.delete(question)
        await self.db.commit()
