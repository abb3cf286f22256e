"""
Admin catalog management: questions within a test.
"""
import logging

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from psychevaluator.api.deps import get_catalog_repository
from psychevaluator.api.v1.admin.tests import get_test_or_404
from psychevaluator.core.db_error_handling import handle_db_error
from psychevaluator.core.error_responses import (
    ErrorMessages,
    raise_bad_request,
    raise_not_found,
)
from psychevaluator.core.question_rules import (
    QUESTION_FIELDS,
    QuestionRuleError,
    build_question_fields,
    merge_question_update,
)
from psychevaluator.models import Question, get_db
from psychevaluator.repositories import CatalogRepository
from psychevaluator.schemas import QuestionCreate, QuestionResponse, QuestionUpdate

router = APIRouter()
logger = logging.getLogger(__name__)


async def get_question_or_404(
    repo: CatalogRepository, test_id: str, question_id: str
) -> Question:
    """
    Fetch a question of the given test.

    Raises:
        HTTPException: 404 if the test or the question does not exist
    """
    await get_test_or_404(repo, test_id)
    question = await repo.get_question(test_id, question_id)
    if question is None:
        raise_not_found(ErrorMessages.QUESTION_NOT_FOUND)
    return question


@router.post(
    "/{test_id}/questions",
    response_model=QuestionResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_question(
    test_id: str,
    body: QuestionCreate,
    repo: CatalogRepository = Depends(get_catalog_repository),
    db: AsyncSession = Depends(get_db),
):
    """Append a question to a test."""
    test = await get_test_or_404(repo, test_id)
    fields = build_question_fields(body.model_dump())
    async with handle_db_error(db, "add question"):
        question = await repo.add_question(test, fields)
        logger.info(
            f"Added question {question.id} to test {test_id}",
            extra={"test_id": test_id},
        )
        return QuestionResponse.model_validate(question)


@router.patch("/{test_id}/questions/{question_id}", response_model=QuestionResponse)
async def update_question(
    test_id: str,
    question_id: str,
    body: QuestionUpdate,
    repo: CatalogRepository = Depends(get_catalog_repository),
    db: AsyncSession = Depends(get_db),
):
    """
    Update a question.

    Changing the type clears fields that don't belong to the new type.

    Raises:
        HTTPException: 400 if the merged question breaks the rules for its type
    """
    question = await get_question_or_404(repo, test_id, question_id)
    current = {name: getattr(question, name) for name in QUESTION_FIELDS}
    try:
        fields = merge_question_update(current, body.model_dump(exclude_unset=True))
    except QuestionRuleError as e:
        raise_bad_request(str(e))

    async with handle_db_error(db, "update question"):
        question = await repo.update_question(question, fields)
        return QuestionResponse.model_validate(question)


@router.delete(
    "/{test_id}/questions/{question_id}", status_code=status.HTTP_204_NO_CONTENT
)
async def delete_question(
    test_id: str,
    question_id: str,
    repo: CatalogRepository = Depends(get_catalog_repository),
    db: AsyncSession = Depends(get_db),
):
    question = await get_question_or_404(repo, test_id, question_id)
    async with handle_db_error(db, "delete question"):
        await repo.delete_question(question)
        return Response(status_code=status.HTTP_204_NO_CONTENT)
