"""
Read-only admin views for the catalog and submissions.
"""

# mypy: disable-error-code="list-item,arg-type,dict-item"
from sqladmin import ModelView

from psychevaluator.models import Question, Test, TestSubmission


class ReadOnlyModelView(ModelView):
    """
    Base class for read-only admin views.

    Disables all create, edit, and delete operations.
    """

    can_create = False
    can_edit = False
    can_delete = False
    can_export = True
    page_size = 50
    page_size_options = [25, 50, 100, 200]


class TestAdmin(ReadOnlyModelView, model=Test):
    name = "Test"
    name_plural = "Tests"
    icon = "fa-solid fa-clipboard-list"

    column_list = [
        Test.id,
        Test.title,
        Test.is_published,
        Test.created_at,
        Test.updated_at,
    ]
    column_details_list = [
        Test.id,
        Test.title,
        Test.description,
        Test.is_published,
        Test.created_at,
        Test.updated_at,
    ]
    column_searchable_list = [Test.title]
    column_sortable_list = [Test.title, Test.created_at, Test.is_published]
    column_default_sort = [(Test.created_at, True)]


class QuestionAdmin(ReadOnlyModelView, model=Question):
    name = "Question"
    name_plural = "Questions"
    icon = "fa-solid fa-question"

    column_list = [
        Question.id,
        Question.test_id,
        Question.position,
        Question.question_type,
        Question.text,
    ]
    column_details_list = [
        Question.id,
        Question.test_id,
        Question.position,
        Question.question_type,
        Question.text,
        Question.options,
        Question.scale_min,
        Question.scale_max,
        Question.min_label,
        Question.max_label,
        Question.created_at,
    ]
    column_searchable_list = [Question.text]
    column_sortable_list = [Question.test_id, Question.position]

    # Truncate long question text in the list view
    column_formatters = {
        Question.text: lambda m, a: (
            (m.text[:80] + "...") if m.text and len(m.text) > 80 else m.text
        )
    }


class TestSubmissionAdmin(ReadOnlyModelView, model=TestSubmission):
    name = "Submission"
    name_plural = "Submissions"
    icon = "fa-solid fa-inbox"

    column_list = [
        TestSubmission.id,
        TestSubmission.test_id,
        TestSubmission.full_name,
        TestSubmission.email,
        TestSubmission.submitted_at,
        TestSubmission.analysis_status,
    ]
    column_details_list = [
        TestSubmission.id,
        TestSubmission.test_id,
        TestSubmission.full_name,
        TestSubmission.email,
        TestSubmission.answers,
        TestSubmission.time_taken,
        TestSubmission.started_at,
        TestSubmission.submitted_at,
        TestSubmission.analysis_status,
        TestSubmission.psychological_traits,
        TestSubmission.ai_error,
        TestSubmission.ai_error_category,
        TestSubmission.manual_analysis_notes,
    ]
    column_searchable_list = [TestSubmission.full_name, TestSubmission.email]
    column_sortable_list = [
        TestSubmission.started_at,
        TestSubmission.submitted_at,
        TestSubmission.analysis_status,
    ]
    column_default_sort = [(TestSubmission.started_at, True)]
