"""
Tests for the respondent flow: start, finish, and the results view.
"""
from unittest.mock import patch

from sqlalchemy.exc import ProgrammingError

from conftest import finish_submission, start_submission
from psychevaluator.analysis import AnalysisErrorCategory
from psychevaluator.core.error_responses import ErrorMessages
from psychevaluator.models import TestSubmission
from psychevaluator.repositories import SubmissionRepository


class TestStartSubmission:
    async def test_creates_pending_submission_without_answers(self, client, published_test):
        data = await start_submission(client, published_test.id)

        assert data["test_id"] == published_test.id
        assert data["full_name"] == "Jane Doe"
        assert data["email"] == "jane@example.com"
        assert data["answers"] == []
        assert data["time_taken"] == 0
        assert data["submitted_at"] is None
        assert data["analysis_status"] == "pending_ai"

    async def test_mixed_case_email_stored_as_entered(self, client, published_test):
        data = await start_submission(
            client, published_test.id, full_name="  Jane Doe ", email="Jane.Doe@Example.COM"
        )

        assert data["full_name"] == "  Jane Doe "
        assert data["email"] == "Jane.Doe@Example.COM"

    async def test_invalid_email_rejected(self, client, published_test):
        response = await client.post(
            f"/v1/tests/{published_test.id}/submissions",
            json={"full_name": "Jane", "email": "not-an-email"},
        )
        assert response.status_code == 422

    async def test_blank_name_rejected(self, client, published_test):
        response = await client.post(
            f"/v1/tests/{published_test.id}/submissions",
            json={"full_name": "   ", "email": "jane@example.com"},
        )
        assert response.status_code == 422

    async def test_unpublished_test_cannot_be_started(self, client, unpublished_test):
        response = await client.post(
            f"/v1/tests/{unpublished_test.id}/submissions",
            json={"full_name": "Jane", "email": "jane@example.com"},
        )
        assert response.status_code == 404

    async def test_admin_must_log_out_first(self, client, published_test, admin_headers):
        response = await client.post(
            f"/v1/tests/{published_test.id}/submissions",
            json={"full_name": "Jane", "email": "jane@example.com"},
            headers=admin_headers,
        )

        assert response.status_code == 403
        assert response.json()["detail"] == ErrorMessages.ADMIN_CANNOT_TAKE_TEST

    async def test_invalid_bearer_token_is_treated_as_respondent(self, client, published_test):
        response = await client.post(
            f"/v1/tests/{published_test.id}/submissions",
            json={"full_name": "Jane", "email": "jane@example.com"},
            headers={"Authorization": "Bearer not-a-token"},
        )
        assert response.status_code == 201

    async def test_access_policy_rejection_is_reported(self, client, published_test):
        error = ProgrammingError(
            "INSERT", {}, Exception("new row violates row-level security policy")
        )
        with patch.object(SubmissionRepository, "create", side_effect=error):
            response = await client.post(
                f"/v1/tests/{published_test.id}/submissions",
                json={"full_name": "Jane", "email": "jane@example.com"},
            )

        assert response.status_code == 403
        assert response.json()["detail"] == ErrorMessages.STORE_ACCESS_DENIED

    async def test_other_store_failure_is_generic(self, client, published_test):
        error = ProgrammingError("INSERT", {}, Exception("connection reset"))
        with patch.object(SubmissionRepository, "create", side_effect=error):
            response = await client.post(
                f"/v1/tests/{published_test.id}/submissions",
                json={"full_name": "Jane", "email": "jane@example.com"},
            )

        assert response.status_code == 500
        assert response.json()["detail"] == "Failed to start the test. Please try again later."


class TestFinishSubmission:
    async def test_finish_stores_answers_and_timing(self, client, published_test):
        started = await start_submission(client, published_test.id)
        mc, rating, _ = published_test.questions

        data = await finish_submission(
            client,
            published_test.id,
            started["id"],
            [
                {"question_id": mc.id, "value": "opt-a"},
                {"question_id": rating.id, "value": 4},
            ],
        )

        submission = data["submission"]
        assert submission["analysis_status"] == "pending_ai"
        assert submission["submitted_at"] is not None
        assert submission["time_taken"] >= 0
        assert submission["answers"] == [
            {"question_id": mc.id, "value": "opt-a"},
            {"question_id": rating.id, "value": 4},
        ]
        assert data["unanswered_count"] == 1

    async def test_blank_answer_counts_as_unanswered(self, client, published_test):
        started = await start_submission(client, published_test.id)
        open_ended = published_test.questions[2]

        data = await finish_submission(
            client,
            published_test.id,
            started["id"],
            [{"question_id": open_ended.id, "value": "  "}],
        )

        assert data["unanswered_count"] == 3

    async def test_second_finish_conflicts(self, client, published_test):
        started = await start_submission(client, published_test.id)
        await finish_submission(client, published_test.id, started["id"], [])

        response = await client.post(
            f"/v1/tests/{published_test.id}/submissions/{started['id']}/finish",
            json={"answers": []},
        )

        assert response.status_code == 409
        assert response.json()["detail"] == ErrorMessages.SUBMISSION_ALREADY_FINISHED

    async def test_unknown_question_rejected(self, client, published_test):
        started = await start_submission(client, published_test.id)

        response = await client.post(
            f"/v1/tests/{published_test.id}/submissions/{started['id']}/finish",
            json={"answers": [{"question_id": "nope", "value": "x"}]},
        )

        assert response.status_code == 400
        assert "nope" in response.json()["detail"]

    async def test_duplicate_answers_rejected(self, client, published_test):
        started = await start_submission(client, published_test.id)
        question_id = published_test.questions[0].id

        response = await client.post(
            f"/v1/tests/{published_test.id}/submissions/{started['id']}/finish",
            json={
                "answers": [
                    {"question_id": question_id, "value": "opt-a"},
                    {"question_id": question_id, "value": "opt-b"},
                ]
            },
        )

        assert response.status_code == 422

    async def test_submission_of_another_test_not_found(
        self, client, published_test, db_session
    ):
        other = await start_submission(client, published_test.id)

        response = await client.post(
            f"/v1/tests/some-other-test/submissions/{other['id']}/finish",
            json={"answers": []},
        )

        assert response.status_code == 404


class TestResultsView:
    async def test_first_view_runs_analysis_once(self, client, published_test, stub_provider):
        started = await start_submission(client, published_test.id)
        mc = published_test.questions[0]
        await finish_submission(
            client,
            published_test.id,
            started["id"],
            [{"question_id": mc.id, "value": "opt-b"}],
        )

        url = f"/v1/tests/{published_test.id}/results/{started['id']}"
        first = await client.get(url)
        second = await client.get(url)

        assert first.status_code == 200
        data = first.json()
        assert data["test"]["title"] == "Personality Basics"
        assert data["submission"]["analysis_status"] == "ai_completed"
        assert data["submission"]["psychological_traits"] == "calm"
        assert data["answers"] == [
            {
                "question_id": mc.id,
                "question_text": mc.text,
                "question_type": "multiple-choice",
                "value": "opt-b",
                "display_value": "Reading alone",
            }
        ]
        assert data["unanswered_count"] == 2

        assert second.json()["submission"]["psychological_traits"] == "calm"
        assert len(stub_provider.calls) == 1

    async def test_analysis_failure_goes_to_manual_review(
        self, client, published_test, stub_provider
    ):
        stub_provider.fail_with(
            AnalysisErrorCategory.TIMEOUT, ErrorMessages.ANALYSIS_TIMEOUT
        )
        started = await start_submission(client, published_test.id)
        await finish_submission(client, published_test.id, started["id"], [])

        response = await client.get(
            f"/v1/tests/{published_test.id}/results/{started['id']}"
        )

        submission = response.json()["submission"]
        assert submission["analysis_status"] == "ai_failed_pending_manual"
        assert submission["ai_error"] == ErrorMessages.ANALYSIS_TIMEOUT
        assert submission["ai_error_category"] == "timeout"

    async def test_unfinished_submission_is_not_analyzed(
        self, client, published_test, stub_provider
    ):
        started = await start_submission(client, published_test.id)

        response = await client.get(
            f"/v1/tests/{published_test.id}/results/{started['id']}"
        )

        assert response.status_code == 200
        assert response.json()["submission"]["analysis_status"] == "pending_ai"
        assert stub_provider.calls == []

    async def test_results_of_deleted_test_not_found(
        self, client, published_test, db_session, admin_headers
    ):
        started = await start_submission(client, published_test.id)
        await client.delete(f"/v1/admin/tests/{published_test.id}", headers=admin_headers)

        response = await client.get(
            f"/v1/tests/{published_test.id}/results/{started['id']}"
        )

        assert response.status_code == 404
        # The submission itself is kept
        stored = await db_session.get(TestSubmission, started["id"])
        assert stored is not None

    async def test_missing_submission(self, client, published_test):
        response = await client.get(f"/v1/tests/{published_test.id}/results/nope")
        assert response.status_code == 404
