"""
End-to-end: an admin builds a test, a respondent takes it, the results
view runs the analysis.
"""
from conftest import finish_submission, start_submission


async def test_take_a_test_end_to_end(client, admin_headers, db_session, stub_provider):
    response = await client.post(
        "/v1/admin/tests", json={"title": "T"}, headers=admin_headers
    )
    test_id = response.json()["id"]
    response = await client.post(
        f"/v1/admin/tests/{test_id}/questions",
        json={
            "text": "Pick one",
            "question_type": "multiple-choice",
            "options": [{"id": "a", "text": "A"}, {"id": "b", "text": "B"}],
        },
        headers=admin_headers,
    )
    question_id = response.json()["id"]

    started = await start_submission(client, test_id, full_name="Jane", email="jane@x.com")
    assert started["full_name"] == "Jane"
    assert started["email"] == "jane@x.com"

    finished = await finish_submission(
        client, test_id, started["id"], [{"question_id": question_id, "value": "a"}]
    )
    assert finished["submission"]["analysis_status"] == "pending_ai"
    assert finished["unanswered_count"] == 0

    response = await client.get(f"/v1/tests/{test_id}/results/{started['id']}")

    assert response.status_code == 200
    results = response.json()
    assert results["submission"]["analysis_status"] == "ai_completed"
    assert results["submission"]["psychological_traits"] == "calm"
    assert results["answers"][0]["display_value"] == "A"
    assert "Pick one" in stub_provider.calls[0]["responses"]

    response = await client.get(
        f"/v1/admin/submissions/{started['id']}", headers=admin_headers
    )
    assert response.json()["submission"]["analysis_status"] == "ai_completed"
