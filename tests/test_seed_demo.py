from exam_runner.models import Question, Section
from exam_runner.section_tree import build_section_tree, flatten_sections
from exam_runner.sequencer import build_flat_question_list
from scripts.seed_demo import DEFAULT_PASSWORD, seed


def test_seed_is_repeatable(db_session) -> None:
    first = seed()
    second = seed()
    assert first == second


def test_seeded_demo_runs_in_depth_first_order(client, db_session) -> None:
    ids = seed()
    token = client.post(
        "/api/auth/login", json={"username": "student", "password": DEFAULT_PASSWORD}
    ).json()["access_token"]
    headers = {"Authorization": f"Bearer {token}"}

    raw = client.get(f"/api/tests/{ids['test_id']}/sections", headers=headers).json()
    sections = flatten_sections(build_section_tree(Section.from_payload(s) for s in raw))
    questions = {
        section.id: [
            Question.from_payload(q)
            for q in client.get(f"/api/sections/{section.id}/questions", headers=headers).json()
        ]
        for section in sections
    }
    flat = build_flat_question_list(sections, questions)

    assert [s.display_number for s in sections] == ["1", "2", "2.1"]
    assert [q.section_title for q in flat] == [
        "Introduction",
        "Introduction",
        "Picture description",
        "Details",
    ]
    assert [q.effective_speaking_time for q in flat] == [30, 30, 45, 60]
    assert flat[3].key_facts_minus_label == "Against"

    submission = client.post(
        "/api/submissions",
        json={"purchase_id": ids["purchase_id"], "test_id": ids["test_id"]},
        headers=headers,
    )
    assert submission.status_code == 201
    assert submission.json()["is_demo"] is True
