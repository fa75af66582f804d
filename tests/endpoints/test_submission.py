import re
from datetime import timedelta

from app.core.constants import RoleEnum
from app.models.attempt import TestAttempt
from app.models.certificate import Certificate
from app.models.course_enrollment import CourseEnrollment
from app.models.user_answer import UserAnswer
from app.utils import deps as deps_utils
from tests.helpers.senders import FailingSender, RejectingSender, correct_answers
from tests.helpers.tokens import create_access_token

import main


def submit(client, headers, test, payload):
    return client.post(f"/tests/{test.id}/attempts", json=payload, headers=headers)


def test_submit_requires_authentication(client, course_test):
    response = client.post(f"/tests/{course_test.id}/attempts", json={"answers": []})
    assert response.status_code == 401
    assert response.json()["error"]["code"] == "UNAUTHORIZED"


def test_submit_with_invalid_token_is_rejected(client, course_test):
    response = client.post(
        f"/tests/{course_test.id}/attempts",
        json={"answers": []},
        headers={"Authorization": "Bearer not-a-jwt"},
    )
    assert response.status_code == 401


def test_inactive_user_is_rejected(client, user_factory, auth_headers, course_test):
    inactive = user_factory(is_active=False)
    response = submit(client, auth_headers(inactive), course_test, {"answers": []})
    assert response.status_code == 401


def test_expired_token_is_rejected(client, enrolled_student, course_test):
    token = create_access_token({"user_id": enrolled_student.id}, email=enrolled_student.email,
                                expires_delta=timedelta(minutes=-1))
    response = submit(client, {"Authorization": f"Bearer {token}"}, course_test, correct_answers(course_test))

    assert response.status_code == 401
    assert response.json()["error"]["message"] == "Could not validate credentials"


def test_token_with_email_subject_only_is_accepted(client, enrolled_student, course_test):
    token = create_access_token({}, email=enrolled_student.email)
    response = submit(client, {"Authorization": f"Bearer {token}"}, course_test, correct_answers(course_test))

    assert response.status_code == 200


def test_submit_unknown_test_returns_404(client, student, auth_headers):
    response = client.post("/tests/9999/attempts", json={"answers": []}, headers=auth_headers(student))
    assert response.status_code == 404
    assert response.json()["error"]["message"] == "Test not found."


def test_submit_without_enrollment_is_forbidden(client, db_session, student, auth_headers, course_test, sender):
    response = submit(client, auth_headers(student), course_test, correct_answers(course_test))

    assert response.status_code == 403
    assert response.json()["error"]["code"] == "FORBIDDEN"
    assert db_session.query(TestAttempt).count() == 0
    assert sender.sent == []


def test_duplicate_question_ids_are_rejected(client, db_session, enrolled_student, auth_headers, course_test):
    question = course_test.questions[0]
    payload = {"answers": [
        {"question_id": question.id, "selected_option_id": question.options[0].id},
        {"question_id": question.id, "selected_option_id": question.options[1].id},
    ]}
    response = submit(client, auth_headers(enrolled_student), course_test, payload)

    assert response.status_code == 422
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"
    assert db_session.query(TestAttempt).count() == 0


def test_malformed_payload_is_rejected(client, enrolled_student, auth_headers, course_test):
    response = submit(client, auth_headers(enrolled_student), course_test, {"answers": [{"question_id": "abc"}]})
    assert response.status_code == 422


def test_storage_failure_returns_500_without_partial_rows(
    client, db_session, database_engine, enrolled_student, auth_headers, course_test, sender
):
    UserAnswer.__table__.drop(bind=database_engine)

    response = submit(client, auth_headers(enrolled_student), course_test, correct_answers(course_test))

    assert response.status_code == 500
    error = response.json()["error"]
    assert error["code"] == "STORAGE_ERROR"
    assert error["message"] == "An error occurred while saving your data."
    assert "user_answers" not in response.text
    assert db_session.query(TestAttempt).count() == 0
    assert db_session.query(Certificate).count() == 0
    assert sender.sent == []


def test_passing_submission_records_attempt_and_issues_certificate(
    client, db_session, enrolled_student, instructor, auth_headers, course_test, sender
):
    response = submit(client, auth_headers(enrolled_student), course_test, correct_answers(course_test))

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["score"] == 100
    assert data["is_passed"] is True
    assert data["correct_answers"] == 4
    assert data["total_questions"] == 4
    assert data["message"] == "Congratulations! You passed the test with a score of 100%."
    assert data["certificate_number"].startswith("PC-")

    attempt = db_session.get(TestAttempt, data["attempt_id"])
    assert attempt is not None
    assert db_session.query(UserAnswer).filter(UserAnswer.test_attempt_id == attempt.id).count() == 4

    certificate = db_session.query(Certificate).filter(Certificate.test_attempt_id == attempt.id).one()
    assert certificate.certificate_number == data["certificate_number"]
    assert certificate.score == 100
    assert certificate.is_emailed is True

    enrollment = db_session.query(CourseEnrollment).filter(CourseEnrollment.user_id == enrolled_student.id).one()
    db_session.refresh(enrollment)
    assert enrollment.is_completed is True

    learner_mail = sender.to(enrolled_student.email)
    assert len(learner_mail) == 2
    assert sender.to(instructor.email) == []


def test_failing_submission_alerts_owner_and_issues_nothing(
    client, db_session, enrolled_student, instructor, auth_headers, course_test, sender
):
    payload = correct_answers(course_test, count=1)
    response = submit(client, auth_headers(enrolled_student), course_test, payload)

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["score"] == 25
    assert data["is_passed"] is False
    assert data["certificate_number"] is None
    assert data["message"] == "You scored 25% but didn't pass. The passing score is 70%."

    assert db_session.query(Certificate).count() == 0
    assert len(sender.to(enrolled_student.email)) == 1
    assert len(sender.to(instructor.email)) == 1


def test_low_passing_score_still_alerts_owner(
    client, enrolled_student, instructor, auth_headers, test_factory, course, sender
):
    test = test_factory(course, num_questions=4, passing_score=50)
    response = submit(client, auth_headers(enrolled_student), test, correct_answers(test, count=2))

    data = response.json()["data"]
    assert data["score"] == 50
    assert data["is_passed"] is True
    assert len(sender.to(instructor.email)) == 1


def test_three_of_four_against_seventy_six_percent(client, enrolled_student, auth_headers, test_factory, course):
    test = test_factory(course, num_questions=4, passing_score=76)
    response = submit(client, auth_headers(enrolled_student), test, correct_answers(test, count=3))

    data = response.json()["data"]
    assert data["score"] == 75
    assert data["correct_answers"] == 3
    assert data["is_passed"] is False


def test_unknown_question_ids_are_dropped(client, db_session, enrolled_student, auth_headers, course_test):
    payload = correct_answers(course_test)
    payload["answers"].append({"question_id": 987654, "selected_option_id": 1})
    response = submit(client, auth_headers(enrolled_student), course_test, payload)

    assert response.status_code == 200
    attempt_id = response.json()["data"]["attempt_id"]
    assert db_session.query(UserAnswer).filter(UserAnswer.test_attempt_id == attempt_id).count() == 4


def test_resubmission_keeps_history_and_one_certificate_per_attempt(
    client, db_session, enrolled_student, auth_headers, course_test
):
    headers = auth_headers(enrolled_student)
    first = submit(client, headers, course_test, correct_answers(course_test, count=1))
    second = submit(client, headers, course_test, correct_answers(course_test))

    assert first.json()["data"]["is_passed"] is False
    assert second.json()["data"]["is_passed"] is True
    assert db_session.query(TestAttempt).count() == 2
    assert db_session.query(Certificate).count() == 1
    assert db_session.query(Certificate).one().test_attempt_id == second.json()["data"]["attempt_id"]

    history = client.get(f"/tests/{course_test.id}/attempts", headers=headers)
    assert history.status_code == 200
    attempt_ids = [a["id"] for a in history.json()["data"]]
    assert set(attempt_ids) == {first.json()["data"]["attempt_id"], second.json()["data"]["attempt_id"]}


def test_notification_failure_does_not_affect_result(
    client, db_session, enrolled_student, auth_headers, course_test
):
    main.app.dependency_overrides[deps_utils.get_notification_sender] = lambda: FailingSender()

    response = submit(client, auth_headers(enrolled_student), course_test, correct_answers(course_test))

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["is_passed"] is True
    assert data["certificate_number"] is not None
    certificate = db_session.query(Certificate).one()
    assert certificate.is_emailed is False
    assert db_session.query(TestAttempt).count() == 1


def test_rejected_delivery_leaves_certificate_unemailed(
    client, db_session, enrolled_student, auth_headers, course_test
):
    main.app.dependency_overrides[deps_utils.get_notification_sender] = lambda: RejectingSender()

    response = submit(client, auth_headers(enrolled_student), course_test, correct_answers(course_test))

    assert response.status_code == 200
    assert db_session.query(Certificate).one().is_emailed is False


def test_certificate_failure_does_not_affect_result(
    client, db_session, monkeypatch, enrolled_student, auth_headers, course_test, sender
):
    from app.services import test_submission

    def broken_issue(db, attempt):
        raise RuntimeError("certificate store offline")

    monkeypatch.setattr(test_submission.certificate_service, "issue_for_attempt", broken_issue)

    response = submit(client, auth_headers(enrolled_student), course_test, correct_answers(course_test))

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["is_passed"] is True
    assert data["certificate_number"] is None
    assert db_session.query(TestAttempt).count() == 1
    assert db_session.query(Certificate).count() == 0
    # outcome notification still goes out
    assert len(sender.to(enrolled_student.email)) == 1


def test_instructor_can_submit_when_enrolled(client, user_factory, course, enroll, auth_headers, course_test):
    other_instructor = user_factory(role=RoleEnum.INSTRUCTOR)
    enroll(other_instructor, course)
    response = submit(client, auth_headers(other_instructor), course_test, correct_answers(course_test))
    assert response.status_code == 200


def test_three_of_four_passes_at_seventy_with_certificate(
    client, db_session, enrolled_student, auth_headers, course_test
):
    response = submit(client, auth_headers(enrolled_student), course_test, correct_answers(course_test, count=3))

    data = response.json()["data"]
    assert data["score"] == 75
    assert data["is_passed"] is True
    assert re.match(r"^PC-\d{8}-[A-Z0-9]{8}$", data["certificate_number"])
    assert db_session.query(Certificate).filter(Certificate.test_attempt_id == data["attempt_id"]).count() == 1


def test_zero_question_test_scores_zero_and_issues_nothing(
    client, db_session, enrolled_student, auth_headers, test_factory, course
):
    empty = test_factory(course, num_questions=0, passing_score=70)

    response = submit(client, auth_headers(enrolled_student), empty, {"answers": []})

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["score"] == 0
    assert data["total_questions"] == 0
    assert data["is_passed"] is False
    assert db_session.query(Certificate).count() == 0
