from urllib.parse import urlparse

from app.core.constants import RoleEnum
from app.models.certificate import Certificate
from tests.helpers.senders import correct_answers


def pass_test(client, headers, test):
    response = client.post(f"/tests/{test.id}/attempts", json=correct_answers(test), headers=headers)
    assert response.status_code == 200
    return response.json()["data"]


def fail_test(client, headers, test):
    response = client.post(f"/tests/{test.id}/attempts", json=correct_answers(test, count=0), headers=headers)
    assert response.status_code == 200
    return response.json()["data"]


def certificate_for(db_session, attempt_id):
    return db_session.query(Certificate).filter(Certificate.test_attempt_id == attempt_id).one()


def test_get_my_certificates(client, enrolled_student, auth_headers, course_test, course):
    headers = auth_headers(enrolled_student)
    result = pass_test(client, headers, course_test)

    response = client.get("/certificates/me", headers=headers)

    assert response.status_code == 200
    data = response.json()["data"]
    assert len(data) == 1
    assert data[0]["certificate_number"] == result["certificate_number"]
    assert data[0]["course_title"] == course.title
    assert data[0]["user_name"] == enrolled_student.full_name


def test_get_certificates_for_course(client, enrolled_student, auth_headers, course_test, course):
    headers = auth_headers(enrolled_student)
    pass_test(client, headers, course_test)

    assert len(client.get(f"/certificates/course/{course.id}", headers=headers).json()["data"]) == 1
    assert client.get("/certificates/course/9999", headers=headers).json()["data"] == []


def test_certificate_stats(client, enrolled_student, auth_headers, course_test):
    headers = auth_headers(enrolled_student)
    empty = client.get("/certificates/stats", headers=headers).json()["data"]
    assert empty == {"total_certificates": 0, "xp_points": 0, "badges_earned": 0}

    pass_test(client, headers, course_test)
    stats = client.get("/certificates/stats", headers=headers).json()["data"]
    assert stats == {"total_certificates": 1, "xp_points": 250, "badges_earned": 1}


def test_certificate_detail_and_download(client, db_session, enrolled_student, auth_headers, course_test):
    headers = auth_headers(enrolled_student)
    result = pass_test(client, headers, course_test)
    certificate = certificate_for(db_session, result["attempt_id"])

    detail = client.get(f"/certificates/{certificate.id}", headers=headers)
    assert detail.status_code == 200
    assert detail.json()["data"]["download_url"].endswith(f"/certificates/number/{certificate.certificate_number}/download")

    download = client.get(f"/certificates/{certificate.id}/download", headers=headers)
    assert download.status_code == 200
    assert download.json()["data"]["score"] == 100


def test_certificate_access_is_limited_to_owner_and_admin(
    client, db_session, user_factory, enrolled_student, auth_headers, course_test
):
    result = pass_test(client, auth_headers(enrolled_student), course_test)
    certificate = certificate_for(db_session, result["attempt_id"])

    stranger = user_factory()
    admin = user_factory(role=RoleEnum.ADMIN)

    assert client.get(f"/certificates/{certificate.id}", headers=auth_headers(stranger)).status_code == 403
    assert client.get(f"/certificates/{certificate.id}", headers=auth_headers(admin)).status_code == 200


def test_stored_download_url_resolves(client, db_session, user_factory, enrolled_student, auth_headers, course_test, sender):
    headers = auth_headers(enrolled_student)
    result = pass_test(client, headers, course_test)
    download_url = client.get("/certificates/me", headers=headers).json()["data"][0]["download_url"]
    path = urlparse(download_url).path

    response = client.get(path, headers=headers)

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["certificate_number"] == result["certificate_number"]
    assert data["score"] == 100
    assert any(download_url in m.html_body for m in sender.to(enrolled_student.email))
    assert client.get(path, headers=auth_headers(user_factory())).status_code == 403
    assert client.get("/certificates/number/PC-20260101-DEADBEEF/download", headers=headers).status_code == 404


def test_unknown_certificate_returns_404(client, student, auth_headers):
    response = client.get("/certificates/9999", headers=auth_headers(student))
    assert response.status_code == 404


def test_verify_is_public(client, enrolled_student, auth_headers, course_test, course):
    result = pass_test(client, auth_headers(enrolled_student), course_test)

    response = client.get(f"/certificates/verify/{result['certificate_number']}")

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["valid"] is True
    assert data["user_name"] == enrolled_student.full_name
    assert data["course_title"] == course.title
    assert data["score"] == 100


def test_verify_unknown_number(client):
    response = client.get("/certificates/verify/PC-20260101-DEADBEEF")

    assert response.status_code == 404
    assert response.json()["data"]["valid"] is False


def test_generate_returns_existing_certificate(client, enrolled_student, auth_headers, course_test, sender):
    headers = auth_headers(enrolled_student)
    result = pass_test(client, headers, course_test)
    sent_before = len(sender.sent)

    response = client.post("/certificates/generate", json={"test_attempt_id": result["attempt_id"]}, headers=headers)

    assert response.status_code == 200
    assert response.json()["data"]["certificate_number"] == result["certificate_number"]
    assert len(sender.sent) == sent_before


def test_generate_creates_missing_certificate(client, db_session, enrolled_student, auth_headers, course_test, sender):
    headers = auth_headers(enrolled_student)
    result = pass_test(client, headers, course_test)
    db_session.delete(certificate_for(db_session, result["attempt_id"]))
    db_session.commit()
    sender.sent.clear()

    response = client.post(
        "/certificates/generate",
        json={"test_attempt_id": result["attempt_id"], "send_email": True},
        headers=headers,
    )

    assert response.status_code == 201
    data = response.json()["data"]
    assert data["certificate_number"] != result["certificate_number"]
    assert data["is_emailed"] is True
    assert len(sender.to(enrolled_student.email)) == 1


def test_generate_for_failed_attempt(client, enrolled_student, auth_headers, course_test):
    headers = auth_headers(enrolled_student)
    result = fail_test(client, headers, course_test)

    response = client.post("/certificates/generate", json={"test_attempt_id": result["attempt_id"]}, headers=headers)

    assert response.status_code == 400


def test_generate_for_foreign_attempt(client, user_factory, enrolled_student, auth_headers, course_test):
    result = pass_test(client, auth_headers(enrolled_student), course_test)
    stranger = user_factory()

    response = client.post(
        "/certificates/generate", json={"test_attempt_id": result["attempt_id"]}, headers=auth_headers(stranger)
    )

    assert response.status_code == 403


def test_generate_for_unknown_attempt(client, student, auth_headers):
    response = client.post("/certificates/generate", json={"test_attempt_id": 9999}, headers=auth_headers(student))
    assert response.status_code == 404


def test_resend_certificate_email(client, db_session, enrolled_student, auth_headers, course_test, sender):
    headers = auth_headers(enrolled_student)
    result = pass_test(client, headers, course_test)
    certificate = certificate_for(db_session, result["attempt_id"])
    sender.sent.clear()

    response = client.post(f"/certificates/{certificate.id}/email", headers=headers)

    assert response.status_code == 200
    assert response.json()["data"] == {"certificate_id": certificate.id, "delivered": True}
    assert len(sender.sent) == 1
