import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import main
from app.core.config import settings
from app.core.constants import RoleEnum
from app.core.database import Base, get_db
from app.crud.course_test import course_test as crud_course_test
from app.models.chapter import Chapter
from app.models.course import Course
from app.models.course_enrollment import CourseEnrollment
from app.models.user import User
from app.schemas.course_test import CourseTestCreate
from app.utils import deps as deps_utils
from tests.helpers.senders import RecordingSender
from tests.helpers.tokens import create_access_token

test_db_url = settings.TEST_DATABASE_URL or "sqlite://"

@pytest.fixture(scope="function")
def database_engine():
    if test_db_url.startswith("sqlite"):
        engine = create_engine(test_db_url, connect_args={"check_same_thread": False}, poolclass=StaticPool)
    else:
        engine = create_engine(test_db_url)
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()

@pytest.fixture(scope="function")
def db_session(database_engine):
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=database_engine)
    db = SessionLocal()
    try:
        yield db
    finally:
        db.rollback()
        db.close()

@pytest.fixture
def sender():
    return RecordingSender()

@pytest.fixture(scope="function")
def client(db_session, sender):
    main.app.dependency_overrides[get_db] = lambda: db_session
    main.app.dependency_overrides[deps_utils.get_notification_sender] = lambda: sender
    with TestClient(main.app) as test_client:
        yield test_client
    main.app.dependency_overrides.clear()

@pytest.fixture
def user_factory(db_session):
    counter = {"n": 0}

    def _user_factory(role=RoleEnum.STUDENT, full_name=None, is_active=True):
        counter["n"] += 1
        user = User(
            full_name=full_name or f"Test {role.value.title()} {counter['n']}",
            email=f"{role.value}-{counter['n']}@test.com",
            role=role,
            is_active=is_active,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user
    return _user_factory

@pytest.fixture
def token_for():
    def _token_for(user):
        return create_access_token({"user_id": user.id}, email=user.email)
    return _token_for

@pytest.fixture
def auth_headers(token_for):
    def _auth_headers(user):
        return {"Authorization": f"Bearer {token_for(user)}"}
    return _auth_headers

@pytest.fixture
def instructor(user_factory):
    return user_factory(role=RoleEnum.INSTRUCTOR, full_name="Ada Instructor")

@pytest.fixture
def student(user_factory):
    return user_factory(role=RoleEnum.STUDENT, full_name="Sam Student")

@pytest.fixture
def course(db_session, instructor):
    course = Course(title="Intro to Pulse", description="Basics", owner_id=instructor.id)
    db_session.add(course)
    db_session.commit()
    db_session.refresh(course)
    return course

@pytest.fixture
def test_factory(db_session):
    def _test_factory(course, num_questions=4, passing_score=70, title="Module Test"):
        test_in = CourseTestCreate(
            title=title,
            passing_score=passing_score,
            questions=[
                {
                    "question_text": f"Question {i + 1}?",
                    "options": [
                        {"option_text": "Right", "is_correct": True},
                        {"option_text": "Wrong", "is_correct": False},
                    ],
                }
                for i in range(num_questions)
            ],
        )
        return crud_course_test.create_with_questions(db_session, obj_in=test_in, course_id=course.id)
    return _test_factory

@pytest.fixture
def course_test(test_factory, course):
    return test_factory(course)

@pytest.fixture
def enroll(db_session):
    def _enroll(user, course):
        enrollment = CourseEnrollment(user_id=user.id, course_id=course.id)
        db_session.add(enrollment)
        db_session.commit()
        db_session.refresh(enrollment)
        return enrollment
    return _enroll

@pytest.fixture
def enrolled_student(student, course, enroll):
    enroll(student, course)
    return student

@pytest.fixture
def chapter_factory(db_session):
    def _chapter_factory(course, title="Chapter", order=None):
        chapter = Chapter(
            course_id=course.id,
            title=title,
            content=f"{title} content",
            order=order if order is not None else len(course.chapters) + 1,
        )
        db_session.add(chapter)
        db_session.commit()
        db_session.refresh(chapter)
        db_session.refresh(course)
        return chapter
    return _chapter_factory
