# tests/conftest.py
from datetime import date, datetime, timedelta, timezone
from types import SimpleNamespace

import pytest
from jose import jwt
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from lms_backend.config import Settings
from lms_backend.database import models
from lms_backend.database.database import Base
from lms_backend.database.db_init import seed_roles_and_permissions

TEST_JWT_SECRET = "test-secret"

# ===================================================================
#  DB Fixture 설정 (인메모리 SQLite)
# ===================================================================

@pytest.fixture
def engine():
    """테스트마다 새로운 인메모리 SQLite 엔진을 생성합니다. StaticPool로 모든 세션이 같은 연결을 공유합니다."""
    test_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=test_engine)
    yield test_engine
    test_engine.dispose()

@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)

@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    yield session
    session.close()

@pytest.fixture
def seeded_roles(db_session):
    """기본 역할/권한/권한 부여 매트릭스를 삽입합니다."""
    seed_roles_and_permissions(db_session)
    return {role.name: role for role in db_session.query(models.Role).all()}

def _assign(db, user, role):
    db.add(models.UserRole(user_id=user.id, role_id=role.id, is_active=True))

@pytest.fixture
def curriculum(db_session, seeded_roles):
    """
    두 과정과 하나의 기수, 순서가 뒤섞인 커리큘럼 트리, 사용자와 수강 정보를 삽입합니다.

    - student: C1 기수 과정에 active 수강
    - dropped_student: C1 기수 과정에 dropped 수강
    - admin: admin 역할, 수강 없음
    """
    db = db_session
    student = models.User(name="Student", email="student@example.com")
    dropped_student = models.User(name="Dropped", email="dropped@example.com")
    admin = models.User(name="Admin", email="admin@example.com")
    db.add_all([student, dropped_student, admin])

    c1 = models.Course(title="Cloud Engineering", hash="abcd1234", status="published")
    c2 = models.Course(title="Data Engineering", hash="wxyz9876", status="published")
    batch = models.Batch(name="2026 Spring", batch_code="B2026S", start_date=date(2026, 3, 1))
    db.add_all([c1, c2, batch])
    db.flush()

    bc1 = models.BatchCourse(batch_id=batch.id, course_id=c1.id)
    bc2 = models.BatchCourse(batch_id=batch.id, course_id=c2.id)
    db.add_all([bc1, bc2])

    # Phase 2를 먼저 삽입하여 정렬이 삽입 순서가 아닌 order 기준임을 확인
    p2 = models.Phase(course_id=c1.id, phase_name="Advanced", phase_order=2, hash="ph2")
    p1 = models.Phase(course_id=c1.id, phase_name="Basics", phase_order=1, path="/basics",
                      icon="book", brief_description="brief", full_description="full", hash="ph1")
    p3 = models.Phase(course_id=c2.id, phase_name="Pipelines", phase_order=1, hash="ph3")
    db.add_all([p2, p1, p3])
    db.flush()

    w2 = models.Week(phase_id=p1.id, week_name="Week 2", title="Networking", week_order=2, hash="wk2")
    w1 = models.Week(phase_id=p1.id, week_name="Week 1", title="Linux", week_order=1, hash="wk1")
    w3 = models.Week(phase_id=p3.id, week_name="Week 1", title="ETL", week_order=1, hash="wk3")
    db.add_all([w2, w1, w3])
    db.flush()

    wc_b = models.WeekComponent(week_id=w1.id, title="Assignments", order=2, icon_type="task")
    wc_a = models.WeekComponent(week_id=w1.id, title="TODO list", order=1, icon_type="todo")
    db.add_all([wc_b, wc_a])
    db.flush()
    db.add_all([
        models.WeekComponentContent(week_component_id=wc_a.id, title="Read chapter 2", order=2, url="https://example.com/2"),
        models.WeekComponentContent(week_component_id=wc_a.id, title="Read chapter 1", order=1, url="https://example.com/1"),
    ])

    t2 = models.ClassTopic(week_id=w1.id, title="Permissions", order=2, hash="tp2")
    t1 = models.ClassTopic(week_id=w1.id, title="Shell basics", order=1, hash="tp1",
                           description="Intro", has_checklist=True)
    db.add_all([t2, t1])
    db.flush()

    cc = models.ClassComponent(class_topic_id=t1.id, title="Slides", order=1, icon_type="slide")
    db.add(cc)
    db.flush()
    db.add_all([
        models.ClassComponentContent(class_component_id=cc.id, title="Deck part 2", order=2),
        models.ClassComponentContent(class_component_id=cc.id, title="Deck part 1", order=1, note_html="<p>notes</p>"),
        models.ClassVideoSectionBySection(class_topic_id=t1.id, title="Section B", order=2, hash="vs2",
                                          minimum_minutes_required=10),
        models.ClassVideoSectionBySection(class_topic_id=t1.id, title="Section A", order=1, hash="vs1",
                                          minimum_minutes_required=5),
        models.ClassVideoLiveSession(class_topic_id=t1.id, title="Recording", hash="lv1",
                                     minimum_minutes_required=30, video_length_minutes=90),
        models.LiveSession(week_id=w1.id, batch_id=batch.id, title="Live Q&A",
                           session_date=date(2026, 3, 10), start_time="19:00", end_time="21:00"),
    ])

    db.flush()
    active = models.Enrollment(user_id=student.id, batch_course_id=bc1.id, status="active")
    dropped = models.Enrollment(user_id=dropped_student.id, batch_course_id=bc1.id, status="dropped",
                                dropped_at=datetime(2026, 3, 5))
    db.add_all([active, dropped])

    _assign(db, student, seeded_roles["student"])
    _assign(db, dropped_student, seeded_roles["student"])
    _assign(db, admin, seeded_roles["admin"])
    db.commit()

    return SimpleNamespace(
        student=student, dropped_student=dropped_student, admin=admin,
        c1=c1, c2=c2, batch=batch, bc1=bc1, bc2=bc2,
        p1=p1, p2=p2, p3=p3, w1=w1, w2=w2, w3=w3,
        t1=t1, t2=t2, wc_a=wc_a, wc_b=wc_b,
        active_enrollment=active, dropped_enrollment=dropped,
    )

# ===================================================================
#  인증 Fixture 설정
# ===================================================================

@pytest.fixture
def test_settings() -> Settings:
    return Settings(_env_file=None, jwt_secret=TEST_JWT_SECRET, environment="test", request_timeout_seconds=5.0)

def make_token(user_id, secret=TEST_JWT_SECRET, expires_in=timedelta(minutes=5)) -> str:
    """외부 인증 서버가 발급하는 것과 같은 형식의 토큰을 생성합니다."""
    claims = {"sub": str(user_id), "exp": datetime.now(timezone.utc) + expires_in}
    return jwt.encode(claims, secret, algorithm="HS256")

@pytest.fixture
def token_for():
    return make_token
