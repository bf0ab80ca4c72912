import time
from typing import List, Optional
from sqlalchemy import text
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session
from lms_backend.database import models
from lms_backend.repositories.interfaces import IContentRepository
from lms_backend.services.exceptions import RequestTimeoutError

# SQLite 진행 콜백 호출 간격 (VM 명령어 수)
SQLITE_PROGRESS_STEPS = 1000
# PostgreSQL query_canceled
PG_QUERY_CANCELED = "57014"

class SqlalchemyContentRepository(IContentRepository):
    def __init__(self, db_session: Session):
        self.db = db_session
        self.timeout_seconds: Optional[float] = None

    def set_query_timeout(self, timeout_seconds: Optional[float]) -> None:
        self.timeout_seconds = timeout_seconds

    def _list_children(self, model, parent_column, parent_ids: List[int], *order_by):
        # 빈 IN () 절을 보내지 않도록 부모가 없으면 바로 반환
        if not parent_ids:
            return []
        query = self.db.query(model).filter(
            parent_column.in_(parent_ids)
        ).order_by(*order_by, model.id.asc())
        return self._run_bounded(query, model.__tablename__)

    def _run_bounded(self, query, table: str):
        """
        남은 시간 예산 안에서 쿼리를 실행합니다.

        PostgreSQL은 SET LOCAL statement_timeout으로, SQLite는 진행 콜백으로 실행 중인 쿼리를
        중단합니다. 그 밖의 DB에서는 계층 사이의 예산 검사만 적용됩니다.
        """
        timeout = self.timeout_seconds
        if timeout is None:
            return query.all()
        if timeout <= 0:
            raise RequestTimeoutError(f"No time left to load {table}.")

        dialect = self.db.get_bind().dialect.name
        if dialect == "postgresql":
            # SET은 바인딩 파라미터를 받지 않으므로 정수 밀리초로 변환하여 삽입
            self.db.execute(text(f"SET LOCAL statement_timeout = {max(1, int(timeout * 1000))}"))
            try:
                return query.all()
            except OperationalError as e:
                if getattr(e.orig, "pgcode", None) != PG_QUERY_CANCELED:
                    raise
                self.db.rollback()
                raise RequestTimeoutError(f"Query on {table} exceeded {timeout:.3f}s.") from e

        if dialect == "sqlite":
            dbapi_connection = self.db.connection().connection.dbapi_connection
            expires_at = time.monotonic() + timeout
            dbapi_connection.set_progress_handler(
                lambda: 1 if time.monotonic() >= expires_at else 0, SQLITE_PROGRESS_STEPS
            )
            try:
                return query.all()
            except OperationalError as e:
                if "interrupted" not in str(e.orig):
                    raise
                self.db.rollback()
                raise RequestTimeoutError(f"Query on {table} exceeded {timeout:.3f}s.") from e
            finally:
                dbapi_connection.set_progress_handler(None, SQLITE_PROGRESS_STEPS)

        return query.all()

    def list_phases_by_course_ids(self, course_ids: List[int]) -> List[models.Phase]:
        return self._list_children(
            models.Phase, models.Phase.course_id, course_ids, models.Phase.phase_order.asc()
        )

    def list_weeks_by_phase_ids(self, phase_ids: List[int]) -> List[models.Week]:
        return self._list_children(
            models.Week, models.Week.phase_id, phase_ids, models.Week.week_order.asc()
        )

    def list_week_components_by_week_ids(self, week_ids: List[int]) -> List[models.WeekComponent]:
        return self._list_children(
            models.WeekComponent, models.WeekComponent.week_id, week_ids, models.WeekComponent.order.asc()
        )

    def list_week_component_contents_by_component_ids(self, component_ids: List[int]) -> List[models.WeekComponentContent]:
        return self._list_children(
            models.WeekComponentContent, models.WeekComponentContent.week_component_id,
            component_ids, models.WeekComponentContent.order.asc()
        )

    def list_class_topics_by_week_ids(self, week_ids: List[int]) -> List[models.ClassTopic]:
        return self._list_children(
            models.ClassTopic, models.ClassTopic.week_id, week_ids, models.ClassTopic.order.asc()
        )

    def list_class_components_by_topic_ids(self, topic_ids: List[int]) -> List[models.ClassComponent]:
        return self._list_children(
            models.ClassComponent, models.ClassComponent.class_topic_id, topic_ids, models.ClassComponent.order.asc()
        )

    def list_class_component_contents_by_component_ids(self, component_ids: List[int]) -> List[models.ClassComponentContent]:
        return self._list_children(
            models.ClassComponentContent, models.ClassComponentContent.class_component_id,
            component_ids, models.ClassComponentContent.order.asc()
        )

    def list_video_sections_by_topic_ids(self, topic_ids: List[int]) -> List[models.ClassVideoSectionBySection]:
        return self._list_children(
            models.ClassVideoSectionBySection, models.ClassVideoSectionBySection.class_topic_id,
            topic_ids, models.ClassVideoSectionBySection.order.asc()
        )

    def list_video_live_sessions_by_topic_ids(self, topic_ids: List[int]) -> List[models.ClassVideoLiveSession]:
        return self._list_children(
            models.ClassVideoLiveSession, models.ClassVideoLiveSession.class_topic_id, topic_ids
        )

    def list_live_sessions_by_week_ids(self, week_ids: List[int]) -> List[models.LiveSession]:
        return self._list_children(
            models.LiveSession, models.LiveSession.week_id, week_ids,
            models.LiveSession.session_date.asc(), models.LiveSession.start_time.asc()
        )

    def list_group_sessions_by_week_ids(self, week_ids: List[int]) -> List[models.GroupSession]:
        return self._list_children(
            models.GroupSession, models.GroupSession.week_id, week_ids,
            models.GroupSession.session_date.asc(), models.GroupSession.start_time.asc()
        )
