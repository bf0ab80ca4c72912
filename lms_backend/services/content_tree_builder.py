import logging
from typing import Any, Dict, List, Optional

from lms_backend.database import models
from lms_backend.repositories.interfaces import IContentRepository, ICourseRepository
from lms_backend.services.exceptions import CourseNotFoundError, PhaseNotFoundError
from lms_backend.utils.deadline import Deadline, no_deadline
from lms_backend.utils.ordering import group_by_parent, sort_siblings

logger = logging.getLogger(__name__)


def _by_order(node) -> Optional[int]:
    return node.order


def _session_to_dict(session) -> Dict[str, Any]:
    return {
        "id": session.id,
        "title": session.title,
        "session_date": session.session_date.isoformat() if session.session_date else None,
        "start_time": session.start_time,
        "end_time": session.end_time,
        "status": session.status,
    }


class ContentTreeBuilder:
    """
    정규화된 커리큘럼 레코드를 하나의 중첩 문서로 조립합니다.

    각 계층은 부모 ID 목록에 대한 IN (...) 조회 한 번으로 가져오고, 메모리에서 부모별로 묶은 뒤
    선언된 order 값으로 정렬합니다. 계층을 내려가기 전마다 요청 시간 예산(Deadline)을 확인합니다.
    """

    def __init__(self, content_repo: IContentRepository, course_repo: ICourseRepository,
                 strict_ordering: bool = False):
        """
        ContentTreeBuilder를 초기화합니다.

        Args:
            content_repo: 커리큘럼 하위 계층 데이터에 접근하기 위한 리포지토리.
            course_repo: 과정/Phase 데이터에 접근하기 위한 리포지토리.
            strict_ordering: 형제 간 order 중복을 에러로 취급할지 여부.
        """
        self.content_repo = content_repo
        self.course_repo = course_repo
        self.strict_ordering = strict_ordering

    def _enter_level(self, deadline: Deadline, stage: str):
        """계층 조회 직전에 예산을 확인하고, 남은 시간을 다음 쿼리의 시간 제한으로 넘깁니다."""
        deadline.check(stage)
        self.content_repo.set_query_timeout(deadline.remaining())

    def _sort(self, items, order_of, scope: str):
        return sort_siblings(items, order_of, scope, strict=self.strict_ordering)

    # ------------------------------------------------------------------
    # Phase → Week 트리
    # ------------------------------------------------------------------

    def build_phase_weeks(self, phase_id: int, deadline: Optional[Deadline] = None) -> Dict[str, Any]:
        """
        Phase 하나의 전체 Week 트리를 조립합니다.

        Returns:
            {"phase": {..., "weeks": [...]}} 형태의 딕셔너리. 자식이 없는 계층은 빈 리스트입니다.

        Raises:
            PhaseNotFoundError: 해당 ID의 Phase를 찾을 수 없을 때.
            RequestTimeoutError: 조립 중 요청 시간 예산을 초과했을 때.
            DuplicateOrderError: strict_ordering이고 형제 간 order가 중복될 때.
        """
        deadline = deadline or no_deadline()
        self._enter_level(deadline, "phase")
        phase = self.course_repo.find_phase(phase_id)
        if not phase:
            raise PhaseNotFoundError(f"Phase with id '{phase_id}' not found.")

        weeks_by_phase = self._build_weeks([phase.id], deadline)
        return {"phase": self._phase_to_dict(phase, weeks_by_phase[phase.id])}

    def build_course_phases(self, course: models.Course, deadline: Optional[Deadline] = None) -> Dict[str, Any]:
        """과정 하나의 모든 Phase와 각 Phase의 Week 트리를 조립합니다."""
        deadline = deadline or no_deadline()
        self._enter_level(deadline, "phases")
        phases = self._sort(
            self.content_repo.list_phases_by_course_ids([course.id]),
            lambda phase: phase.phase_order,
            f"course {course.id} phases",
        )
        weeks_by_phase = self._build_weeks([phase.id for phase in phases], deadline)
        return {
            "course": {"id": course.id, "title": course.title, "hash": course.hash},
            "phases": [self._phase_to_dict(phase, weeks_by_phase[phase.id]) for phase in phases],
        }

    def _build_weeks(self, phase_ids: List[int], deadline: Deadline) -> Dict[int, List[Dict[str, Any]]]:
        self._enter_level(deadline, "weeks")
        weeks_by_phase = group_by_parent(
            self.content_repo.list_weeks_by_phase_ids(phase_ids),
            lambda week: week.phase_id, phase_ids, "week",
        )
        week_ids = [week.id for weeks in weeks_by_phase.values() for week in weeks]

        # WeekComponent 계열과 ClassTopic 계열은 서로 독립적인 형제 계층
        components_by_week = self._build_week_components(week_ids, deadline)
        topics_by_week = self._build_class_topics(week_ids, deadline)

        result = {}
        for phase_id, weeks in weeks_by_phase.items():
            ordered = self._sort(weeks, lambda week: week.week_order, f"phase {phase_id} weeks")
            result[phase_id] = [
                {
                    "id": week.id,
                    "week_name": week.week_name,
                    "title": week.title,
                    "order": week.week_order,
                    "hash": week.hash,
                    "week_components": components_by_week[week.id],
                    "class_topics": topics_by_week[week.id],
                }
                for week in ordered
            ]
        return result

    def _build_week_components(self, week_ids: List[int], deadline: Deadline) -> Dict[int, List[Dict[str, Any]]]:
        self._enter_level(deadline, "week_components")
        components_by_week = group_by_parent(
            self.content_repo.list_week_components_by_week_ids(week_ids),
            lambda component: component.week_id, week_ids, "week_component",
        )
        component_ids = [c.id for components in components_by_week.values() for c in components]

        self._enter_level(deadline, "week_component_contents")
        contents_by_component = group_by_parent(
            self.content_repo.list_week_component_contents_by_component_ids(component_ids),
            lambda content: content.week_component_id, component_ids, "week_component_content",
        )

        result = {}
        for week_id, components in components_by_week.items():
            result[week_id] = [
                {
                    "id": component.id,
                    "title": component.title,
                    "order": component.order,
                    "icon_type": component.icon_type,
                    "week_component_contents": [
                        self._content_to_dict(content)
                        for content in self._sort(
                            contents_by_component[component.id], _by_order,
                            f"week_component {component.id} contents",
                        )
                    ],
                }
                for component in self._sort(components, _by_order, f"week {week_id} week_components")
            ]
        return result

    def _build_class_topics(self, week_ids: List[int], deadline: Deadline) -> Dict[int, List[Dict[str, Any]]]:
        self._enter_level(deadline, "class_topics")
        topics_by_week = group_by_parent(
            self.content_repo.list_class_topics_by_week_ids(week_ids),
            lambda topic: topic.week_id, week_ids, "class_topic",
        )
        topic_ids = [topic.id for topics in topics_by_week.values() for topic in topics]

        components_by_topic = self._build_class_components(topic_ids, deadline)

        self._enter_level(deadline, "class_video_section_by_sections")
        sections_by_topic = group_by_parent(
            self.content_repo.list_video_sections_by_topic_ids(topic_ids),
            lambda section: section.class_topic_id, topic_ids, "class_video_section",
        )

        self._enter_level(deadline, "class_video_live_sessions")
        recordings_by_topic = group_by_parent(
            self.content_repo.list_video_live_sessions_by_topic_ids(topic_ids),
            lambda recording: recording.class_topic_id, topic_ids, "class_video_live_session",
        )

        result = {}
        for week_id, topics in topics_by_week.items():
            result[week_id] = [
                {
                    "id": topic.id,
                    "title": topic.title,
                    "order": topic.order,
                    "hash": topic.hash,
                    "description": topic.description,
                    "has_checklist": bool(topic.has_checklist),
                    "class_components": components_by_topic[topic.id],
                    "class_video_section_by_sections": [
                        {
                            "id": section.id,
                            "title": section.title,
                            "order": section.order,
                            "hash": section.hash,
                            "minimum_minutes_required": section.minimum_minutes_required,
                        }
                        for section in self._sort(
                            sections_by_topic[topic.id], _by_order, f"class_topic {topic.id} video sections"
                        )
                    ],
                    # 라이브 세션 녹화본에는 order 필드가 없으므로 id 순으로 고정
                    "class_video_live_sessions": [
                        {
                            "id": recording.id,
                            "title": recording.title,
                            "hash": recording.hash,
                            "minimum_minutes_required": recording.minimum_minutes_required,
                            "video_length_minutes": recording.video_length_minutes,
                        }
                        for recording in sorted(recordings_by_topic[topic.id], key=lambda r: r.id)
                    ],
                }
                for topic in self._sort(topics, _by_order, f"week {week_id} class_topics")
            ]
        return result

    def _build_class_components(self, topic_ids: List[int], deadline: Deadline) -> Dict[int, List[Dict[str, Any]]]:
        self._enter_level(deadline, "class_components")
        components_by_topic = group_by_parent(
            self.content_repo.list_class_components_by_topic_ids(topic_ids),
            lambda component: component.class_topic_id, topic_ids, "class_component",
        )
        component_ids = [c.id for components in components_by_topic.values() for c in components]

        self._enter_level(deadline, "class_component_contents")
        contents_by_component = group_by_parent(
            self.content_repo.list_class_component_contents_by_component_ids(component_ids),
            lambda content: content.class_component_id, component_ids, "class_component_content",
        )

        result = {}
        for topic_id, components in components_by_topic.items():
            result[topic_id] = [
                {
                    "id": component.id,
                    "title": component.title,
                    "order": component.order,
                    "icon_type": component.icon_type,
                    "class_component_contents": [
                        self._content_to_dict(content)
                        for content in self._sort(
                            contents_by_component[component.id], _by_order,
                            f"class_component {component.id} contents",
                        )
                    ],
                }
                for component in self._sort(components, _by_order, f"class_topic {topic_id} class_components")
            ]
        return result

    # ------------------------------------------------------------------
    # 관리자용 과정 계층 요약
    # ------------------------------------------------------------------

    def build_course_hierarchy(self, course_id: Optional[int] = None,
                               deadline: Optional[Deadline] = None) -> List[Dict[str, Any]]:
        """
        과정 → 기수 / Phase → Week → (토픽, 라이브 세션, 그룹 세션) 요약 트리를 조립합니다.

        Raises:
            CourseNotFoundError: course_id가 주어졌는데 해당 과정이 없을 때.
        """
        deadline = deadline or no_deadline()
        self._enter_level(deadline, "courses")
        courses = self.course_repo.list_courses(course_id)
        if course_id is not None and not courses:
            raise CourseNotFoundError(f"Course with id '{course_id}' not found.")
        course_ids = [course.id for course in courses]

        self._enter_level(deadline, "batches")
        batches_by_course = group_by_parent(
            self.course_repo.list_batch_courses_by_course_ids(course_ids),
            lambda batch_course: batch_course.course_id, course_ids, "batch_course",
        )

        self._enter_level(deadline, "phases")
        phases_by_course = group_by_parent(
            self.content_repo.list_phases_by_course_ids(course_ids),
            lambda phase: phase.course_id, course_ids, "phase",
        )
        phase_ids = [phase.id for phases in phases_by_course.values() for phase in phases]

        self._enter_level(deadline, "weeks")
        weeks_by_phase = group_by_parent(
            self.content_repo.list_weeks_by_phase_ids(phase_ids),
            lambda week: week.phase_id, phase_ids, "week",
        )
        week_ids = [week.id for weeks in weeks_by_phase.values() for week in weeks]

        self._enter_level(deadline, "class_topics")
        topics_by_week = group_by_parent(
            self.content_repo.list_class_topics_by_week_ids(week_ids),
            lambda topic: topic.week_id, week_ids, "class_topic",
        )
        self._enter_level(deadline, "live_sessions")
        live_by_week = group_by_parent(
            self.content_repo.list_live_sessions_by_week_ids(week_ids),
            lambda session: session.week_id, week_ids, "live_session",
        )
        self._enter_level(deadline, "group_sessions")
        group_by_week = group_by_parent(
            self.content_repo.list_group_sessions_by_week_ids(week_ids),
            lambda session: session.week_id, week_ids, "group_session",
        )

        def week_node(week):
            return {
                "id": week.id,
                "week_name": week.week_name,
                "order": week.week_order,
                "topics": [
                    {"id": topic.id, "title": topic.title, "hash": topic.hash}
                    for topic in self._sort(topics_by_week[week.id], _by_order, f"week {week.id} class_topics")
                ],
                "live_sessions": [_session_to_dict(s) for s in live_by_week[week.id]],
                "group_sessions": [_session_to_dict(s) for s in group_by_week[week.id]],
            }

        def phase_node(phase):
            weeks = self._sort(weeks_by_phase[phase.id], lambda week: week.week_order, f"phase {phase.id} weeks")
            return {
                "id": phase.id,
                "name": phase.phase_name,
                "order": phase.phase_order,
                "weeks": [week_node(week) for week in weeks],
            }

        return [
            {
                "id": course.id,
                "title": course.title,
                "hash": course.hash,
                "status": course.status,
                "batches": [
                    {"id": bc.batch.id, "name": bc.batch.name, "batch_course_id": bc.id}
                    for bc in batches_by_course[course.id] if bc.batch is not None
                ],
                "phases": [
                    phase_node(phase)
                    for phase in self._sort(
                        phases_by_course[course.id], lambda phase: phase.phase_order, f"course {course.id} phases"
                    )
                ],
            }
            for course in courses
        ]

    @staticmethod
    def _phase_to_dict(phase: models.Phase, weeks: List[Dict[str, Any]]) -> Dict[str, Any]:
        return {
            "id": phase.id,
            "name": phase.phase_name,
            "path": phase.path,
            "brief_description": phase.brief_description,
            "full_description": phase.full_description,
            "icon": phase.icon,
            "hash": phase.hash,
            "order": phase.phase_order,
            "weeks": weeks,
        }

    @staticmethod
    def _content_to_dict(content) -> Dict[str, Any]:
        return {
            "id": content.id,
            "title": content.title,
            "order": content.order,
            "icon_type": content.icon_type,
            "url": content.url,
            "note_html": content.note_html,
        }
