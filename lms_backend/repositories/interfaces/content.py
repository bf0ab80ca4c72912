from abc import ABC, abstractmethod
from typing import List, Optional
from lms_backend.database import models

class IContentRepository(ABC):
    """
    커리큘럼 트리를 계층(level)별로 한 번의 쿼리로 조회하는 리포지토리입니다.
    모든 목록은 (order, id) 오름차순으로 반환됩니다.
    """

    @abstractmethod
    def set_query_timeout(self, timeout_seconds: Optional[float]) -> None:
        """이후 목록 조회 각각에 적용할 시간 제한(초)을 설정합니다. None이면 제한하지 않습니다."""
        pass

    @abstractmethod
    def list_phases_by_course_ids(self, course_ids: List[int]) -> List[models.Phase]:
        pass

    @abstractmethod
    def list_weeks_by_phase_ids(self, phase_ids: List[int]) -> List[models.Week]:
        pass

    @abstractmethod
    def list_week_components_by_week_ids(self, week_ids: List[int]) -> List[models.WeekComponent]:
        pass

    @abstractmethod
    def list_week_component_contents_by_component_ids(self, component_ids: List[int]) -> List[models.WeekComponentContent]:
        pass

    @abstractmethod
    def list_class_topics_by_week_ids(self, week_ids: List[int]) -> List[models.ClassTopic]:
        pass

    @abstractmethod
    def list_class_components_by_topic_ids(self, topic_ids: List[int]) -> List[models.ClassComponent]:
        pass

    @abstractmethod
    def list_class_component_contents_by_component_ids(self, component_ids: List[int]) -> List[models.ClassComponentContent]:
        pass

    @abstractmethod
    def list_video_sections_by_topic_ids(self, topic_ids: List[int]) -> List[models.ClassVideoSectionBySection]:
        pass

    @abstractmethod
    def list_video_live_sessions_by_topic_ids(self, topic_ids: List[int]) -> List[models.ClassVideoLiveSession]:
        """토픽별 라이브 세션 녹화본을 조회합니다. order 필드가 없으므로 id 순으로 반환합니다."""
        pass

    @abstractmethod
    def list_live_sessions_by_week_ids(self, week_ids: List[int]) -> List[models.LiveSession]:
        """주별 라이브 수업 일정을 (session_date, start_time, id) 순으로 조회합니다."""
        pass

    @abstractmethod
    def list_group_sessions_by_week_ids(self, week_ids: List[int]) -> List[models.GroupSession]:
        """주별 그룹 세션 일정을 (session_date, start_time, id) 순으로 조회합니다."""
        pass
