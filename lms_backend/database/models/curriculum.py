from sqlalchemy import (
    Column, Integer, String, Boolean, Text, ForeignKey, UniqueConstraint
)
from sqlalchemy.orm import relationship
from ..database import Base

# 커리큘럼 트리: Course → Phase → Week → {WeekComponent → WeekComponentContent,
# ClassTopic → {ClassComponent → ClassComponentContent, VideoSection, LiveSession}}
# 모든 order 값은 부모 범위 안에서만 유일한 1부터 시작하는 정수입니다.

class Phase(Base):
    __tablename__ = "phases"
    __table_args__ = (
        UniqueConstraint("course_id", "phase_order", name="uq_phases_course_order"),
    )
    id = Column(Integer, primary_key=True, index=True)
    course_id = Column(Integer, ForeignKey("courses.id"), nullable=False, index=True)
    phase_name = Column(String, nullable=False)
    phase_order = Column(Integer, nullable=False)
    path = Column(String)
    icon = Column(String)
    brief_description = Column(String)
    full_description = Column(Text)
    hash = Column(String)
    is_active = Column(Boolean, nullable=False, default=True)

    course = relationship("Course", back_populates="phases")


class Week(Base):
    __tablename__ = "weeks"
    __table_args__ = (
        UniqueConstraint("phase_id", "week_order", name="uq_weeks_phase_order"),
    )
    id = Column(Integer, primary_key=True, index=True)
    phase_id = Column(Integer, ForeignKey("phases.id"), nullable=False, index=True)
    week_name = Column(String, nullable=False)
    title = Column(String)
    week_order = Column(Integer, nullable=False)
    hash = Column(String)


class WeekComponent(Base):
    """주(Week) 단위 자료 묶음 (예: 'TODO 목록'). 수업 토픽과는 독립적입니다."""
    __tablename__ = "week_components"
    __table_args__ = (
        UniqueConstraint("week_id", "order", name="uq_week_components_week_order"),
    )
    id = Column(Integer, primary_key=True, index=True)
    week_id = Column(Integer, ForeignKey("weeks.id"), nullable=False, index=True)
    title = Column(String, nullable=False)
    order = Column(Integer, nullable=False)
    icon_type = Column(String)


class WeekComponentContent(Base):
    __tablename__ = "week_component_contents"
    __table_args__ = (
        UniqueConstraint("week_component_id", "order", name="uq_week_component_contents_order"),
    )
    id = Column(Integer, primary_key=True, index=True)
    week_component_id = Column(Integer, ForeignKey("week_components.id"), nullable=False, index=True)
    title = Column(String, nullable=False)
    order = Column(Integer, nullable=False)
    icon_type = Column(String)
    url = Column(String)
    note_html = Column(Text)


class ClassTopic(Base):
    __tablename__ = "class_topics"
    __table_args__ = (
        UniqueConstraint("week_id", "order", name="uq_class_topics_week_order"),
    )
    id = Column(Integer, primary_key=True, index=True)
    week_id = Column(Integer, ForeignKey("weeks.id"), nullable=False, index=True)
    title = Column(String, nullable=False)
    order = Column(Integer, nullable=False)
    hash = Column(String)
    description = Column(Text)
    has_checklist = Column(Boolean, nullable=False, default=False)


class ClassComponent(Base):
    __tablename__ = "class_components"
    __table_args__ = (
        UniqueConstraint("class_topic_id", "order", name="uq_class_components_topic_order"),
    )
    id = Column(Integer, primary_key=True, index=True)
    class_topic_id = Column(Integer, ForeignKey("class_topics.id"), nullable=False, index=True)
    title = Column(String, nullable=False)
    order = Column(Integer, nullable=False)
    icon_type = Column(String)


class ClassComponentContent(Base):
    __tablename__ = "class_component_contents"
    __table_args__ = (
        UniqueConstraint("class_component_id", "order", name="uq_class_component_contents_order"),
    )
    id = Column(Integer, primary_key=True, index=True)
    class_component_id = Column(Integer, ForeignKey("class_components.id"), nullable=False, index=True)
    title = Column(String, nullable=False)
    order = Column(Integer, nullable=False)
    icon_type = Column(String)
    url = Column(String)
    note_html = Column(Text)


class ClassVideoSectionBySection(Base):
    """토픽에 딸린 구간별 영상. minimum_minutes_required는 진도 추적에서 사용됩니다."""
    __tablename__ = "class_video_section_by_sections"
    __table_args__ = (
        UniqueConstraint("class_topic_id", "order", name="uq_class_video_sections_topic_order"),
    )
    id = Column(Integer, primary_key=True, index=True)
    class_topic_id = Column(Integer, ForeignKey("class_topics.id"), nullable=False, index=True)
    title = Column(String, nullable=False)
    order = Column(Integer, nullable=False)
    hash = Column(String)
    minimum_minutes_required = Column(Integer)


class ClassVideoLiveSession(Base):
    """토픽에 딸린 라이브 세션 녹화본. 토픽당 몇 개뿐이므로 order 필드가 없습니다."""
    __tablename__ = "class_video_live_sessions"
    id = Column(Integer, primary_key=True, index=True)
    class_topic_id = Column(Integer, ForeignKey("class_topics.id"), nullable=False, index=True)
    title = Column(String, nullable=False)
    hash = Column(String)
    minimum_minutes_required = Column(Integer)
    video_length_minutes = Column(Integer)
    note_html = Column(Text)
