from sqlalchemy import Column, Integer, String, Date, ForeignKey
from ..database import Base

class LiveSession(Base):
    """
    주(Week) 단위로 기수 전체를 대상으로 진행되는 라이브 수업 일정입니다.
    """
    __tablename__ = "live_sessions"
    id = Column(Integer, primary_key=True, index=True)
    week_id = Column(Integer, ForeignKey("weeks.id"), nullable=False, index=True)
    batch_id = Column(Integer, ForeignKey("batches.id"), nullable=False)
    title = Column(String, nullable=False)
    session_date = Column(Date, nullable=False)
    start_time = Column(String, nullable=False)
    end_time = Column(String, nullable=False)
    status = Column(String, nullable=False, default="scheduled")
    minimum_minutes_required = Column(Integer)


class GroupSession(Base):
    """
    주(Week) 단위로 소그룹(Group)을 대상으로 진행되는 세션 일정입니다.
    """
    __tablename__ = "group_sessions"
    id = Column(Integer, primary_key=True, index=True)
    week_id = Column(Integer, ForeignKey("weeks.id"), nullable=False, index=True)
    group_id = Column(Integer, ForeignKey("groups.id"), nullable=False)
    title = Column(String, nullable=False)
    session_date = Column(Date, nullable=False)
    start_time = Column(String, nullable=False)
    end_time = Column(String, nullable=False)
    status = Column(String, nullable=False, default="scheduled")
    minimum_minutes_required = Column(Integer)
