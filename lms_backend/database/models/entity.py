import enum

class EntityKind(str, enum.Enum):
    """
    다형 참조(entity_type + entity_id)를 문자열 대신 명시적인 종류로 표현합니다.
    각 종류에 대한 실제 조회 함수는 리포지토리의 조회 테이블에서 매핑합니다.
    """
    COURSE = "course"
    PHASE = "phase"
    WEEK = "week"
    BATCH_COURSE = "batch_course"
    ENROLLMENT = "enrollment"
