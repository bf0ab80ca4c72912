# lms_backend/utils/ordering.py
import logging
from collections import Counter
from typing import Callable, Dict, Iterable, List, Optional, TypeVar

from lms_backend.services.exceptions import DuplicateOrderError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def sort_siblings(items: Iterable[T], order_of: Callable[[T], Optional[int]],
                  scope: str, strict: bool = False) -> List[T]:
    """
    같은 부모 아래의 형제 노드들을 order 값 오름차순으로 정렬합니다.

    order 값이 같은 형제가 있으면 데이터 무결성 위반으로 기록하고, 삽입 순서(id)로
    안정적으로 정렬합니다. strict=True이면 정렬하지 않고 예외를 발생시킵니다.

    Args:
        items: 정렬할 형제 노드들.
        order_of: 노드에서 order 값을 꺼내는 함수.
        scope: 로그/에러 메시지에 사용할 부모 범위 설명. (예: "week 3 class_topics")
        strict: order 중복 시 예외를 발생시킬지 여부.

    Returns:
        (order, id) 기준으로 정렬된 새 리스트.

    Raises:
        DuplicateOrderError: strict=True이고 order 값이 중복될 때.
    """
    siblings = list(items)
    counts = Counter(order_of(item) for item in siblings)
    duplicates = sorted(order for order, count in counts.items() if count > 1 and order is not None)
    if duplicates:
        message = f"Duplicate order values {duplicates} in {scope}."
        if strict:
            raise DuplicateOrderError(message)
        logger.warning("%s Resolving by insertion order.", message)

    # order가 비어 있는 노드는 맨 뒤로 보냄
    return sorted(
        siblings,
        key=lambda item: (order_of(item) is None, order_of(item) or 0, getattr(item, "id", 0) or 0),
    )


def group_by_parent(children: Iterable[T], parent_of: Callable[[T], int],
                    parent_ids: Iterable[int], kind: str) -> Dict[int, List[T]]:
    """
    자식 노드들을 부모 ID별로 묶습니다.

    모든 부모 ID에 대해 빈 리스트를 미리 만들어 두므로, 자식이 없는 부모도 `[]`를 가집니다.
    알려진 부모가 없는 고아 노드는 경고를 남기고 건너뜁니다.
    """
    grouped: Dict[int, List[T]] = {parent_id: [] for parent_id in parent_ids}
    for child in children:
        parent_id = parent_of(child)
        if parent_id not in grouped:
            logger.warning(
                "Skipping orphaned %s %s: parent %s is not part of this tree.",
                kind, getattr(child, "id", None), parent_id,
            )
            continue
        grouped[parent_id].append(child)
    return grouped
