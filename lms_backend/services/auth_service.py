import logging
from typing import Any, Dict

from jose import JWTError, jwt

from lms_backend.repositories.interfaces import IUserRepository
from lms_backend.services.exceptions import AuthenticationError

logger = logging.getLogger(__name__)


class AuthService:
    """외부 인증 서버가 발급한 JWT를 검증하고 호출자를 식별합니다. 토큰 발급은 하지 않습니다."""

    def __init__(self, user_repo: IUserRepository, secret: str, algorithm: str = "HS256"):
        self.user_repo = user_repo
        self.secret = secret
        self.algorithm = algorithm

    def validate_token(self, token: str) -> Dict[str, Any]:
        """
        인증 토큰의 유효성을 검증하고, 유효하면 토큰 데이터를 반환합니다.

        Returns:
            {'user_id': int} 딕셔너리.

        Raises:
            AuthenticationError: 서명/만료 검증에 실패했거나, 토큰의 사용자가 없거나 비활성일 때.
        """
        try:
            claims = jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except JWTError as e:
            logger.info("Rejected bearer token: %s", e)
            raise AuthenticationError("Invalid or expired token.") from e

        subject = claims.get("sub", claims.get("id"))
        try:
            user_id = int(subject)
        except (TypeError, ValueError):
            raise AuthenticationError("Token does not identify a user.")

        user = self.user_repo.find_by_id(user_id)
        if not user or not user.is_active:
            raise AuthenticationError("User not found")
        return {"user_id": user.id}
