"""Service layer for admin authentication and credential management."""

import hmac

from sqlalchemy.exc import SQLAlchemyError

from portfolio.exceptions import (
    AdminUserNotFoundError,
    InvalidCredentialsError,
    PortfolioError,
    ValidationError,
)
from portfolio.models import AdminUser, CredentialsUpdate, LoginRequest
from portfolio.repositories import AdminUserRepository
from portfolio.services.construction_mode import ConstructionModeStore
from portfolio.services.token_service import TokenService
from portfolio.utils.common import utc_now
from portfolio.utils.logger import logger
from portfolio.utils.passwords import check_password, hash_password


class AuthService:
    """Login and credential changes for the site administrator."""

    def __init__(
        self,
        user_repo: AdminUserRepository,
        token_service: TokenService,
        construction: ConstructionModeStore,
    ):
        """Initialize auth service.

        Args:
            user_repo: Admin user repository
            token_service: Issues session tokens
            construction: Construction-mode store toggled by login and credential changes
        """
        self.user_repo = user_repo
        self.token_service = token_service
        self.construction = construction

    async def authenticate(self, username: str, password: str) -> AdminUser:
        """Check credentials and record the login.

        A plaintext legacy password that matches is replaced by a bcrypt
        hash on the spot.

        Raises:
            InvalidCredentialsError: Unknown user or wrong password
        """
        user = await self.user_repo.find_by_username(username)
        if user is None:
            logger.info(f"Login failed for unknown admin '{username}'")
            raise InvalidCredentialsError()

        updates: dict[str, object] = {}
        if check_password(password, user.hashed_password):
            pass
        elif user.legacy_password is not None and hmac.compare_digest(
            password.encode("utf-8"), user.legacy_password.encode("utf-8")
        ):
            logger.info(f"Migrating legacy plaintext password of '{username}' to bcrypt")
            updates["hashed_password"] = hash_password(password)
            updates["legacy_password"] = None
        else:
            logger.info(f"Login failed for admin '{username}': wrong password")
            raise InvalidCredentialsError()

        updates["last_login"] = utc_now()
        return await self.user_repo.update(user, updates)

    async def login(self, credentials: LoginRequest) -> str:
        """Authenticate, issue a session token and open construction mode.

        Returns:
            Signed session token for the cookie
        """
        user = await self.authenticate(credentials.username, credentials.password)
        token = self.token_service.issue(user.id, user.username)
        logger.info(f"Admin '{user.username}' logged in")

        try:
            await self.construction.activate()
        except (SQLAlchemyError, PortfolioError) as e:
            logger.error(f"Could not activate construction mode after login: {e}")

        return token

    async def update_credentials(self, admin_id: int, data: CredentialsUpdate) -> tuple[AdminUser, str]:
        """Change username and/or password of the signed-in admin.

        Construction mode is switched off and a fresh token is issued for
        the (possibly new) username.

        Args:
            admin_id: Id from the current session token
            data: Validated change request

        Returns:
            Updated admin and the new session token

        Raises:
            AdminUserNotFoundError: The session refers to a deleted admin
            InvalidCredentialsError: Current password does not match
            ValidationError: Requested username is taken
        """
        user = await self.user_repo.get_optional(admin_id)
        if user is None:
            raise AdminUserNotFoundError()

        if not check_password(data.current_password, user.hashed_password):
            raise InvalidCredentialsError().with_context("Current password is incorrect.")

        updates: dict[str, object] = {}
        if data.new_username and data.new_username != user.username:
            existing = await self.user_repo.find_by_username(data.new_username)
            if existing is not None:
                raise ValidationError("Username is already taken.")
            updates["username"] = data.new_username
        if data.new_password:
            updates["hashed_password"] = hash_password(data.new_password)
            updates["legacy_password"] = None

        if updates:
            user = await self.user_repo.update(user, updates)
            logger.info(f"Credentials updated for admin '{user.username}'")

        await self.construction.deactivate()
        token = self.token_service.issue(user.id, user.username)
        return user, token
