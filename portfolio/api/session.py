"""
Admin session termination.
"""

from sqlalchemy.exc import SQLAlchemyError
from starlette.responses import Response

from portfolio.api.security import clear_session_cookie
from portfolio.exceptions import PortfolioError
from portfolio.models import ActionResult
from portfolio.services.construction_mode import ConstructionModeStore
from portfolio.utils.logger import logger


async def terminate_session(response: Response, store: ConstructionModeStore) -> ActionResult:
    """End the admin session.

    The cookie is always removed. Switching construction mode off is best
    effort: a store failure is logged and the logout still succeeds.
    Calling this repeatedly is harmless.
    """
    clear_session_cookie(response)

    try:
        await store.deactivate()
    except (SQLAlchemyError, PortfolioError) as e:
        logger.error(f"Failed to deactivate construction mode on logout: {e}")

    return ActionResult.ok()
