"""
Admin authentication for the database browser.
"""
import logging
import secrets

from sqladmin.authentication import AuthenticationBackend
from starlette.requests import Request

from psychevaluator.core.security import authenticate_admin

logger = logging.getLogger(__name__)


class AdminAuth(AuthenticationBackend):
    """
    Form login for the browser using the same credential check as the API.

    Sessions are stored in signed cookies (SessionMiddleware).
    """

    async def login(self, request: Request) -> bool:
        form = await request.form()
        username = form.get("username")
        password = form.get("password")

        if not isinstance(username, str) or not isinstance(password, str):
            logger.warning("Admin browser login failed: invalid credentials")
            return False

        if not authenticate_admin(username, password):
            logger.warning("Admin browser login failed: invalid credentials")
            return False

        logger.info("Admin browser login successful")
        request.session.update({"token": secrets.token_urlsafe(32)})
        return True

    async def logout(self, request: Request) -> bool:
        request.session.clear()
        return True

    async def authenticate(self, request: Request) -> bool:
        return bool(request.session.get("token"))
