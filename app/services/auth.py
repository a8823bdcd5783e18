"""
Auth Service

Sign-in, sign-out and current user lookup through Supabase auth, plus the
one table that decides what each role may do.
"""

import logging
from typing import Any, Dict, FrozenSet, Optional

from supabase import AuthError

from app.models.enums import Capability, Role
from app.models.schemas import CurrentUser

logger = logging.getLogger(__name__)

TECHNICIAN_CAPABILITIES: FrozenSet[Capability] = frozenset({
    Capability.VIEW_OWN_DASHBOARD,
    Capability.VIEW_JOBS,
    Capability.VIEW_PAYOUT,
    Capability.SUBMIT_PART_REQUEST,
})

CAPABILITIES: Dict[Role, FrozenSet[Capability]] = {
    Role.TECHNICIAN: TECHNICIAN_CAPABILITIES,
    Role.ADMIN: TECHNICIAN_CAPABILITIES | {
        Capability.VIEW_ALL_TECHNICIANS,
        Capability.VIEW_CLIENTS,
        Capability.VIEW_APPLIANCES,
        Capability.DECIDE_PART_REQUEST,
        Capability.IMPORT_DATA,
        Capability.RUN_CLEANUP,
    },
}


def can(role: Optional[Role], capability: Capability) -> bool:
    if role is None:
        return False
    return capability in CAPABILITIES.get(role, frozenset())


class AuthService:
    """Supabase auth wrapper; the technicians table supplies the role"""

    def __init__(self, auth_client: Any, db):
        self.auth_client = auth_client
        self.db = db

    async def login(self, email: str, password: str) -> Dict[str, Any]:
        """
        Sign in with email and password.

        Returns:
            access_token, refresh_token and the signed-in user

        Raises:
            AuthError on bad credentials
        """
        response = await self.auth_client.auth.sign_in_with_password({"email": email, "password": password})
        session = response.session
        user = await self._build_user(response.user.email if response.user else email)
        logger.info(f"[Auth] Signed in {email}")
        return {
            "access_token": session.access_token if session else None,
            "refresh_token": session.refresh_token if session else None,
            "user": user,
        }

    async def logout(self, access_token: str) -> None:
        await self.auth_client.auth.admin.sign_out(access_token)
        logger.info("[Auth] Signed out")

    async def current_user(self, access_token: str) -> Optional[CurrentUser]:
        """User for a bearer token, None when the token is invalid"""
        try:
            response = await self.auth_client.auth.get_user(access_token)
        except AuthError as e:
            logger.warning(f"[Auth] Token rejected: {e}")
            return None
        if not response or not response.user:
            return None
        return await self._build_user(response.user.email)

    async def _build_user(self, email: Optional[str]) -> CurrentUser:
        technician = await self.db.get_technician_by_email(email) if email else None
        return CurrentUser(email=email, technician=technician)
