import logging
from dataclasses import dataclass

import httpx
from fastapi import Depends, HTTPException, Request

from dayfit.core.config import settings

logger = logging.getLogger("dayfit.auth")

ACCESS_TOKEN_COOKIE = "access_token"


@dataclass
class AuthUser:
    id: str
    email: str | None = None
    name: str = "User"
    role: str = "User"


class IdentityProvider:
    """
    Resolves bearer tokens against the external identity provider
    (GET {base}/auth/v1/user).
    """

    def __init__(
        self,
        base_url: str,
        api_key: str | None = None,
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self.transport = transport

    def get_user(self, token: str) -> AuthUser | None:
        """Return the user owning `token`, or None if the token is not valid."""
        headers = {"Authorization": f"Bearer {token}"}
        if self.api_key:
            headers["apikey"] = self.api_key

        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                resp = client.get(f"{self.base_url}/auth/v1/user", headers=headers)
        except httpx.HTTPError as e:
            logger.error("Identity provider unreachable: %s", e)
            raise HTTPException(status_code=503, detail=f"Identity provider unreachable: {e}")

        if resp.status_code in (401, 403):
            return None
        if resp.status_code != 200:
            raise HTTPException(
                status_code=502,
                detail=f"Identity provider error: {resp.text}",
            )

        try:
            payload = resp.json()
        except ValueError:
            raise HTTPException(status_code=502, detail="Identity provider returned invalid JSON")
        user_id = payload.get("id")
        if not user_id:
            return None

        email = payload.get("email")
        metadata = payload.get("user_metadata") or {}
        name = metadata.get("full_name") or (email.split("@")[0] if email else None) or "User"
        return AuthUser(
            id=str(user_id),
            email=email,
            name=name,
            role=metadata.get("role") or "User",
        )


def get_identity_provider() -> IdentityProvider:
    if not settings.AUTH_API_BASE:
        raise HTTPException(500, "Identity provider not configured (AUTH_API_BASE missing)")
    return IdentityProvider(
        settings.AUTH_API_BASE,
        api_key=settings.AUTH_API_KEY,
        timeout=settings.AUTH_TIMEOUT_SECONDS,
    )


def extract_token(request: Request) -> str | None:
    header = request.headers.get("Authorization")
    if header and header.lower().startswith("bearer "):
        token = header[7:].strip()
        if token:
            return token
    return request.cookies.get(ACCESS_TOKEN_COOKIE) or None


def optional_user(
    request: Request,
    provider: IdentityProvider = Depends(get_identity_provider),
) -> AuthUser | None:
    token = extract_token(request)
    if not token:
        return None
    return provider.get_user(token)


def current_user(user: AuthUser | None = Depends(optional_user)) -> AuthUser:
    if user is None:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return user
