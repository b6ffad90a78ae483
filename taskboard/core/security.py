import jwt

from .config import settings
from ..schemas.user import Identity


class JWTIdentityProvider:
    """Verifies access tokens issued by the external identity provider.

    Tokens are HS256 JWTs signed with the provider's secret; ``sub`` is the
    user id and profile details live in ``user_metadata``.
    """

    def __init__(self, secret: str, algorithm: str = "HS256", audience: str = "authenticated"):
        self.secret = secret
        self.algorithm = algorithm
        self.audience = audience

    def verify(self, token: str) -> Identity:
        """Return the caller's identity, or raise ``jwt.PyJWTError``."""
        payload = jwt.decode(
            token,
            self.secret,
            algorithms=[self.algorithm],
            audience=self.audience,
            options={"require": ["sub", "exp"]},
        )
        metadata = payload.get("user_metadata") or {}
        return Identity(
            user_id=str(payload["sub"]),
            email=payload.get("email") or "",
            name=metadata.get("name") or metadata.get("full_name"),
            avatar_url=metadata.get("avatar_url"),
        )


identity_provider = JWTIdentityProvider(
    settings.AUTH_JWT_SECRET,
    algorithm=settings.AUTH_JWT_ALGORITHM,
    audience=settings.AUTH_JWT_AUDIENCE,
)


# Dependency: process-wide provider, overridable in tests
def get_identity_provider() -> JWTIdentityProvider:
    return identity_provider
