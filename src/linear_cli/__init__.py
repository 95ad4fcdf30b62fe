"""Linear CLI package and reusable client components."""

__version__ = "0.1.0"

from . import queries  # noqa: E402
from .api import LinearClient  # noqa: E402
from .cli import app  # noqa: E402
from .client import GraphQLClient  # noqa: E402
from .config import Settings  # noqa: E402
from .credentials import AuthStatus, CredentialResolver, StaticKey  # noqa: E402
from .errors import (  # noqa: E402
    ApiError,
    AuthError,
    LinearError,
    PaginationError,
    ProtocolError,
    UnauthenticatedError,
)
from .oauth import PKCEAuthorizer  # noqa: E402
from .pagination import Page, Paginator  # noqa: E402
from .session import OAuthSession, SessionFile  # noqa: E402

__all__ = [
    "__version__",
    "app",
    "queries",
    "LinearClient",
    "GraphQLClient",
    "Settings",
    "CredentialResolver",
    "StaticKey",
    "AuthStatus",
    "OAuthSession",
    "SessionFile",
    "PKCEAuthorizer",
    "Paginator",
    "Page",
    "LinearError",
    "AuthError",
    "ApiError",
    "UnauthenticatedError",
    "ProtocolError",
    "PaginationError",
]
