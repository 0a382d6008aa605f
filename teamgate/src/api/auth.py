"""
Google sign-in API endpoints.

Provides the OAuth 2.0 sign-in flow:
- GET /auth/google - Redirect to the Google consent screen
- GET /auth/google.callback - Complete sign-in, provisioning Team and User

On success the callback sets the ``lastSignedIn`` and ``accessToken``
cookies on the parent domain and redirects to the Team address. New Teams
start with a generated avatar; the logo lookup and re-hosting run as a
background task after the redirect. Accounts rejected by the hosted-domain
policy are sent back to the sign-in page with a ``notice`` query parameter.

Rate Limiting:
- /auth/google: 10 requests per minute per IP
- /auth/google.callback: 10 requests per minute per IP
"""

from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, Request, status
from fastapi.responses import RedirectResponse
from slowapi import Limiter
from sqlalchemy.orm import Session

from teamgate.src.auth.domain_policy import DomainPolicy
from teamgate.src.auth.google_client import PROVIDER, GoogleIdentityExchange
from teamgate.src.config.oauth import OAuthSettings, get_oauth_settings
from teamgate.src.config.settings import AppSettings, get_settings
from teamgate.src.db.database import get_db, get_session_factory
from teamgate.src.middleware.auth import ACCESS_TOKEN_COOKIE, get_token_service
from teamgate.src.services.auth_service import GoogleSignInService
from teamgate.src.services.avatar_service import AvatarResolver
from teamgate.src.services.avatar_storage import AvatarStorage
from teamgate.src.services.exceptions import MissingParameter, UpstreamAuthError
from teamgate.src.services.team_service import refresh_team_avatar
from teamgate.src.services.token_service import TokenService
from teamgate.src.services.user_service import record_sign_in
from teamgate.src.utils.client_ip import get_client_ip, rate_limit_key
from teamgate.src.utils.domains import strip_subdomain, team_address
from teamgate.src.utils.logging_config import get_logger


logger = get_logger("api")

# Rate limiter for auth endpoints
limiter = Limiter(key_func=rate_limit_key)


router = APIRouter(prefix="/auth", tags=["Authentication"])

LAST_SIGNED_IN_COOKIE = "lastSignedIn"
LAST_SIGNED_IN_EXPIRES = datetime(2100, 1, 1, tzinfo=timezone.utc)


# ============================================================================
# Dependencies
# ============================================================================


def get_identity_exchange() -> GoogleIdentityExchange:
    """FastAPI dependency providing the Google code exchange."""
    return GoogleIdentityExchange(get_oauth_settings())


def get_domain_policy() -> DomainPolicy:
    """FastAPI dependency providing the hosted-domain policy."""
    return DomainPolicy(get_oauth_settings().allowed_domains)


def get_avatar_resolver() -> AvatarResolver:
    """FastAPI dependency providing the Team avatar resolver."""
    return AvatarResolver(get_settings())


def get_avatar_storage() -> AvatarStorage:
    """FastAPI dependency providing avatar storage."""
    return AvatarStorage(get_settings())


def _cookie_domain(request: Request) -> Optional[str]:
    """Parent domain for the sign-in cookies; None keeps them host-only."""
    domain = strip_subdomain(request.url.hostname or "")
    return domain if "." in domain else None


def _notice_url(settings: AppSettings, notice: str) -> str:
    return f"{settings.base_url.rstrip('/')}/?notice={notice}"


# ============================================================================
# Endpoints
# ============================================================================


@router.get(
    "/google",
    summary="Initiate Google sign-in",
    description="Redirects to the Google consent screen.",
    responses={
        302: {"description": "Redirect to Google"},
        503: {"description": "Google sign-in is not configured"},
    },
)
@limiter.limit("10/minute")
async def google_login(
    request: Request,
    oauth_settings: OAuthSettings = Depends(get_oauth_settings),
    exchange: GoogleIdentityExchange = Depends(get_identity_exchange),
):
    """
    Initiate Google sign-in.

    After consent, Google redirects back to /auth/google.callback.
    """
    if not oauth_settings.google_enabled:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={
                "error": "Provider not configured",
                "error_code": "provider_not_configured",
                "message": "Google sign-in is not configured",
            },
        )

    url = exchange.authorization_url()
    logger.info(f"Redirecting to Google OAuth: {url[:50]}...")
    return RedirectResponse(url=url, status_code=status.HTTP_302_FOUND)


@router.get(
    "/google.callback",
    summary="Handle Google callback",
    description="Completes Google sign-in and redirects to the Team.",
    responses={
        302: {"description": "Redirect to the Team, or to the sign-in page with a notice"},
        400: {"description": "Missing authorization code"},
        502: {"description": "Google token or profile exchange failed"},
    },
)
@limiter.limit("10/minute")
async def google_callback(
    request: Request,
    background_tasks: BackgroundTasks,
    code: Optional[str] = Query(None, description="Authorization code"),
    db: Session = Depends(get_db),
    session_factory: Callable[[], Session] = Depends(get_session_factory),
    settings: AppSettings = Depends(get_settings),
    exchange: GoogleIdentityExchange = Depends(get_identity_exchange),
    policy: DomainPolicy = Depends(get_domain_policy),
    avatar_resolver: AvatarResolver = Depends(get_avatar_resolver),
    avatar_storage: AvatarStorage = Depends(get_avatar_storage),
    tokens: TokenService = Depends(get_token_service),
):
    """
    Handle the Google OAuth callback.

    Success: Redirects to the Team address with session cookies set
    Policy rejection: Redirects to {URL}/?notice={code}
    """
    service = GoogleSignInService(db, exchange, policy, avatar_resolver)

    try:
        result = await service.sign_in(code)
    except MissingParameter as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "error": "Missing parameter",
                "error_code": "missing_parameter",
                "message": e.message,
            },
        )
    except UpstreamAuthError as e:
        logger.error(f"Google sign-in failed upstream: {e}")
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail={
                "error": "Authentication provider error",
                "error_code": "upstream_auth_failed",
                "message": e.message,
            },
        )

    if not result.success:
        return RedirectResponse(
            url=_notice_url(settings, result.notice),
            status_code=status.HTTP_302_FOUND,
        )

    background_tasks.add_task(record_sign_in, session_factory, result.user.id, get_client_ip(request))
    if result.team_created:
        background_tasks.add_task(
            refresh_team_avatar,
            session_factory,
            avatar_resolver,
            avatar_storage,
            result.team.id,
            result.team.external_tenant_id,
        )

    access_token = tokens.issue_access_token(result.user)
    response = RedirectResponse(
        url=team_address(settings.base_url, result.team.subdomain),
        status_code=status.HTTP_302_FOUND,
    )

    domain = _cookie_domain(request)
    response.set_cookie(
        LAST_SIGNED_IN_COOKIE,
        PROVIDER,
        expires=LAST_SIGNED_IN_EXPIRES,
        domain=domain,
        httponly=False,
    )
    response.set_cookie(
        ACCESS_TOKEN_COOKIE,
        access_token,
        expires=datetime.now(timezone.utc) + timedelta(days=settings.access_token_expiry_days),
        domain=domain,
        httponly=False,
    )
    return response
