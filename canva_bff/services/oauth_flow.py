"""OAuth 2.0 Authorization Code + PKCE client for Canva.

LIFECYCLE
---------
    IDLE ──authorize()──▶ AWAITING_CALLBACK ──handle_callback()──▶ AUTHENTICATED
      ▲                                                              │
      └──────────────────────── logout() ◀───────────────────────────┘
                                                refresh() stays in AUTHENTICATED
    Any rejected exchange or refresh ──▶ FAILED (restart at authorize())

authorize() may be called from any state; it simply starts another attempt.
Attempts are keyed by ``state``, so a second authorize does not invalidate
the first.

TOKEN USE
---------
get_valid_access_token() hands back whatever token is held without looking
at expires_at.  A stale token is discovered when Canva answers 401, and the
operator calls /refresh.  Proactive refresh would change observable
behavior under clock skew, so it is deliberately not done here.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from urllib.parse import urlencode

from canva_bff.core.errors import (
    AuthExchangeFailed,
    ConfigMissing,
    MissingVerifier,
    NoRefreshToken,
    ProviderError,
    RefreshFailed,
)
from canva_bff.core.metrics import OAUTH_EXCHANGES
from canva_bff.models.pending_authorization import PendingAuthorization
from canva_bff.models.token_set import TokenSet
from canva_bff.repos.pending_auth_repo import PendingAuthRepo
from canva_bff.repos.token_store import TokenStore
from canva_bff.services import pkce_service
from canva_bff.services.canva_client import CanvaClient
from canva_bff.services.redirect_resolver import RedirectResolver

logger = logging.getLogger(__name__)


class FlowState(enum.Enum):
    IDLE = "idle"
    AWAITING_CALLBACK = "awaiting_callback"
    AUTHENTICATED = "authenticated"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class AuthorizationRedirect:
    url: str
    state: str
    redirect_uri: str


class OAuthFlowController:
    def __init__(
        self,
        *,
        client_id: str | None,
        client_secret: str | None,
        authorize_url: str,
        scopes: tuple[str, ...],
        canva: CanvaClient,
        resolver: RedirectResolver,
        pending: PendingAuthRepo,
        store: TokenStore,
        state_ttl_seconds: int = 600,
    ) -> None:
        self._client_id = client_id
        self._client_secret = client_secret
        self._authorize_url = authorize_url
        self._scopes = scopes
        self._canva = canva
        self._resolver = resolver
        self._pending = pending
        self._store = store
        self._state_ttl = state_ttl_seconds
        self._tokens: TokenSet | None = None
        self._state = FlowState.IDLE

    @property
    def state(self) -> FlowState:
        return self._state

    # ------------------------------------------------------------------ authorize

    async def authorize(self, request_host: str | None = None) -> AuthorizationRedirect:
        if not self._client_id:
            raise ConfigMissing("CANVA_CLIENT_ID is not configured")

        redirect_uri = self._resolver.resolve(request_host)
        pkce = pkce_service.generate_pkce()
        state = pkce_service.generate_state()

        await self._pending.put(
            PendingAuthorization.new(
                state=state,
                verifier=pkce.verifier,
                redirect_uri=redirect_uri,
                ttl_seconds=self._state_ttl,
            )
        )

        params = {
            "response_type": "code",
            "client_id": self._client_id,
            "redirect_uri": redirect_uri,
            "scope": " ".join(self._scopes),
            "code_challenge_method": "S256",
            "code_challenge": pkce.challenge,
            "state": state,
        }
        url = f"{self._authorize_url}?{urlencode(params)}"
        self._state = FlowState.AWAITING_CALLBACK
        logger.info(
            "OAUTH FLOW [authorize] redirecting to Canva  redirect_uri=%s tier=%s",
            redirect_uri,
            self._resolver.tier,
        )
        return AuthorizationRedirect(url=url, state=state, redirect_uri=redirect_uri)

    # ------------------------------------------------------------------ callback

    async def handle_callback(self, code: str, state: str | None) -> TokenSet:
        # NOTE: never log the code or the verifier.
        pending = await self._pending.pop(state) if state else None
        if pending is None:
            logger.warning("OAUTH FLOW [callback] FAIL: no pending authorization for state")
            raise MissingVerifier()

        form = {
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": pending.redirect_uri,
            "client_id": self._client_id or "",
            "client_secret": self._client_secret or "",
            "code_verifier": pending.verifier,
        }
        logger.info(
            "OAUTH FLOW [callback] exchanging authorization code  redirect_uri=%s",
            pending.redirect_uri,
        )
        try:
            data = await self._canva.post_token_form(form)
            tokens = TokenSet.from_token_response(data)
        except ProviderError as exc:
            self._state = FlowState.FAILED
            OAUTH_EXCHANGES.labels(grant_type="authorization_code", result="error").inc()
            logger.warning(
                "OAUTH FLOW [callback] FAIL: Canva rejected the exchange  status=%s",
                exc.status_code,
            )
            raise AuthExchangeFailed(details=exc.body) from None
        except (KeyError, TypeError, ValueError):
            self._state = FlowState.FAILED
            OAUTH_EXCHANGES.labels(grant_type="authorization_code", result="error").inc()
            logger.warning("OAUTH FLOW [callback] FAIL: token response had no access_token")
            raise AuthExchangeFailed(
                details="Token response did not include an access_token"
            ) from None

        self._remember(tokens)
        self._state = FlowState.AUTHENTICATED
        OAUTH_EXCHANGES.labels(grant_type="authorization_code", result="ok").inc()
        logger.info(
            "OAUTH FLOW [callback] tokens acquired  refresh_token=%s",
            "yes" if tokens.refresh_token else "no",
        )
        return tokens

    # ------------------------------------------------------------------ refresh

    async def refresh(self) -> TokenSet:
        current = self.current_tokens()
        if current is None or not current.refresh_token:
            raise NoRefreshToken()

        form = {
            "grant_type": "refresh_token",
            "refresh_token": current.refresh_token,
            "client_id": self._client_id or "",
            "client_secret": self._client_secret or "",
        }
        try:
            data = await self._canva.post_token_form(form)
            tokens = TokenSet.from_token_response(
                data, previous_refresh_token=current.refresh_token
            )
        except ProviderError as exc:
            self._state = FlowState.FAILED
            OAUTH_EXCHANGES.labels(grant_type="refresh_token", result="error").inc()
            logger.warning("Token refresh rejected by Canva  status=%s", exc.status_code)
            raise RefreshFailed(details=exc.body) from None
        except (KeyError, TypeError, ValueError):
            self._state = FlowState.FAILED
            OAUTH_EXCHANGES.labels(grant_type="refresh_token", result="error").inc()
            raise RefreshFailed(
                details="Token response did not include an access_token"
            ) from None

        self._remember(tokens)
        self._state = FlowState.AUTHENTICATED
        OAUTH_EXCHANGES.labels(grant_type="refresh_token", result="ok").inc()
        logger.info(
            "Access token refreshed  rotated_refresh_token=%s",
            "yes" if tokens.refresh_token != current.refresh_token else "no",
        )
        return tokens

    # ------------------------------------------------------------------ reuse

    def current_tokens(self) -> TokenSet | None:
        if self._tokens is not None:
            return self._tokens
        return self._store.load()

    def get_valid_access_token(self) -> str | None:
        tokens = self.current_tokens()
        return tokens.access_token if tokens else None

    def logout(self) -> None:
        self._tokens = None
        self._store.clear()
        self._state = FlowState.IDLE
        logger.info("Stored Canva tokens cleared")

    def _remember(self, tokens: TokenSet) -> None:
        # The in-memory copy survives read-only stores for this process's lifetime.
        self._tokens = tokens
        self._store.save(tokens)
