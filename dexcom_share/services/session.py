"""Share session management.

Turns credentials into a session id:

    username + password  --AuthenticatePublisherAccount-->  account id
    account id + password  --LoginPublisherAccountById-->   session id

States, in order: EMPTY (username only), HAS_ACCOUNT_ID, HAS_SESSION
(session id obtained, not yet cached) and ACTIVE (session id cached).
Invalidation drops back to HAS_ACCOUNT_ID; an account id, once known,
is never re-derived.

Authentication failures are classified and raised, never retried here.
The transport already retried transient failures, and the facade owns
the single retry after a session is rejected.

Concurrency: without ``single_flight``, two concurrent callers that both
find the cache empty will both authenticate; the last cache write wins.
Whether Share tolerates near-simultaneous logins for one account is
unverified. ``single_flight`` serializes acquisition within this client
instance only, never across processes sharing a remote cache.
"""

import asyncio
import enum

from dexcom_share.core.constants import (
    DEXCOM_AUTHENTICATE_ENDPOINT,
    DEXCOM_LOGIN_ID_ENDPOINT,
)
from dexcom_share.core.errors import DexcomError, DexcomErrorCode
from dexcom_share.core.params import is_default_uuid, is_valid_uuid
from dexcom_share.core.session_cache import SessionCache
from dexcom_share.logging_config import get_logger, redact
from dexcom_share.schemas.share import validate_auth_response
from dexcom_share.services.share_api import ShareApi

logger = get_logger(__name__)


class SessionState(str, enum.Enum):
    """Where the manager is in the credential -> session flow."""

    EMPTY = "empty"
    HAS_ACCOUNT_ID = "has_account_id"
    HAS_SESSION = "has_session"
    ACTIVE = "active"


class SessionManager:
    """Obtain, cache and invalidate the Share session id.

    Args:
        api: Share API client for the selected region
        application_id: Region's application id
        password: Account password
        cache: Session cache (owned by the caller)
        session_ttl: Seconds a session id is reused
        username: Share username (when no account id is known)
        account_id: Share account id (skips account authentication)
        single_flight: Serialize concurrent ``ensure_session`` calls
    """

    def __init__(
        self,
        api: ShareApi,
        application_id: str,
        password: str,
        cache: SessionCache,
        session_ttl: float,
        username: str | None = None,
        account_id: str | None = None,
        single_flight: bool = False,
    ):
        self._api = api
        self._application_id = application_id
        self._password = password
        self._username = username
        self._account_id = account_id
        self._cache = cache
        self._session_ttl = session_ttl
        self._lock = asyncio.Lock() if single_flight else None
        self._state = SessionState.HAS_ACCOUNT_ID if account_id else SessionState.EMPTY

    @property
    def account_id(self) -> str | None:
        return self._account_id

    @property
    def username(self) -> str | None:
        return self._username

    @property
    def state(self) -> SessionState:
        return self._state

    async def ensure_session(self) -> str:
        """Return a usable session id, authenticating if needed.

        Raises:
            DexcomError: ARGUMENT for missing/malformed/sentinel ids,
                ACCOUNT for rejected credentials, SERVER for unexpected
                responses
        """
        if self._lock is None:
            return await self._ensure_session()
        async with self._lock:
            return await self._ensure_session()

    async def invalidate(self) -> None:
        """Forget the cached session id. The account id is kept."""
        await self._cache.clear()
        self._state = (
            SessionState.HAS_ACCOUNT_ID if self._account_id else SessionState.EMPTY
        )
        logger.info("Share session invalidated")

    async def _ensure_session(self) -> str:
        cached = await self._cache.get()
        if cached and is_valid_uuid(cached) and not is_default_uuid(cached):
            self._state = SessionState.ACTIVE
            return cached

        if not self._account_id:
            if not isinstance(self._username, str) or not self._username:
                raise DexcomError(DexcomErrorCode.USERNAME_INVALID)
            if not isinstance(self._password, str) or not self._password:
                raise DexcomError(DexcomErrorCode.PASSWORD_INVALID)
            account_id = await self._authenticate_account()
            self._check_id(
                account_id,
                DexcomErrorCode.ACCOUNT_ID_INVALID,
                DexcomErrorCode.ACCOUNT_ID_DEFAULT,
            )
            self._account_id = account_id
            self._state = SessionState.HAS_ACCOUNT_ID
        else:
            self._check_id(
                self._account_id,
                DexcomErrorCode.ACCOUNT_ID_INVALID,
                DexcomErrorCode.ACCOUNT_ID_DEFAULT,
            )

        session_id = await self._login()
        self._check_id(
            session_id,
            DexcomErrorCode.SESSION_ID_INVALID,
            DexcomErrorCode.SESSION_ID_DEFAULT,
        )
        self._state = SessionState.HAS_SESSION

        await self._cache.set(session_id, self._session_ttl)
        self._state = SessionState.ACTIVE
        logger.info(
            "Share session established",
            account_id=redact(self._account_id),
            ttl_seconds=self._session_ttl,
        )
        return session_id

    async def _authenticate_account(self) -> str:
        logger.debug("Authenticating Share account", username=redact(self._username))
        data = await self._api.post(
            DEXCOM_AUTHENTICATE_ENDPOINT,
            json_body={
                "accountName": self._username,
                "password": self._password,
                "applicationId": self._application_id,
            },
        )
        return validate_auth_response(data)

    async def _login(self) -> str:
        logger.debug("Logging in to Share", account_id=redact(self._account_id))
        data = await self._api.post(
            DEXCOM_LOGIN_ID_ENDPOINT,
            json_body={
                "accountId": self._account_id,
                "password": self._password,
                "applicationId": self._application_id,
            },
        )
        return validate_auth_response(data)

    @staticmethod
    def _check_id(
        value: str,
        invalid_code: DexcomErrorCode,
        default_code: DexcomErrorCode,
    ) -> None:
        if not is_valid_uuid(value):
            raise DexcomError(invalid_code)
        if is_default_uuid(value):
            raise DexcomError(default_code)
