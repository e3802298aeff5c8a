"""
Authentication service: register, login, refresh and logout flows.

Every flow runs as one unit of work so its writes land together or not at
all. Failures are raised as the typed errors of ``studyws.core.errors``.
"""
import logging
from datetime import timedelta
from functools import partial

from email_validator import EmailNotValidError, validate_email
from motor.motor_asyncio import AsyncIOMotorClient

from studyws.config import Settings, get_settings
from studyws.core.clock import utcnow
from studyws.core.errors import AuthError, ValidationError
from studyws.core.security import hash_password, hash_refresh_token, verify_password
from studyws.core.tokens import (
    TokenType,
    issue_access_token,
    issue_refresh_token,
    verify_token,
)
from studyws.database.databases import auth_db
from studyws.database.transactions import MongoUnitOfWork, run_in_transaction
from studyws.models.user import User
from studyws.schemas.auth import (
    AuthSessionData,
    AuthTokens,
    ClientInfo,
    LoginRequest,
    RefreshRequest,
    RegisterRequest,
)
from studyws.schemas.user import AuthContext, SessionInfo, UserProfile
from studyws.services.session_store import SessionStore
from studyws.services.user_store import UserStore

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8

INVALID_CREDENTIALS = "Invalid credentials"
INVALID_REFRESH_TOKEN = "Invalid refresh token"
REFRESH_NOT_FOUND = "Refresh token not found or revoked"


def normalize_email(email: str) -> str:
    """Canonical form used for storage and lookup."""
    return email.strip().lower()


class AuthService:
    """Service for authentication operations."""

    def __init__(
        self,
        client: AsyncIOMotorClient,
        settings: Settings | None = None,
        use_transactions: bool | None = None,
    ):
        """
        Initialize with the Mongo client (needed for transactions).

        ``use_transactions`` is the mode resolved at startup; when omitted the
        configured MONGO_TRANSACTIONS value is used, and an unset value means
        no transactions.
        """
        self.client = client
        self.settings = settings or get_settings()
        if use_transactions is None:
            use_transactions = bool(self.settings.mongo_transactions)
        self.use_transactions = use_transactions
        db = client[auth_db.DB_NAME]
        self.users = UserStore(db)
        self.sessions = SessionStore(db)

    async def _in_transaction(self, work):
        return await run_in_transaction(
            self.client,
            work,
            use_transactions=self.use_transactions,
            max_attempts=self.settings.transaction_max_attempts,
        )

    async def _open_session(
        self,
        user_id: int,
        email: str,
        client: ClientInfo,
        uow: MongoUnitOfWork,
    ) -> AuthTokens:
        """Issue a token pair and persist the session tracking its refresh token."""
        access_token = issue_access_token(user_id, email)
        refresh_token = issue_refresh_token(user_id, email)
        expires_at = utcnow() + timedelta(seconds=self.settings.jwt_refresh_token_ttl_seconds)

        session_id = await self.sessions.create(
            user_id,
            hash_refresh_token(refresh_token),
            expires_at,
            user_agent=client.user_agent,
            ip=client.ip,
            session=uow.session,
        )

        return AuthTokens(
            access_token=access_token,
            refresh_token=refresh_token,
            token_type="Bearer",
            expires_in=self.settings.jwt_access_token_ttl_seconds,
            session_id=session_id,
        )

    @staticmethod
    def _validate_registration(request: RegisterRequest) -> tuple[str, str, str]:
        email = normalize_email(request.email)
        try:
            validate_email(email, check_deliverability=False)
        except EmailNotValidError:
            raise ValidationError("Valid email is required")

        if len(request.password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
        # bcrypt cannot hash NUL bytes
        if "\x00" in request.password:
            raise ValidationError("Password must not contain NUL characters")

        first_name = request.first_name.strip()
        last_name = request.last_name.strip()
        if not first_name or not last_name:
            raise ValidationError("First name and last name are required")

        return email, first_name, last_name

    async def register(self, request: RegisterRequest, client: ClientInfo) -> AuthSessionData:
        """
        Create an account and sign it in.

        Args:
            request: Registration body
            client: Caller metadata recorded on the session

        Returns:
            AuthSessionData with the profile, both tokens and the session ID

        Raises:
            ValidationError: Bad email, short password or blank names
            ConflictError: Email already registered
        """
        email, first_name, last_name = self._validate_registration(request)
        hashed = hash_password(request.password)

        async def work(uow: MongoUnitOfWork) -> AuthSessionData:
            user = await self.users.create(
                email, hashed, first_name, last_name, session=uow.session
            )
            uow.on_rollback(partial(self.users.delete, user.id))

            tokens = await self._open_session(user.id, user.email, client, uow)
            return AuthSessionData(user=self._profile(user), **tokens.model_dump())

        result = await self._in_transaction(work)
        logger.info(f"Registered user {result.user.id} (session {result.session_id})")
        return result

    async def login(self, request: LoginRequest, client: ClientInfo) -> AuthSessionData:
        """
        Authenticate with email and password and open a new session.

        Unknown email and wrong password produce the same error.

        Raises:
            ValidationError: Email or password missing
            AuthError: Invalid credentials
        """
        email = normalize_email(request.email)
        if not email or not request.password:
            raise ValidationError("Email and password are required")

        user = await self.users.get_by_email(email)
        if not verify_password(request.password, user.hashed_password if user else None):
            reason = "unknown email" if user is None else f"wrong password for user {user.id}"
            logger.info(f"Login rejected from {client.ip or 'unknown'}: {reason}")
            raise AuthError(INVALID_CREDENTIALS)

        async def work(uow: MongoUnitOfWork) -> AuthSessionData:
            await self.users.touch_last_access(user.id, session=uow.session)
            tokens = await self._open_session(user.id, user.email, client, uow)
            return AuthSessionData(user=self._profile(user), **tokens.model_dump())

        result = await self._in_transaction(work)
        logger.info(f"User {user.id} logged in (session {result.session_id})")
        return result

    async def refresh(self, request: RefreshRequest, client: ClientInfo) -> AuthTokens:
        """
        Rotate a refresh token: revoke its session and issue a new pair.

        The presented token is single-use. Revocation is a compare-and-set,
        so when two requests race with the same token only one of them wins.

        Raises:
            ValidationError: Token missing
            AuthError: Token invalid, expired, not a refresh token, unknown,
                already used or revoked
        """
        token = request.refresh_token.strip()
        if not token:
            raise ValidationError("Refresh token is required")

        claims = verify_token(token)
        if claims is None or claims.type is not TokenType.REFRESH:
            raise AuthError(INVALID_REFRESH_TOKEN)

        token_hash = hash_refresh_token(token)

        async def work(uow: MongoUnitOfWork) -> AuthTokens:
            current = await self.sessions.find_active_by_hash(
                claims.subject, token_hash, session=uow.session
            )
            if current is None:
                logger.warning(f"Refresh rejected for user {claims.subject}: no active session")
                raise AuthError(REFRESH_NOT_FOUND)

            revocation_id = await self.sessions.revoke(current.id, session=uow.session)
            if revocation_id is None:
                logger.warning(f"Refresh rejected for user {claims.subject}: session {current.id} rotated concurrently")
                raise AuthError(REFRESH_NOT_FOUND)
            uow.on_rollback(partial(self.sessions.reinstate, current.id, revocation_id))

            tokens = await self._open_session(claims.subject, claims.email, client, uow)
            logger.info(f"Rotated session {current.id} -> {tokens.session_id} for user {claims.subject}")
            return tokens

        return await self._in_transaction(work)

    async def logout(self, user: AuthContext) -> int:
        """
        Revoke every active session of the user (logout everywhere).

        Idempotent: a second call revokes nothing.

        Returns:
            Number of sessions revoked
        """
        async def work(uow: MongoUnitOfWork) -> int:
            return await self.sessions.revoke_all_for_user(user.id, session=uow.session)

        revoked = await self._in_transaction(work)
        logger.info(f"User {user.id} logged out, {revoked} session(s) revoked")
        return revoked

    async def list_sessions(self, user: AuthContext) -> list[SessionInfo]:
        """Active sessions of the user, newest first."""
        sessions = await self.sessions.list_active_for_user(user.id)
        return [
            SessionInfo(
                id=s.id,
                created_at=s.created_at,
                expires_at=s.expires_at,
                user_agent=s.user_agent,
                ip=s.ip,
            )
            for s in sessions
        ]

    @staticmethod
    def _profile(user: User) -> UserProfile:
        return UserProfile(
            id=user.id,
            email=user.email,
            first_name=user.first_name,
            last_name=user.last_name,
        )
