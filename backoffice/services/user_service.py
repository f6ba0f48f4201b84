import logging
from typing import Any, Dict, List, Mapping, Optional

from sqlalchemy.orm import Session

from .common import Payload, commit, fetch, validate_payload
from ..core.config import QueryConfig
from ..core.errors import BackofficeError, MutationResult, NotFound, ValidationError
from ..core.query_service import QueryResult, TabularQueryService
from ..core.view_cache import ListViewCache
from ..models.account import (
    NotificationPreferences,
    UserCreate,
    UserDisabledUpdate,
    UserProfileUpdate,
    UserRoleUpdate,
)
from ..models.base import utcnow
from ..models.enums import Role, values
from ..models.user import NotificationPreference, User

logger = logging.getLogger(__name__)

KIND = "user"

# The user screen's role dropdown predates the current role names
ROLE_ALIASES = {"user": Role.CUSTOMER.value, "manager": Role.STAFF.value}


class UserService:
    def __init__(self, db: Session, cache: Optional[ListViewCache] = None, config: Optional[QueryConfig] = None):
        self.db = db
        self.cache = cache
        self.queries = TabularQueryService(db, config, cache)

    # --- Reads ---

    def list(self, params: Optional[Mapping[str, Any]] = None) -> QueryResult:
        """
        Users page. Besides the common list parameters it honours the older
        `role` parameter ("all", a role name, or one of ROLE_ALIASES).
        """
        criteria = []
        role = self._role_param(params)
        if role is not None:
            criteria.append(User.role == role)
        return self.queries.list(KIND, params, extra_criteria=criteria, cache_key=f"role={role}")

    def list_brokers(self) -> List[Dict[str, Any]]:
        rows = fetch(self.db, "fetch brokers", lambda: (
            self.db.query(User).filter(User.role == Role.BROKER.value).order_by(User.name.asc()).all()
        ))
        return [row.to_dict() for row in rows]

    def get(self, user_id: str) -> Optional[Dict[str, Any]]:
        row = self._find(user_id)
        return row.to_dict() if row else None

    def get_role(self, user_id: str) -> Optional[str]:
        row = self._find(user_id)
        return row.role if row else None

    def get_notification_preferences(self, user_id: str) -> Dict[str, Any]:
        prefs = fetch(self.db, "load notification preferences",
                      lambda: self.db.get(NotificationPreference, user_id))
        if prefs is None:
            return NotificationPreferences().model_dump()
        return prefs.to_dict()

    # --- Writes ---

    def create(self, payload: Payload) -> MutationResult:
        try:
            data = validate_payload(UserCreate, payload)
            existing = fetch(self.db, "check existing user", lambda: (
                self.db.query(User)
                .filter((User.email == data.email) | (User.user_id == data.user_id))
                .first()
            ))
            if existing is not None:
                if existing.user_id == data.user_id:
                    raise ValidationError(["user_id: User already registered"])
                raise ValidationError(["email: Email already registered"])

            user = User(user_id=data.user_id, email=data.email, name=data.name, role=data.role.value)
            self.db.add(user)
            commit(self.db, "create user", refresh=user)
        except BackofficeError as e:
            return MutationResult.failure(e)

        logger.info(f"User {user.user_id} created with role {user.role}")
        self._invalidate()
        return MutationResult.ok("User created", user.to_dict())

    def update_role(self, user_id: str, role) -> MutationResult:
        try:
            update = validate_payload(UserRoleUpdate, {"role": role})
            user = self._load(user_id)
            user.role = update.role.value
            user.updated_at = utcnow()
            commit(self.db, "update user role", refresh=user)
        except BackofficeError as e:
            return MutationResult.failure(e)

        self._invalidate()
        return MutationResult.ok(f"User role updated to {user.role}", user.to_dict())

    def update_profile(self, user_id: str, payload: Payload) -> MutationResult:
        """Name/email as already changed at the identity provider."""
        try:
            update = validate_payload(UserProfileUpdate, payload)
            user = self._load(user_id)
            taken = fetch(self.db, "check existing email", lambda: (
                self.db.query(User).filter(User.email == update.email, User.user_id != user_id).first()
            ))
            if taken is not None:
                raise ValidationError(["email: Email already registered"])

            user.name = update.name
            user.email = update.email
            user.updated_at = utcnow()
            commit(self.db, "update profile", refresh=user)
        except BackofficeError as e:
            return MutationResult.failure(e)

        self._invalidate()
        return MutationResult.ok("Profile updated successfully", user.to_dict())

    def set_disabled(self, user_id: str, disabled: bool) -> MutationResult:
        try:
            update = validate_payload(UserDisabledUpdate, {"disabled": disabled})
            user = self._load(user_id)
            user.is_disabled = update.disabled
            user.updated_at = utcnow()
            commit(self.db, "update user", refresh=user)
        except BackofficeError as e:
            return MutationResult.failure(e)

        self._invalidate()
        state = "disabled" if user.is_disabled else "enabled"
        return MutationResult.ok(f"User {state}", user.to_dict())

    def record_login(self, user_id: str) -> MutationResult:
        try:
            user = self._load(user_id)
            user.last_login = utcnow()
            commit(self.db, "record login")
        except BackofficeError as e:
            return MutationResult.failure(e)

        self._invalidate()
        return MutationResult.ok("Login recorded")

    def update_notification_preferences(self, user_id: str, payload: Payload) -> MutationResult:
        try:
            prefs = validate_payload(NotificationPreferences, payload)
            self._load(user_id)
            row = fetch(self.db, "load notification preferences",
                        lambda: self.db.get(NotificationPreference, user_id))
            if row is None:
                row = NotificationPreference(user_id=user_id)
                self.db.add(row)
            row.new_inventory_notif = prefs.new_inventory_notif
            row.new_requirement_notif = prefs.new_requirement_notif
            row.pending_requirement_notif = prefs.pending_requirement_notif
            commit(self.db, "update notification preferences")
        except BackofficeError as e:
            return MutationResult.failure(e)

        return MutationResult.ok("Notification preferences updated", row.to_dict())

    # --- Helpers ---

    @staticmethod
    def _role_param(params: Optional[Mapping[str, Any]]) -> Optional[str]:
        raw = (params or {}).get("role")
        if isinstance(raw, (list, tuple)):
            raw = raw[0] if raw else None
        if not raw or not str(raw).strip() or str(raw).strip() == "all":
            return None
        role = str(raw).strip()
        role = ROLE_ALIASES.get(role, role)
        return role if role in values(Role) else None

    def _find(self, user_id: str) -> Optional[User]:
        return fetch(self.db, "fetch user", lambda: self.db.get(User, user_id))

    def _load(self, user_id: str) -> User:
        user = self._find(user_id)
        if user is None:
            raise NotFound(f"User {user_id} not found")
        return user

    def _invalidate(self) -> None:
        if self.cache is not None:
            self.cache.invalidate(KIND)
