"""
Admin screen operations: squads and user accounts.

New accounts and password resets use the club's default password.
"""
import logging
import uuid
from typing import Any, Dict, List, Optional

from werkzeug.security import generate_password_hash

from ..errors import ConflictError, NotFoundError, ValidationError
from ..models import Squad, User, UserRole
from ..utils.constants import DEFAULT_PASSWORD, TABLE_SQUADS, TABLE_USERS
from .access_service import AccessService
from .persistence_service import ClubRepository

logger = logging.getLogger(__name__)


class AdminService:
    """Squad and account management, restricted to administrators."""

    def __init__(self, repository: ClubRepository, access: AccessService):
        self.repository = repository
        self.access = access

    def add_squad(self, admin: User, name: str) -> Squad:
        self.access.ensure_admin(admin)
        name = (name or "").strip()
        if not name:
            raise ValidationError("Nome do escalão é obrigatório")
        if any(s.name.lower() == name.lower() for s in self.repository.squads):
            raise ConflictError(f"O escalão '{name}' já existe")

        squad = Squad(id=str(uuid.uuid4()), name=name)
        self.repository.squads.append(squad)
        self.repository.persist(TABLE_SQUADS, [squad])
        logger.info("Squad %s created by %s", name, admin.username)
        return squad

    def list_users(self, admin: User) -> List[Dict[str, Any]]:
        """Accounts without their password hashes, with managed squad names."""
        self.access.ensure_admin(admin)
        names = {s.id: s.name for s in self.repository.squads}
        users = []
        for user in self.repository.users:
            data = user.to_dict(include_secret=False)
            data["squad_names"] = [names[sid] for sid in user.allowed_squads if sid in names]
            users.append(data)
        return users

    def add_user(
        self,
        admin: User,
        name: str,
        username: str,
        role: Optional[str] = None,
        allowed_squads: Optional[List[str]] = None,
    ) -> User:
        """
        Create an account with the default password.

        Administrators are not tied to squads, so their squad list is dropped.

        Raises:
            ValidationError: If name or username is missing, or a squad is unknown
            ConflictError: If the username is taken
        """
        self.access.ensure_admin(admin)
        name = (name or "").strip()
        username = (username or "").strip()
        if not name or not username:
            raise ValidationError("Nome e username são obrigatórios")
        if any(u.username == username for u in self.repository.users):
            raise ConflictError(f"O username '{username}' já existe")

        try:
            user_role = UserRole(role) if role else UserRole.STAFF
        except ValueError:
            raise ValidationError(f"Perfil inválido: {role}")

        squads = list(dict.fromkeys(allowed_squads or []))
        unknown = [sid for sid in squads if self.repository.find(TABLE_SQUADS, sid) is None]
        if unknown:
            raise ValidationError(f"Escalões desconhecidos: {', '.join(unknown)}")

        user = User(
            id=str(uuid.uuid4()),
            name=name,
            username=username,
            role=user_role,
            password_hash=generate_password_hash(DEFAULT_PASSWORD),
            allowed_squads=[] if user_role == UserRole.ADMIN else squads,
        )
        self.repository.users.append(user)
        self.repository.persist(TABLE_USERS, [user])
        logger.info("User %s (%s) created by %s", username, user_role.value, admin.username)
        return user

    def reset_password(self, admin: User, user_id: str) -> User:
        self.access.ensure_admin(admin)
        user = self.repository.find(TABLE_USERS, user_id)
        if user is None:
            raise NotFoundError("Utilizador não encontrado")
        user.password_hash = generate_password_hash(DEFAULT_PASSWORD)
        self.repository.persist(TABLE_USERS, [user])
        logger.info("Password of %s reset by %s", user.username, admin.username)
        return user

    def change_password(self, user: User, current: str, new: str) -> None:
        """Let a logged-in user replace their own password."""
        if self.access.login(user.username, current) is None:
            raise ValidationError("Password atual incorreta")
        if not new or len(new) < 3:
            raise ValidationError("A nova password deve ter pelo menos 3 caracteres")
        user.password_hash = generate_password_hash(new)
        self.repository.persist(TABLE_USERS, [user])
