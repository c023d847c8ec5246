"""
User Repository

Registration, login, profile updates, password changes and account
deletion. Users are the one entity without an owner; every other
collection is scoped by a user's id.

DESIGN DECISION: Account deletion removes the user and every record
they own across all collections in one atomic store commit, so a
failure partway never leaves orphaned records behind. Remembered
logins of the user are forgotten in the same commit.
"""

from typing import Any, Optional
from uuid import UUID

from finora.config import get_settings
from finora.models.entities import User
from finora.repositories.base import Repository
from finora.services.security import hash_password, verify_password
from finora.services.storage import (
    OWNER_FIELD,
    USER_OWNED_COLLECTIONS,
    Collection,
    DuplicateError,
    NotFoundError,
)


# Fields a caller may change through update_fields
EDITABLE_FIELDS = frozenset({"name", "phone", "currency", "theme", "notifications"})


class DuplicateUserError(DuplicateError):
    """An account with this email already exists."""
    pass


class InvalidCredentialsError(Exception):
    """Email/password pair (or current password) did not match."""
    pass


class UserRepository(Repository[User]):
    
    collection = Collection.USERS
    model = User
    
    def _same_email(self, stored: str, given: str) -> bool:
        # Exact match unless configured otherwise
        if get_settings().security.case_insensitive_emails:
            return stored.casefold() == given.casefold()
        return stored == given
    
    async def find_all_by_user(self, user_id: UUID) -> list[User]:
        user = await self.get_by_id(user_id)
        return [user] if user else []
    
    async def get_by_id(self, user_id: UUID) -> Optional[User]:
        users = await self._load()
        return users.get(user_id)
    
    async def get_by_email(self, email: str) -> Optional[User]:
        users = await self._load()
        return next(
            (u for u in users.values() if self._same_email(u.email, email)),
            None,
        )
    
    async def register(self, name: str, email: str, password: str) -> User:
        """
        Create an account.
        
        Raises:
            DuplicateUserError: If the email is already registered
        """
        app_settings = get_settings().app
        async with self._store.lock(self.collection):
            users = await self._load()
            if any(self._same_email(u.email, email) for u in users.values()):
                raise DuplicateUserError("User already exists")
            
            user = User(
                name=name,
                email=email,
                password_hash=hash_password(password),
                currency=app_settings.default_currency,
            )
            users[user.id] = user
            await self._save(users)
        return user
    
    async def login(self, email: str, password: str) -> User:
        """
        Check credentials.
        
        Returns:
            The full stored user record
            
        Raises:
            InvalidCredentialsError: If no user has this email/password
        """
        user = await self.get_by_email(email)
        if user is None or not verify_password(password, user.password_hash):
            raise InvalidCredentialsError("Invalid credentials")
        return user
    
    async def update(self, user: User) -> User:
        """
        Replace a user record by id.
        
        Raises:
            NotFoundError: If the user does not exist
        """
        async with self._store.lock(self.collection):
            users = await self._load()
            if user.id not in users:
                raise NotFoundError(f"User not found: {user.id}")
            users[user.id] = user
            await self._save(users)
        return user
    
    async def update_fields(self, user_id: UUID, **changes: Any) -> User:
        """
        Change profile fields or preferences.
        
        Only name, phone, currency, theme and notifications can be
        changed this way; the result is re-validated.
        """
        unknown = set(changes) - EDITABLE_FIELDS
        if unknown:
            raise ValueError(f"Fields cannot be edited: {', '.join(sorted(unknown))}")
        
        async with self._store.lock(self.collection):
            users = await self._load()
            current = users.get(user_id)
            if current is None:
                raise NotFoundError(f"User not found: {user_id}")
            user = User.model_validate({**current.model_dump(), **changes})
            users[user_id] = user
            await self._save(users)
        return user
    
    async def change_password(
        self,
        user_id: UUID,
        current_password: str,
        new_password: str,
    ) -> None:
        """
        Replace a user's password.
        
        Raises:
            NotFoundError: If the user does not exist
            InvalidCredentialsError: If current_password is wrong
        """
        async with self._store.lock(self.collection):
            users = await self._load()
            user = users.get(user_id)
            if user is None:
                raise NotFoundError(f"User not found: {user_id}")
            if not verify_password(current_password, user.password_hash):
                raise InvalidCredentialsError("Current password is incorrect")
            
            users[user_id] = user.model_copy(
                update={"password_hash": hash_password(new_password)}
            )
            await self._save(users)
    
    async def delete_account(self, user_id: UUID) -> dict[str, int]:
        """
        Delete a user and everything they own.
        
        Returns:
            Number of records removed per collection
            
        Raises:
            NotFoundError: If the user does not exist
        """
        removed: dict[str, int] = {}
        # Owned records plus any remembered logins of this user
        purged = (*USER_OWNED_COLLECTIONS, Collection.SESSION)
        collections = (self.collection, *purged)
        owner = str(user_id)
        
        async with self._store.locked(*collections):
            users = await self._load()
            if user_id not in users:
                raise NotFoundError(f"User not found: {user_id}")
            
            async with self._store.atomic():
                del users[user_id]
                await self._save(users)
                removed[self.collection.value] = 1
                
                for collection in purged:
                    records = await self._store.read(collection)
                    kept = [r for r in records if r.get(OWNER_FIELD) != owner]
                    removed[collection.value] = len(records) - len(kept)
                    await self._store.write(collection, kept)
        
        return removed
