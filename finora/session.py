"""
Session / Auth State

DESIGN DECISION: The signed-in user lives in an explicit SessionContext
object that is created at startup and handed to whatever needs it,
rather than in module-level globals. The view layer keeps one per
browser session.

Remembered logins are stored per client. The `session` collection
holds one marker per client token, so one store can serve many
browsers without any of them seeing another's login.

Lifecycle:
1. SessionContext() starts with is_loading=True
2. restore() re-establishes this client's remembered login (if any),
   then clears is_loading whether it succeeded or failed
3. login() / logout() switch between signed-in and signed-out; logout
   also forgets this client's remembered login
"""

from typing import Optional
from uuid import UUID, uuid4

from finora.models.entities import User
from finora.repositories.users import UserRepository
from finora.services.storage import Collection, KeyValueStore, StoreCorruptionError


# Views reachable without signing in
PUBLIC_VIEWS = frozenset({"login", "register"})

# On-disk field holding the client token of a marker
CLIENT_FIELD = "clientId"


class AuthenticationRequiredError(Exception):
    """A protected operation was attempted without a signed-in user."""
    pass


class SessionContext:
    """
    The current user for one client session.
    
    Args:
        store: Shared store
        users: User repository over the same store
        client_id: Token identifying this client. Two contexts with the
                   same token share a remembered login; a fresh token
                   is generated when none is given.
    """
    
    def __init__(
        self,
        store: KeyValueStore,
        users: Optional[UserRepository] = None,
        client_id: Optional[str] = None,
    ):
        self._store = store
        self._users = users or UserRepository(store)
        self.client_id = client_id or uuid4().hex
        self.user: Optional[User] = None
        self.is_authenticated = False
        self.is_loading = True
    
    async def _read_markers(self) -> list[dict]:
        """This store's per-client markers; entries without a client id are ignored."""
        markers = await self._store.read(Collection.SESSION)
        if not all(isinstance(m, dict) for m in markers):
            raise StoreCorruptionError(Collection.SESSION.value, "marker is not an object")
        return [m for m in markers if CLIENT_FIELD in m]
    
    async def _replace_marker(self, user_id: Optional[UUID]) -> None:
        """Drop this client's marker and, if user_id is given, write a new one."""
        async with self._store.lock(Collection.SESSION):
            markers = [
                m for m in await self._read_markers()
                if m[CLIENT_FIELD] != self.client_id
            ]
            if user_id is not None:
                markers.append({CLIENT_FIELD: self.client_id, "userId": str(user_id)})
            await self._store.write(Collection.SESSION, markers)
    
    async def restore(self) -> Optional[User]:
        """
        Sign back in from this client's remembered login marker.
        
        A marker pointing at a user that no longer exists is discarded.
        """
        try:
            marker = next(
                (m for m in await self._read_markers() if m[CLIENT_FIELD] == self.client_id),
                None,
            )
            if marker is None:
                return None
            
            try:
                user_id = UUID(marker["userId"])
            except (KeyError, TypeError, ValueError) as e:
                raise StoreCorruptionError(Collection.SESSION.value, f"bad session marker: {e}") from e
            
            user = await self._users.get_by_id(user_id)
            if user is None:
                await self._replace_marker(None)
                return None
            
            self.user = user
            self.is_authenticated = True
            return user
        finally:
            self.is_loading = False
    
    async def login(self, user: User, remember: bool = True) -> None:
        self.user = user
        self.is_authenticated = True
        self.is_loading = False
        await self._replace_marker(user.id if remember else None)
    
    async def logout(self) -> None:
        self.user = None
        self.is_authenticated = False
        await self._replace_marker(None)
    
    def refresh(self, user: User) -> None:
        """Swap in an updated copy of the signed-in user's record."""
        if self.user is not None and self.user.id == user.id:
            self.user = user
    
    def require_user(self) -> User:
        """
        The signed-in user.
        
        Raises:
            AuthenticationRequiredError: If nobody is signed in
        """
        if not self.is_authenticated or self.user is None:
            raise AuthenticationRequiredError("Please log in to continue")
        return self.user
    
    def can_access(self, view: str) -> bool:
        """Public views are always open; the rest need a signed-in user."""
        if view in PUBLIC_VIEWS:
            return True
        return self.is_authenticated and not self.is_loading
