from typing import Dict, FrozenSet

# Capabilities are "resource:action" strings. Admins hold every capability.
ADMIN = "admin"
MANAGER = "manager"
STAFF = "staff"

BATCHES_CREATE = "batches:create"
TICKETS_CANCEL = "tickets:cancel"
TICKETS_RELEASE_ANY = "tickets:release_any"
LOCKS_RECLAIM = "locks:reclaim"
BOOKINGS_CANCEL_ANY = "bookings:cancel_any"
COUNTRIES_WRITE = "countries:write"
UMRAH_WRITE = "umrah:write"
USERS_READ = "users:read"
USERS_WRITE = "users:write"
SETTINGS_READ = "settings:read"
SETTINGS_WRITE = "settings:write"

ALL_CAPABILITIES: FrozenSet[str] = frozenset({
    BATCHES_CREATE, TICKETS_CANCEL, TICKETS_RELEASE_ANY, LOCKS_RECLAIM,
    BOOKINGS_CANCEL_ANY, COUNTRIES_WRITE, UMRAH_WRITE, USERS_READ, USERS_WRITE,
    SETTINGS_READ, SETTINGS_WRITE,
})

ROLE_CAPABILITIES: Dict[str, FrozenSet[str]] = {
    ADMIN: ALL_CAPABILITIES,
    MANAGER: frozenset({
        BATCHES_CREATE, TICKETS_CANCEL, TICKETS_RELEASE_ANY, LOCKS_RECLAIM,
        BOOKINGS_CANCEL_ANY, COUNTRIES_WRITE, UMRAH_WRITE, USERS_READ, SETTINGS_READ,
    }),
    STAFF: frozenset(),
}


def has_capability(role: str, capability: str) -> bool:
    return capability in ROLE_CAPABILITIES.get(role, frozenset())
