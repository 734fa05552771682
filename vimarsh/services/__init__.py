"""
Domain services.

Each service receives its repositories and clients through its constructor;
the container wires them together.
"""

from vimarsh.services.credentials import AdminAuthenticator, LocalCredentialStore
from vimarsh.services.events import EventCatalog
from vimarsh.services.identity import IdentityReconciler
from vimarsh.services.ledger import EventRegistrationLedger
from vimarsh.services.profile import ProfileStore
from vimarsh.services.seeder import DEFAULT_EVENT_SLUGS, ensure_default_events
from vimarsh.services.teams import TeamDirectory

__all__ = [
    "AdminAuthenticator",
    "DEFAULT_EVENT_SLUGS",
    "EventCatalog",
    "EventRegistrationLedger",
    "IdentityReconciler",
    "LocalCredentialStore",
    "ProfileStore",
    "TeamDirectory",
    "ensure_default_events",
]
