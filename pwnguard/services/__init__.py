"""
Breach corpus lookup services.

The Pwned Passwords range client and an in-process stub.
"""

from pwnguard.services.breach_client import (
    BreachLookupClient,
    BreachLookupError,
    BreachLookupServiceError,
    BreachLookupTimeout,
    BreachLookupTransportError,
    LookupOptions,
    PwnedPasswordsClient,
    StaticBreachClient,
)
