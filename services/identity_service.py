"""
Participant identity helpers.

The core only needs a stable, opaque participant id per cycle. Clients may
supply one; otherwise the caller's address is hashed so that raw IPs are
never stored.
"""
import hashlib
from typing import Optional

UNKNOWN_HOST = "unknown"


def hash_client_host(client_host: Optional[str]) -> str:
    return hashlib.sha256((client_host or UNKNOWN_HOST).encode("utf-8")).hexdigest()


def resolve_participant_id(supplied: Optional[str], client_host: Optional[str]) -> str:
    if supplied:
        return supplied
    return hash_client_host(client_host)
