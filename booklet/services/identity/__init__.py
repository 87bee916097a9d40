"""Mock identity lookup services."""

from booklet.services.identity.identity_service import IdentityService, parse_identity_json
from booklet.services.identity.summarizer import sanitize_identity, summarize_identity

__all__ = [
    "IdentityService",
    "parse_identity_json",
    "sanitize_identity",
    "summarize_identity",
]
