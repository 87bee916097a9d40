"""
Reduce mock identity documents to what the admin dashboard may show.

Identity JSON comes from an external system and its shape is not
guaranteed, so every accessor tolerates missing or oddly typed fields.
"""

from typing import Any, Dict, Optional

SENSITIVE_FIELDS = frozenset({"password", "pin", "encodedPhoto"})
PREFERRED_LANGUAGE = "eng"


def _scalar(value: Any) -> Optional[Any]:
    """Keep plain values only; nested structures never reach the summary."""
    if isinstance(value, (str, int, float)) and not isinstance(value, bool):
        return value if value != "" else None
    return None


def _first_value(entries: Any) -> Optional[Any]:
    if not isinstance(entries, list) or not entries:
        return None
    first = entries[0]
    if isinstance(first, dict):
        return _scalar(first.get("value"))
    return _scalar(first)


def localized_value(entries: Any, language: str = PREFERRED_LANGUAGE) -> Optional[Any]:
    """
    Pick the value for `language` from a list of {language, value} entries.

    Falls back to the first entry; a bare string is returned as is.
    """
    if isinstance(entries, str):
        return _scalar(entries)
    if not isinstance(entries, list):
        return None
    for entry in entries:
        if isinstance(entry, dict) and entry.get("language") == language:
            value = _scalar(entry.get("value"))
            if value is not None:
                return value
    return _first_value(entries)


def summarize_identity(identity: Any) -> Optional[Dict[str, Any]]:
    """
    Build the listing view of an identity.

    Only whitelisted scalar fields are copied, so secrets such as password,
    pin or encodedPhoto can never leak through.
    """
    if not isinstance(identity, dict):
        return None

    individual_id = _scalar(identity.get("individualId"))
    name = (
        localized_value(identity.get("fullName"))
        or localized_value(identity.get("givenName"))
        or individual_id
    )

    return {
        "individualId": individual_id,
        "name": name,
        "email": _scalar(identity.get("email")),
        "phone": _scalar(identity.get("phone")),
        "dateOfBirth": _scalar(identity.get("dateOfBirth")),
        "country": localized_value(identity.get("country")),
        "region": localized_value(identity.get("region")),
        "gender": localized_value(identity.get("gender")),
        "createdAt": _scalar(identity.get("createdAt")),
    }


def sanitize_identity(identity: Any) -> Any:
    """Return a copy of the identity with sensitive fields removed at any depth."""
    if isinstance(identity, dict):
        return {
            key: sanitize_identity(value)
            for key, value in identity.items()
            if key not in SENSITIVE_FIELDS
        }
    if isinstance(identity, list):
        return [sanitize_identity(item) for item in identity]
    return identity
