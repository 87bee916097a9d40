"""
Child booklet backend.

Admin sessions, eSignet (OIDC) login relay, child record uploads and the
mock identity lookup, served by one FastAPI application.
"""

__version__ = "1.0.0"
