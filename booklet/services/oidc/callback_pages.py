"""
HTML pages served by the OIDC redirect callback.

The callback runs on a different origin than the SPA, so tokens cannot be
written to the SPA's storage from here. The success page forwards them in
a base64url `auth_payload` query parameter instead.
"""

import base64
import html
import json
from typing import Any, Dict
from urllib.parse import urlencode

# Keys the SPA may have stored from an earlier login
_STORED_AUTH_KEYS = (
    "access_token",
    "id_token",
    "user_info",
    "is_authenticated",
    "auth_timestamp",
    "auth_method",
)

_PAGE_STYLE = """
      body { font-family: Arial, sans-serif; text-align: center; padding: 2rem; }
      .success { color: #28a745; }
      .error { color: #dc3545; }
      .spinner { border: 4px solid #f3f3f3; border-top: 4px solid %s; border-radius: 50%%;
                 width: 40px; height: 40px; animation: spin 1s linear infinite; margin: 0 auto; }
      @keyframes spin { 0%% { transform: rotate(0deg); } 100%% { transform: rotate(360deg); } }
"""


def encode_auth_payload(payload: Dict[str, Any]) -> str:
    """Serialize the forwarded auth data as unpadded base64url JSON."""
    raw = json.dumps(payload, separators=(",", ":")).encode("utf-8")
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


def _js_string(value: str) -> str:
    # json.dumps gives a valid JS literal; "</" must not close the script tag
    return json.dumps(value).replace("</", "<\\/")


def success_redirect_url(frontend_url: str, auth_payload: str) -> str:
    query = urlencode({"auth_payload": auth_payload, "authenticated": "true"})
    return f"{frontend_url.rstrip('/')}/?{query}"


def render_success_page(frontend_url: str, auth_payload: Dict[str, Any]) -> str:
    """Page that briefly shows success, then hands the tokens to the SPA."""
    target = success_redirect_url(frontend_url, encode_auth_payload(auth_payload))
    return f"""<!DOCTYPE html>
<html>
  <head>
    <title>Authentication Success</title>
    <style>{_PAGE_STYLE % "#3498db"}</style>
  </head>
  <body>
    <div class="spinner"></div>
    <h2 class="success">Authentication Successful!</h2>
    <p>Storing your profile information...</p>
    <script>
      setTimeout(function () {{ window.location.replace({_js_string(target)}); }}, 600);
    </script>
  </body>
</html>
"""


def render_error_page(frontend_url: str, message: str) -> str:
    """Page that clears any stored tokens and returns to the SPA."""
    removals = "\n".join(
        f"      localStorage.removeItem({_js_string(key)});" for key in _STORED_AUTH_KEYS
    )
    home = f"{frontend_url.rstrip('/')}/"
    return f"""<!DOCTYPE html>
<html>
  <head>
    <title>Authentication Failed</title>
    <style>{_PAGE_STYLE % "#dc3545"}</style>
  </head>
  <body>
    <div class="spinner"></div>
    <h2 class="error">Login Failed</h2>
    <p>{html.escape(message)}</p>
    <script>
{removals}
      setTimeout(function () {{ window.location.href = {_js_string(home)}; }}, 2000);
    </script>
  </body>
</html>
"""
