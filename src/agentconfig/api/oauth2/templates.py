# HTML pages for the browser-facing authorization flow.
# Created: 2026-10-06

from __future__ import annotations

from html import escape

from agentconfig.api.oauth2.models import AuthorizationRequest

SCOPE_DESCRIPTIONS = {
    "read": "View your configurations, skills, and extensions",
    "write": "Create, modify, and delete your configurations",
    "admin": "Full administrative access to your account",
}

_STYLE = """
* {{ margin: 0; padding: 0; box-sizing: border-box; }}
body {{ font-family: system-ui, -apple-system, sans-serif; background: #0a0e1a; color: #f1f5f9;
  min-height: 100vh; display: flex; align-items: center; justify-content: center; padding: 20px; }}
.card {{ background: #111827; border: 1px solid #1e293b; border-radius: 12px; padding: 40px;
  max-width: 480px; width: 100%; }}
h1 {{ font-size: 1.5em; margin-bottom: 12px; }}
p {{ color: #94a3b8; margin-bottom: 16px; }}
.user {{ background: #1a2332; border-radius: 8px; padding: 12px 16px; margin-bottom: 20px; }}
.client {{ border-left: 3px solid #06b6d4; padding: 12px 16px; margin-bottom: 20px; }}
.client strong {{ color: #06b6d4; }}
.scope {{ background: #0f1419; border: 1px solid #1e293b; border-radius: 8px; padding: 10px 12px;
  margin-bottom: 8px; }}
.scope-name {{ font-weight: 600; }}
.scope-desc {{ font-size: 0.85em; color: #94a3b8; }}
.buttons {{ display: flex; gap: 12px; margin-top: 24px; }}
.btn {{ flex: 1; padding: 12px; border: none; border-radius: 8px; font-size: 1em; cursor: pointer; }}
.approve {{ background: #06b6d4; color: #0a0e1a; font-weight: 600; }}
.deny {{ background: #1e293b; color: #f1f5f9; }}
.error h1 {{ color: #ef4444; }}
.success h1 {{ color: #14b8a6; }}
code {{ display: block; background: #0f1419; border: 1px solid #1e293b; border-radius: 8px;
  padding: 12px; word-break: break-all; margin: 16px 0; }}
a {{ color: #06b6d4; }}
"""

_PAGE = """<!DOCTYPE html>
<html lang="en"><head>
<meta charset="UTF-8">
<meta name="viewport" content="width=device-width, initial-scale=1.0">
<title>{title} - Agent Config Adapter</title>
<style>""" + _STYLE + """</style>
</head><body><div class="card {css_class}">
{body}
</div></body></html>"""

_CONSENT_BODY = """<h1>Authorize Access</h1>
<p>An application wants to access your account</p>
<div class="user">Signed in as <strong>{user_label}</strong></div>
<div class="client"><strong>{client_id}</strong> wants permission to access your
Agent Config Adapter account.</div>
<p>This will allow the application to:</p>
{scope_items}
<form method="POST" action="/mcp/oauth/authorize">
{hidden_fields}
<div class="buttons">
<button type="submit" name="action" value="deny" class="btn deny">Deny</button>
<button type="submit" name="action" value="approve" class="btn approve">Approve</button>
</div>
</form>
<p style="margin-top: 20px">Make sure you trust this application before approving.</p>"""


def _page(title: str, body: str, css_class: str = "") -> str:
    return _PAGE.format(title=escape(title), body=body, css_class=css_class)


def consent_page(request: AuthorizationRequest, user_label: str, csrf_token: str) -> str:
    """Approve/deny screen carrying the original request as hidden fields."""
    scope_items = "\n".join(
        '<div class="scope"><div class="scope-name">{}</div>'
        '<div class="scope-desc">{}</div></div>'.format(
            escape(scope), escape(SCOPE_DESCRIPTIONS.get(scope, scope))
        )
        for scope in request.scope.split()
    )
    hidden_fields = "\n".join(
        f'<input type="hidden" name="{escape(name)}" value="{escape(value)}">'
        for name, value in {**request.as_params(), "csrf_token": csrf_token}.items()
    )
    body = _CONSENT_BODY.format(
        user_label=escape(user_label),
        client_id=escape(request.client_id),
        scope_items=scope_items,
        hidden_fields=hidden_fields,
    )
    return _page("Authorize Application", body)


def error_page(title: str, description: str | None = None) -> str:
    body = "<h1>{}</h1>\n<p>{}</p>\n<a href=\"/\">Return to Home</a>".format(
        escape(title), escape(description or "An error occurred during authorization.")
    )
    return _page("Error", body, css_class="error")


def success_page(code: str) -> str:
    """Shown to native/CLI clients that cannot receive a redirect."""
    body = (
        "<h1>Authorization Successful</h1>\n"
        "<p>Copy this authorization code and paste it into your application:</p>\n"
        f"<code>{escape(code)}</code>\n"
        "<p>This code expires in 10 minutes and can only be used once.</p>"
    )
    return _page("Authorization Successful", body, css_class="success")


def denied_page() -> str:
    return error_page("Access Denied", "You denied the authorization request.")
