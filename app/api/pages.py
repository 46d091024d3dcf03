"""HTML pages shown in the OAuth popup window once linking finishes."""

from __future__ import annotations

from html import escape

from fastapi.responses import HTMLResponse

from app.models import Provider

_STYLE = """
body {
  font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif;
  display: flex; align-items: center; justify-content: center;
  height: 100vh; margin: 0; background: linear-gradient(to bottom, #f5f5f5, white);
}
.container {
  text-align: center; padding: 40px; background: white;
  border-radius: 16px; box-shadow: 0 4px 12px rgba(0,0,0,0.1);
}
.icon {
  width: 64px; height: 64px; border-radius: 50%; color: white; font-size: 32px;
  line-height: 64px; margin: 0 auto 20px;
}
.success { background: #22c55e; }
.error { background: #ef4444; }
h1 { color: #333; margin-bottom: 10px; }
p { color: #666; }
button {
  margin-top: 20px; padding: 12px 24px; background: #f97316; color: white;
  border: none; border-radius: 8px; cursor: pointer;
}
"""


def _page(title: str, body: str, script: str = "") -> str:
    return (
        "<!DOCTYPE html>\n"
        '<html lang="en">\n'
        "<head>\n"
        '<meta charset="utf-8">\n'
        f"<title>{escape(title)}</title>\n"
        f"<style>{_STYLE}</style>\n"
        "</head>\n"
        f'<body><div class="container">{body}</div>{script}</body>\n'
        "</html>\n"
    )


def success_page(provider: Provider) -> HTMLResponse:
    """Confirmation that closes its own window after two seconds."""
    name = escape(provider.display_name)
    body = (
        '<div class="icon success">&#10003;</div>'
        "<h1>Connected</h1>"
        f"<p>Your {name} account is now linked.</p>"
        "<p>This window will close automatically.</p>"
    )
    script = "<script>setTimeout(() => window.close(), 2000);</script>"
    return HTMLResponse(_page(f"{provider.display_name} connected", body, script))


def error_page(message: str) -> HTMLResponse:
    body = (
        '<div class="icon error">&#10007;</div>'
        "<h1>Error</h1>"
        f"<p>{escape(message)}</p>"
        '<button onclick="window.close()">Close</button>'
    )
    return HTMLResponse(_page("Error", body))


__all__ = ["error_page", "success_page"]
