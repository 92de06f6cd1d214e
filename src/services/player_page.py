"""HTML rendering for the embed route.

Two pages: a full-window player that frames the race winner, and a static
explanatory page shown when no source could be resolved.  The error page's
wording depends on the failure category, so viewers can tell "this episode
does not exist" from "the hosts are down, try again later".
"""

from __future__ import annotations

import html
from dataclasses import dataclass
from enum import Enum
from string import Template

from src.utils.errors import (
    ConnectionFailureError,
    FetchTimeoutError,
    InvalidIdentifierError,
    NotFoundError,
    NoWorkingSourceError,
    UpstreamUnavailableError,
)


class FailureCategory(str, Enum):  # noqa: UP042 (StrEnum requires Python 3.11+)
    """Error page variants."""

    NOT_FOUND = "not_found"
    MAINTENANCE = "maintenance"
    UNAVAILABLE = "unavailable"


@dataclass(frozen=True)
class ErrorCopy:
    title: str
    message: str


_ERROR_COPY: dict[FailureCategory, ErrorCopy] = {
    FailureCategory.NOT_FOUND: ErrorCopy(
        title="Video Not Found",
        message="The requested video could not be found.",
    ),
    FailureCategory.MAINTENANCE: ErrorCopy(
        title="Under Maintenance",
        message="The video servers are currently under maintenance. Please try again in a few minutes.",
    ),
    FailureCategory.UNAVAILABLE: ErrorCopy(
        title="Video Not Available",
        message="This video is currently not available for streaming.",
    ),
}

_PLAYER_TEMPLATE = Template("""<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="UTF-8">
<meta name="viewport" content="width=device-width, initial-scale=1.0">
<meta http-equiv="Content-Security-Policy" content="upgrade-insecure-requests">
<title>$title</title>
<style>
body, html { margin: 0; padding: 0; width: 100%; height: 100%; background-color: #000; overflow: hidden; }
iframe { width: 100%; height: 100%; border: none; position: absolute; top: 0; left: 0; z-index: 1; }
#loader { position: fixed; inset: 0; background-color: #000; display: flex; justify-content: center; align-items: center; z-index: 9999; transition: opacity 0.5s ease; }
.spinner { width: 50px; height: 50px; border: 3px solid rgba(255,255,255,0.3); border-radius: 50%; border-top-color: #fff; animation: spin 1s ease-in-out infinite; }
@keyframes spin { to { transform: rotate(360deg); } }
</style>
</head>
<body>
<div id="loader"><div class="spinner"></div></div>
<iframe src="$address" allowfullscreen
  allow="autoplay; encrypted-media; fullscreen; picture-in-picture; accelerometer; gyroscope; clipboard-write"
  onload="var l=document.getElementById('loader'); l.style.opacity='0'; setTimeout(function(){ l.style.display='none'; }, 500);"></iframe>
</body>
</html>
""")

_ERROR_TEMPLATE = Template("""<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="UTF-8">
<meta name="viewport" content="width=device-width, initial-scale=1.0">
<title>$title</title>
<style>
* { margin: 0; padding: 0; box-sizing: border-box; }
body { background: linear-gradient(135deg, #1a1a2e 0%, #16213e 100%); color: #fff; font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, Arial, sans-serif; display: flex; align-items: center; justify-content: center; height: 100vh; overflow: hidden; }
.error-container { text-align: center; padding: 40px 20px; max-width: 500px; }
h1 { font-size: 28px; font-weight: 600; margin-bottom: 15px; color: #e94560; }
p { font-size: 16px; line-height: 1.6; color: #a8b2d1; margin-bottom: 25px; }
.retry-btn { display: inline-block; padding: 12px 30px; background: linear-gradient(135deg, #667eea 0%, #764ba2 100%); color: #fff; text-decoration: none; border-radius: 25px; }
</style>
</head>
<body>
<div class="error-container" data-category="$category">
<h1>$title</h1>
<p>$message</p>
<a href="javascript:location.reload()" class="retry-btn">Retry</a>
</div>
</body>
</html>
""")


def classify_failure(exc: BaseException) -> FailureCategory:
    """Map a resolution failure to the error page variant to show."""
    if isinstance(exc, (NotFoundError, InvalidIdentifierError)):
        return FailureCategory.NOT_FOUND
    if isinstance(exc, (UpstreamUnavailableError, FetchTimeoutError, ConnectionFailureError)):
        return FailureCategory.MAINTENANCE
    if isinstance(exc, NoWorkingSourceError) and exc.unreachable:
        return FailureCategory.MAINTENANCE
    return FailureCategory.UNAVAILABLE


def render_player(address: str, title: str = "Player") -> str:
    """Return a full-window player page framing *address*."""
    if address.lower().startswith("http://"):
        address = f"https://{address[len('http://'):]}"
    return _PLAYER_TEMPLATE.substitute(
        title=html.escape(title),
        address=html.escape(address, quote=True),
    )


def render_error(category: FailureCategory) -> str:
    """Return the static explanatory page for *category*."""
    copy = _ERROR_COPY[category]
    return _ERROR_TEMPLATE.substitute(
        category=category.value,
        title=html.escape(copy.title),
        message=html.escape(copy.message),
    )
