"""
Small TwiML builders.

Verbs are rendered to strings and wrapped into a ``<Response>`` document;
handlers return them through ``twiml_response``.
"""

from urllib.parse import urlencode

from fastapi import Request, Response

from phone_survey.config import get_settings

TWIML_MEDIA_TYPE = "application/xml"


def xml_escape(text: str) -> str:
    return (
        str(text)
        .replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
        .replace("'", "&apos;")
    )


def _attrs(**attrs: str | int | None) -> str:
    parts = [f'{name}="{xml_escape(str(value))}"' for name, value in attrs.items() if value is not None]
    return (" " + " ".join(parts)) if parts else ""


def say(text: str, voice: str | None = None, language: str | None = None) -> str:
    return f"<Say{_attrs(voice=voice, language=language)}>{xml_escape(text)}</Say>"


def pause(length: int = 1) -> str:
    return f'<Pause length="{length}"/>'


def hangup() -> str:
    return "<Hangup/>"


def redirect(url: str) -> str:
    return f'<Redirect method="POST">{xml_escape(url)}</Redirect>'


def gather(
    action: str,
    *inner: str,
    timeout: int = 10,
    barge_in: bool | None = None,
) -> str:
    """``<Gather>`` accepting speech or keypad input, POSTing to ``action``."""
    attrs = _attrs(
        input="dtmf speech",
        timeout=timeout,
        bargeIn=("true" if barge_in else None),
        action=action,
        method="POST",
    )
    return f"<Gather{attrs}>{''.join(inner)}</Gather>"


def twiml_document(*verbs: str) -> str:
    body = "\n  ".join(verbs)
    return '<?xml version="1.0" encoding="UTF-8"?>\n<Response>\n  ' + body + "\n</Response>"


def twiml_response(*verbs: str) -> Response:
    """HTTP 200 TwiML response."""
    return Response(content=twiml_document(*verbs), media_type=TWIML_MEDIA_TYPE)


def abs_base(request: Request) -> str:
    """Public base URL reachable by Twilio.

    Priority:
      1) settings.public_base_url
      2) X-Forwarded-Proto / X-Forwarded-Host (behind a tunnel or proxy)
      3) request.base_url
    """
    configured = get_settings().public_base_url.strip()
    if configured:
        return configured.rstrip("/")

    xf_host = (request.headers.get("x-forwarded-host") or "").strip()
    if xf_host:
        proto = (request.headers.get("x-forwarded-proto") or "").strip() or "https"
        return f"{proto}://{xf_host}"

    return str(request.base_url).rstrip("/")


def make_url(request: Request, path: str, qs: dict[str, object] | None = None) -> str:
    """Absolute URL for ``path``; empty query values are dropped."""
    base = abs_base(request)
    q = urlencode({k: v for k, v in (qs or {}).items() if v is not None and str(v) != ""})
    if q:
        return f"{base}{path}?{q}"
    return f"{base}{path}"
