from __future__ import annotations

import logging
import smtplib
import ssl
from dataclasses import dataclass, field
from email.message import EmailMessage
from html import escape
from typing import Iterable, Sequence

from flask import current_app

logger = logging.getLogger(__name__)

DEFAULT_FOOTER = "This email was sent by MTN Community Shop Partner Management."


class EmailError(RuntimeError):
    pass


@dataclass
class Highlight:
    value: str
    label: str | None = None


@dataclass
class Cta:
    label: str
    url: str


@dataclass
class OutgoingEmail:
    to: list[str]
    subject: str
    text: str
    html: str
    headers: dict[str, str] = field(default_factory=dict)


def _paragraphs(message: str | Sequence[str]) -> list[str]:
    lines = [message] if isinstance(message, str) else list(message)
    return [line for line in lines if line.strip()]


def build_email_template(
    *,
    title: str,
    message: str | Sequence[str],
    preheader: str | None = None,
    highlights: Iterable[Highlight] | None = None,
    bullets: Iterable[str] | None = None,
    cta: Cta | None = None,
    footer_note: str | None = None,
) -> tuple[str, str]:
    """
    Render the branded transactional email. Returns (html, text).
    Every caller-supplied value is HTML-escaped.
    """
    highlights = list(highlights or [])
    bullets = list(bullets or [])
    footer = footer_note or DEFAULT_FOOTER
    paragraphs = _paragraphs(message)

    body_parts: list[str] = [
        f'<p style="margin:0 0 12px;font-size:15px;line-height:1.6;color:#1f2937;">{escape(p)}</p>'
        for p in paragraphs
    ]
    for h in highlights:
        label = (
            f'<div style="font-size:12px;color:#6b7280;letter-spacing:0.08em;text-transform:uppercase;'
            f'margin-bottom:4px;">{escape(h.label)}</div>'
            if h.label
            else ""
        )
        body_parts.append(
            '<div style="padding:14px 16px;border:1px solid #ece2c9;border-radius:12px;background:#fff9e6;'
            f'margin-bottom:12px;">{label}<div style="font-size:20px;font-weight:700;letter-spacing:0.18em;'
            f'color:#111827;">{escape(h.value)}</div></div>'
        )
    if bullets:
        items = "".join(f'<li style="margin:0 0 8px;">{escape(b)}</li>' for b in bullets)
        body_parts.append(
            f'<ul style="margin:0 0 12px;padding-left:20px;font-size:15px;line-height:1.6;color:#1f2937;">{items}</ul>'
        )
    if cta:
        body_parts.append(
            f'<div style="margin:20px 0 6px;"><a href="{escape(cta.url)}" style="display:inline-block;'
            "background:#ffcb05;color:#0b1120;text-decoration:none;padding:12px 20px;border-radius:999px;"
            f'font-weight:700;font-size:14px;">{escape(cta.label)}</a></div>'
        )

    html = f"""<!doctype html>
<html lang="en">
  <head>
    <meta charset="utf-8" />
    <meta name="viewport" content="width=device-width, initial-scale=1" />
    <title>{escape(title)}</title>
  </head>
  <body style="margin:0;padding:0;background:#f7f3ea;">
    <span style="display:none;visibility:hidden;opacity:0;height:0;width:0;color:transparent;">{escape(preheader or "")}</span>
    <table role="presentation" width="100%" cellpadding="0" cellspacing="0" style="background:#f7f3ea;padding:24px 0;">
      <tr><td align="center">
        <table role="presentation" width="600" cellpadding="0" cellspacing="0" style="width:600px;max-width:600px;background:#ffffff;border-radius:18px;border:1px solid #eee2c9;">
          <tr><td style="padding:18px 28px;border-top:6px solid #ffcb05;">
            <div style="font-size:18px;font-weight:700;color:#0b1120;">MTN Community Shop</div>
            <div style="font-size:11px;letter-spacing:0.24em;text-transform:uppercase;color:#6b7280;margin-top:4px;">Partner Management</div>
          </td></tr>
          <tr><td style="padding:8px 28px 0;"><h1 style="margin:0 0 12px;font-size:22px;line-height:1.3;color:#0b1120;">{escape(title)}</h1></td></tr>
          <tr><td style="padding:0 28px 18px;">{"".join(body_parts)}</td></tr>
          <tr><td style="padding:16px 28px 24px;border-top:1px solid #efe7d5;font-size:12px;line-height:1.6;color:#6b7280;">{escape(footer)}</td></tr>
        </table>
      </td></tr>
    </table>
  </body>
</html>"""

    text_lines = [title, *paragraphs]
    text_lines += [f"{h.label}: {h.value}" if h.label else h.value for h in highlights]
    text_lines += [f"- {b}" for b in bullets]
    if cta:
        text_lines.append(f"{cta.label}: {cta.url}")
    text_lines.append(footer)
    text = "\n".join(line for line in text_lines if line)
    return html, text


def _recipients(to: str | Iterable[str]) -> list[str]:
    if isinstance(to, str):
        to = [to]
    return sorted({addr.strip().lower() for addr in to if addr and addr.strip()})


def send_email(*, to: str | Iterable[str], subject: str, text: str, html: str) -> OutgoingEmail | None:
    """
    Deliver one message through the configured EMAIL_BACKEND (smtp | console | memory).
    Returns None when there is nobody to send to.
    """
    recipients = _recipients(to)
    if not recipients:
        logger.info("Email skipped, no recipients (subject=%s)", subject)
        return None

    cfg = current_app.config
    backend = (cfg.get("EMAIL_BACKEND") or "smtp").strip().lower()
    out = OutgoingEmail(to=recipients, subject=subject, text=text, html=html)

    if backend == "memory":
        current_app.extensions.setdefault("email_outbox", []).append(out)
        return out
    if backend == "console":
        logger.info("Email (console) to=%s subject=%s\n%s", ", ".join(recipients), subject, text)
        return out
    if backend != "smtp":
        raise EmailError(f"Unsupported EMAIL_BACKEND: {backend}")

    host = cfg.get("SMTP_HOST")
    sender = cfg.get("SMTP_FROM")
    if not host or not sender:
        raise EmailError("SMTP_HOST and SMTP_FROM must be configured")

    msg = EmailMessage()
    msg["From"] = sender
    msg["To"] = ", ".join(recipients)
    msg["Subject"] = subject
    msg.set_content(text)
    msg.add_alternative(html, subtype="html")

    port = int(cfg.get("SMTP_PORT") or 587)
    user = cfg.get("SMTP_USER")
    password = cfg.get("SMTP_PASSWORD")
    if cfg.get("SMTP_SECURE"):
        server: smtplib.SMTP = smtplib.SMTP_SSL(host, port, timeout=15, context=ssl.create_default_context())
    else:
        server = smtplib.SMTP(host, port, timeout=15)
    with server:
        if not cfg.get("SMTP_SECURE") and user:
            server.starttls(context=ssl.create_default_context())
        if user:
            server.login(user, password or "")
        server.send_message(msg)
    logger.info("Email sent to=%s subject=%s", ", ".join(recipients), subject)
    return out


def send_templated_email(
    *,
    to: str | Iterable[str],
    subject: str,
    title: str,
    message: str | Sequence[str],
    **template_kwargs,
) -> OutgoingEmail | None:
    """
    Build + send, logging delivery failures instead of failing the caller's request.
    Used for notifications that accompany an already-committed state change.
    """
    html, text = build_email_template(title=title, message=message, **template_kwargs)
    try:
        return send_email(to=to, subject=subject, text=text, html=html)
    except (EmailError, smtplib.SMTPException, OSError):
        logger.exception("Email delivery failed (subject=%s)", subject)
        return None


