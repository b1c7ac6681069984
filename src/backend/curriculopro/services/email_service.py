"""Transactional email over SMTP.

smtplib is blocking, so delivery runs in a worker thread. Each message has a
plain-text body and an HTML alternative.
"""

import asyncio
import html
import logging
import secrets
import smtplib
from datetime import datetime
from email.message import EmailMessage
from email.utils import formataddr
from urllib.parse import urlencode
from zoneinfo import ZoneInfo

from curriculopro.core.config import settings
from curriculopro.core.errors import EmailDeliveryError

logger = logging.getLogger(__name__)

SMTP_TIMEOUT_SECONDS = 12
LOCAL_TZ = ZoneInfo("America/Sao_Paulo")


def generate_verification_code() -> str:
    """Six-digit numeric code."""
    return str(secrets.randbelow(900000) + 100000)


def _html_body(title: str, paragraphs: list[str], highlight: str | None = None, link: str | None = None) -> str:
    app_name = html.escape(settings.email_from_name)
    parts = [f"<h2 style=\"color:#4f46e5\">{html.escape(title)}</h2>"]
    parts += [f"<p>{html.escape(p)}</p>" for p in paragraphs]
    if highlight:
        parts.append(
            "<p style=\"font-size:32px;letter-spacing:8px;font-weight:bold;text-align:center\">"
            f"{html.escape(highlight)}</p>"
        )
    if link:
        safe = html.escape(link, quote=True)
        parts.append(f"<p><a href=\"{safe}\" style=\"color:#4f46e5\">{safe}</a></p>")
    parts.append(f"<hr><p style=\"color:#6b7280;font-size:12px\">{app_name}</p>")
    return "<html><body style=\"font-family:Arial,sans-serif\">" + "".join(parts) + "</body></html>"


def build_message(
    to_email: str,
    subject: str,
    paragraphs: list[str],
    *,
    highlight: str | None = None,
    link: str | None = None,
) -> EmailMessage:
    msg = EmailMessage()
    msg["Subject"] = subject
    sender = settings.email_from or settings.smtp_user
    if sender:
        msg["From"] = formataddr((settings.email_from_name, sender))
    msg["To"] = to_email
    if settings.email_copy_to:
        msg["Cc"] = settings.email_copy_to

    text = "\n\n".join(paragraphs + [p for p in (highlight, link) if p])
    msg.set_content(text)
    msg.add_alternative(_html_body(subject, paragraphs, highlight, link), subtype="html")
    return msg


def _send_sync(msg: EmailMessage) -> None:
    use_ssl = settings.smtp_port == 465 or settings.smtp_use_ssl
    if use_ssl:
        with smtplib.SMTP_SSL(settings.smtp_host, settings.smtp_port, timeout=SMTP_TIMEOUT_SECONDS) as server:
            server.login(settings.smtp_user, settings.smtp_password)
            server.send_message(msg)
    else:
        with smtplib.SMTP(settings.smtp_host, settings.smtp_port, timeout=SMTP_TIMEOUT_SECONDS) as server:
            if settings.smtp_use_tls:
                server.starttls()
            server.login(settings.smtp_user, settings.smtp_password)
            server.send_message(msg)


async def send(msg: EmailMessage) -> None:
    """Deliver a message. Raises EmailDeliveryError when SMTP is missing or fails."""
    if not settings.smtp_configured:
        raise EmailDeliveryError("Serviço de email não configurado")
    try:
        await asyncio.to_thread(_send_sync, msg)
    except smtplib.SMTPAuthenticationError as exc:
        logger.exception("SMTP auth failed for %s", settings.smtp_user)
        raise EmailDeliveryError("Falha de autenticação no servidor de email") from exc
    except (smtplib.SMTPException, OSError) as exc:
        logger.exception("SMTP error while sending email to %s", msg["To"])
        raise EmailDeliveryError("Não foi possível enviar o email") from exc
    logger.info("Email '%s' sent to %s", msg["Subject"], msg["To"])


async def send_quietly(msg: EmailMessage) -> bool:
    """Deliver a notification whose failure must not affect the caller."""
    try:
        await send(msg)
        return True
    except EmailDeliveryError as exc:
        logger.warning("Notification '%s' not delivered: %s", msg["Subject"], exc)
        return False


def _greeting(name: str | None) -> str:
    return f"Olá, {name}!" if name else "Olá!"


# --- Message builders ---

def verification_code_email(email: str, code: str, name: str | None = None) -> EmailMessage:
    return build_message(
        email,
        f"Código de Verificação - {settings.email_from_name}",
        [
            _greeting(name),
            "Use o código abaixo para verificar seu email.",
            "Este código expira em 15 minutos. Se você não solicitou, ignore este email.",
        ],
        highlight=code,
    )


def login_code_email(email: str, code: str, name: str | None = None) -> EmailMessage:
    return build_message(
        email,
        f"Código de Login - {settings.email_from_name}",
        [
            _greeting(name),
            "Use o código abaixo para entrar na sua conta.",
            "Este código expira em 15 minutos.",
        ],
        highlight=code,
    )


def welcome_email(email: str, name: str | None = None) -> EmailMessage:
    return build_message(
        email,
        f"Bem-vindo ao {settings.email_from_name}!",
        [
            _greeting(name),
            "Sua conta foi verificada com sucesso.",
            "Envie seu currículo e receba uma análise completa com inteligência artificial.",
        ],
        link=settings.frontend_url,
    )


def login_notification_email(email: str, name: str | None = None, client_ip: str | None = None) -> EmailMessage:
    when = datetime.now(LOCAL_TZ).strftime("%d/%m/%Y %H:%M")
    paragraphs = [_greeting(name), f"Um login foi realizado na sua conta em {when}."]
    if client_ip:
        paragraphs.append(f"Endereço IP: {client_ip}")
    paragraphs.append("Se não foi você, altere sua senha imediatamente.")
    return build_message(email, f"Login Realizado - {settings.email_from_name}", paragraphs)


def verification_link_email(email: str, token: str, name: str | None = None) -> EmailMessage:
    query = urlencode({"email": email, "token": token})
    link = f"{settings.api_url.rstrip('/')}/api/auth/verify-email-link?{query}"
    return build_message(
        email,
        f"Verifique seu email - {settings.email_from_name}",
        [_greeting(name), "Clique no link abaixo para verificar seu email. O link expira em 1 hora."],
        link=link,
    )


def password_changed_email(email: str, name: str | None = None) -> EmailMessage:
    when = datetime.now(LOCAL_TZ).strftime("%d/%m/%Y %H:%M")
    return build_message(
        email,
        f"Senha alterada - {settings.email_from_name}",
        [
            _greeting(name),
            f"A senha da sua conta foi alterada em {when} (horário de Brasília).",
            "Se não foi você, recupere o acesso imediatamente.",
        ],
    )


def password_reset_email(email: str, token: str, name: str | None = None) -> EmailMessage:
    link = f"{settings.frontend_url.rstrip('/')}/reset-password?{urlencode({'token': token})}"
    return build_message(
        email,
        f"Recuperação de Senha - {settings.email_from_name}",
        [
            _greeting(name),
            "Recebemos uma solicitação para redefinir sua senha. O link expira em 1 hora.",
            "Se você não solicitou, ignore este email.",
        ],
        link=link,
    )
