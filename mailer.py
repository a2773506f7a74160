import os
import smtplib
from email.message import EmailMessage
from html import escape

import structlog
from fastapi import APIRouter

from errors import MailFailed
from schemas import EmailMessagePayload

logger = structlog.get_logger(__name__)

SMTP_HOST = os.getenv("SMTP_HOST", "smtp.gmail.com")
SMTP_PORT = int(os.getenv("SMTP_PORT", 587))
EMAIL_USER = os.getenv("EMAIL_USER", "")
EMAIL_PASS = os.getenv("EMAIL_PASS", "")
CONTACT_RECIPIENT = os.getenv("CONTACT_RECIPIENT") or EMAIL_USER

router = APIRouter()


def build_message(payload: EmailMessagePayload) -> EmailMessage:
    msg = EmailMessage()
    msg["Subject"] = f"New Contact Form Message: {payload.subject}"
    msg["From"] = EMAIL_USER
    msg["To"] = CONTACT_RECIPIENT
    msg["Reply-To"] = str(payload.email)
    text = (
        f"Name: {payload.name}\n"
        f"Email: {payload.email}\n"
        f"Subject: {payload.subject}\n\n"
        f"{payload.message}\n"
    )
    html = f"""
        <h3>New Message from Portfolio</h3>
        <p><strong>Name:</strong> {escape(payload.name)}</p>
        <p><strong>Email:</strong> {escape(str(payload.email))}</p>
        <p><strong>Subject:</strong> {escape(payload.subject)}</p>
        <div style="margin-top: 20px; padding: 10px; border-left: 5px solid #10b981; background: #f3f4f6;">
          <p><strong>Message:</strong></p>
          <p>{escape(payload.message)}</p>
        </div>
    """
    msg.set_content(text)
    msg.add_alternative(html, subtype="html")
    return msg


def send_mail(msg: EmailMessage) -> None:
    try:
        with smtplib.SMTP(SMTP_HOST, SMTP_PORT, timeout=15) as smtp:
            smtp.starttls()
            if EMAIL_USER:
                smtp.login(EMAIL_USER, EMAIL_PASS)
            smtp.send_message(msg)
    except (smtplib.SMTPException, OSError) as e:
        logger.error("email_failed", host=SMTP_HOST, error=str(e))
        raise MailFailed()
    logger.info("email_sent", to=msg["To"])


@router.post("/api/send-email")
def send_email(payload: EmailMessagePayload):
    send_mail(build_message(payload))
    return {"success": True, "message": "Email sent successfully!"}
