"""
Email Service using Resend
Appointment emails are written in MJML and compiled to HTML before sending
"""

import logging
from typing import Optional, Union

import resend
from mjml import mjml_to_html

from .config import EMAIL_FROM_ADDRESS, FRONTEND_URL, RESEND_API_KEY
from .email_templates import (
    appointment_cancelled_template,
    appointment_created_template,
    appointment_details,
)

logger = logging.getLogger(__name__)

resend.api_key = RESEND_API_KEY


def compile_mjml_to_html(mjml_content: str) -> str:
    """Compile MJML template to production-ready HTML"""
    try:
        result = mjml_to_html(mjml_content)
        if isinstance(result, dict):
            if result.get("errors"):
                logger.warning(f"MJML compilation warnings: {result['errors']}")
            return result.get("html", "")
        return getattr(result, "html", str(result))
    except Exception as e:
        logger.error(f"MJML compilation error: {e}")
        raise Exception(f"Failed to compile MJML template: {str(e)}") from e


async def send_email(
    to: Union[str, list[str]],
    subject: str,
    mjml_content: str,
    from_address: Optional[str] = None,
) -> dict:
    """
    Send an email through Resend

    Args:
        to: Recipient email(s)
        subject: Email subject line
        mjml_content: MJML template content (will be compiled to HTML)
        from_address: Optional custom from address

    Returns:
        Send response dict
    """
    if not RESEND_API_KEY:
        logger.error("❌ No email service configured - RESEND_API_KEY missing")
        raise Exception("Email service not configured")

    recipients = [to] if isinstance(to, str) else to
    email_data = {
        "from": from_address or EMAIL_FROM_ADDRESS,
        "to": recipients,
        "subject": subject,
        "html": compile_mjml_to_html(mjml_content),
    }

    try:
        logger.info(f"📧 Sending email via Resend to: {recipients}")
        response = resend.Emails.send(email_data)
        logger.info(f"✅ Email sent successfully via Resend: {response}")
        return response
    except Exception as e:
        logger.error(f"❌ Email send error to {recipients}: {e}")
        raise Exception(f"Failed to send email: {str(e)}") from e


def _format_price(amount: Optional[float]) -> Optional[str]:
    if amount is None:
        return None
    return f"{amount:.2f}"


def _details_for(appointment, service_name: str) -> str:
    return appointment_details(
        client_name=appointment.client_name,
        service_name=service_name,
        appointment_date=appointment.appointment_date.strftime("%A, %d %B %Y"),
        appointment_time=f"{appointment.start_time} - {appointment.end_time}",
        price=_format_price(appointment.payment_amount),
        client_phone=appointment.client_phone,
        client_email=appointment.client_email,
    )


async def send_appointment_created_email(to: str, business_name: str, appointment, service_name: str) -> dict:
    """Tell the provider a new appointment was booked"""
    mjml_content = appointment_created_template(
        business_name=business_name,
        details=_details_for(appointment, service_name),
        dashboard_url=f"{FRONTEND_URL}/agenda",
    )
    return await send_email(
        to=to,
        subject=f"New appointment: {appointment.client_name} on {appointment.appointment_date.isoformat()}",
        mjml_content=mjml_content,
    )


async def send_appointment_cancelled_email(to: str, business_name: str, appointment, service_name: str) -> dict:
    """Tell the provider an appointment was cancelled"""
    mjml_content = appointment_cancelled_template(
        business_name=business_name,
        details=_details_for(appointment, service_name),
        reason=appointment.cancellation_reason,
        dashboard_url=f"{FRONTEND_URL}/agenda",
    )
    return await send_email(
        to=to,
        subject=f"Appointment cancelled: {appointment.client_name} on {appointment.appointment_date.isoformat()}",
        mjml_content=mjml_content,
    )
