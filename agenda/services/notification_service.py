"""
Appointment notifications
Booking and cancellation events are queued on the ARQ worker so a slow
or failing email provider never delays or fails the HTTP request
"""

import logging

from arq import create_pool
from sqlalchemy.orm import Session

from ..email_service import send_appointment_cancelled_email, send_appointment_created_email
from ..models import Appointment, Provider, Service

logger = logging.getLogger(__name__)

APPOINTMENT_CREATED = "appointment_created"
APPOINTMENT_CANCELLED = "appointment_cancelled"

NOTIFICATION_TYPES = (APPOINTMENT_CREATED, APPOINTMENT_CANCELLED)


async def notify_appointment_event(appointment_id: int, notification_type: str) -> bool:
    """Queue a notification job. Returns False (and logs) when queueing fails."""
    from ..worker import get_redis_settings

    if notification_type not in NOTIFICATION_TYPES:
        raise ValueError(f"Unknown notification type: {notification_type}")

    try:
        pool = await create_pool(get_redis_settings())
        job = await pool.enqueue_job(
            "send_appointment_notification_task", appointment_id, notification_type
        )
        logger.info(f"📋 {notification_type} notification queued for appointment {appointment_id}: {job.job_id if job else 'duplicate'}")
        return True
    except Exception as e:
        logger.warning(f"⚠️ Failed to queue {notification_type} notification for appointment {appointment_id}: {e}")
        return False


async def send_appointment_notification(db: Session, appointment_id: int, notification_type: str) -> dict:
    """
    Deliver one appointment notification to the provider

    Returns:
        Dict with email_sent status and the error, if any
    """
    result = {"email_sent": False, "email_error": None}

    appointment = db.query(Appointment).filter(Appointment.id == appointment_id).first()
    if not appointment:
        logger.error(f"❌ Appointment not found: {appointment_id}")
        result["email_error"] = "Appointment not found"
        return result

    provider = db.query(Provider).filter(Provider.id == appointment.provider_id).first()
    service = db.query(Service).filter(Service.id == appointment.service_id).first()

    if not provider or not provider.email:
        logger.debug(f"⚠️ No email address for provider of appointment {appointment_id}")
        result["email_error"] = "Provider has no email address"
        return result

    send = (
        send_appointment_created_email
        if notification_type == APPOINTMENT_CREATED
        else send_appointment_cancelled_email
    )

    try:
        logger.info(f"📧 Sending {notification_type} email to {provider.email}")
        await send(
            to=provider.email,
            business_name=provider.business_name,
            appointment=appointment,
            service_name=service.name if service else "Service",
        )
        result["email_sent"] = True
        logger.info(f"✅ {notification_type} email sent to {provider.email}")
    except Exception as e:
        result["email_error"] = str(e)
        logger.error(f"❌ Failed to send {notification_type} email to {provider.email}: {e}")

    return result
