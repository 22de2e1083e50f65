"""
Notification Service - Email notifications for scheduling and support

Notification Types:
- SCHEDULE_PROPOSED: A party proposed an installation date/time
- SCHEDULE_CONFIRMED: A proposal was accepted, both parties are told
- SCHEDULE_DECLINED: A proposal was rejected, the proposer is told
- TICKET_REPLY: An admin replied to a support ticket
- TICKET_STATUS_UPDATED: An admin changed a ticket status

Delivery is best effort. A failed email is logged and reported through the
return value, it never fails the request that triggered it.
"""

import logging
import smtplib
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from html import escape
from typing import Dict, List

from app.core.config import settings
from app.utils.negotiation_rules import time_slot_label

logger = logging.getLogger(__name__)


class NotificationType:
    """Notification type constants"""
    SCHEDULE_PROPOSED = "schedule_proposed"
    SCHEDULE_CONFIRMED = "schedule_confirmed"
    SCHEDULE_DECLINED = "schedule_declined"
    TICKET_REPLY = "ticket_reply"
    TICKET_STATUS_UPDATED = "ticket_status_updated"


TICKET_STATUS_LABELS = {
    "open": "Open",
    "in_progress": "In Progress",
    "closed": "Closed",
}


class NotificationService:
    """
    Centralized email notifications for the tradesbook.ie platform.
    """

    # ==================== EMAIL METHODS ====================

    def _send_email(self, to_email: str, subject: str, html_body: str, text_body: str = None) -> bool:
        """
        Send an email notification.
        Returns True if successful, False otherwise.
        """
        if not settings.SMTP_USER or not settings.SMTP_PASSWORD:
            logger.info(f"SMTP not configured. Would send to {to_email}: {subject}")
            return False

        try:
            msg = MIMEMultipart("alternative")
            msg["Subject"] = subject
            msg["From"] = f"{settings.SMTP_FROM_NAME} <{settings.SMTP_FROM_EMAIL}>"
            msg["To"] = to_email

            # Attach both text and HTML versions
            if text_body:
                msg.attach(MIMEText(text_body, "plain"))
            msg.attach(MIMEText(html_body, "html"))

            with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT) as server:
                server.starttls()
                server.login(settings.SMTP_USER, settings.SMTP_PASSWORD)
                server.sendmail(settings.SMTP_FROM_EMAIL, to_email, msg.as_string())

            logger.info(f"Email sent to {to_email}: {subject}")
            return True
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Failed to send email to {to_email}: {e}")
            return False

    def _create_email_html(self, title: str, message: str, url: str = None) -> str:
        """Create a simple HTML email template"""
        cta_button = ""
        if url:
            cta_button = f'''
            <p style="text-align: center; margin-top: 20px;">
                <a href="{url}" style="background-color: #2563eb; color: white; padding: 12px 24px; text-decoration: none; border-radius: 6px; display: inline-block;">
                    View Details
                </a>
            </p>
            '''

        return f'''
        <!DOCTYPE html>
        <html>
        <head>
            <meta charset="utf-8">
            <meta name="viewport" content="width=device-width, initial-scale=1.0">
        </head>
        <body style="font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; line-height: 1.6; color: #333; max-width: 600px; margin: 0 auto; padding: 20px;">
            <div style="background-color: #f8f9fa; border-radius: 8px; padding: 30px;">
                <h1 style="color: #1a1a1a; margin-bottom: 16px; font-size: 24px;">{escape(title)}</h1>
                <p style="color: #555; font-size: 16px; margin-bottom: 24px; white-space: pre-line;">{escape(message)}</p>
                {cta_button}
            </div>
            <p style="text-align: center; color: #999; font-size: 12px; margin-top: 20px;">
                This is an automated message from tradesbook.ie.
            </p>
        </body>
        </html>
        '''

    def notify(self, notification_type: str, title: str, message: str, recipients: List[str], url: str = None) -> Dict[str, bool]:
        """
        Email every recipient. Returns dict of address -> success.
        """
        results = {}
        html_content = self._create_email_html(title, message, url)
        for email in recipients:
            if not email:
                continue
            results[email] = self._send_email(email, title, html_content, message)
        logger.info(f"Notification {notification_type} delivered to {sum(results.values())}/{len(results)} recipients")
        return results

    # ==================== SCHEDULE NOTIFICATIONS ====================

    @staticmethod
    def _schedule_line(negotiation) -> str:
        date_str = negotiation.proposed_date.strftime("%A, %B %d, %Y")
        return f"{date_str}, {time_slot_label(negotiation)}"

    def notify_schedule_proposed(self, booking, negotiation) -> Dict[str, bool]:
        """Tell the counterparty that a new time was proposed."""
        if negotiation.proposed_by == "customer":
            recipient = booking.installer.email if booking.installer else None
            url = f"{settings.SITE_URL}/installer-dashboard"
            who = booking.contact_name
        else:
            recipient = booking.contact_email
            url = f"{settings.SITE_URL}/customer-dashboard"
            who = booking.installer.business_name if booking.installer else "Your installer"

        message = f"{who} proposed an installation time for booking #{booking.id}: {self._schedule_line(negotiation)}."
        if negotiation.proposal_message:
            message += f"\n\nMessage: {negotiation.proposal_message}"

        return self.notify(
            NotificationType.SCHEDULE_PROPOSED,
            "New installation schedule proposal",
            message,
            [recipient],
            url=url,
        )

    def notify_schedule_confirmed(self, booking, negotiation) -> Dict[str, bool]:
        """Tell both parties the installation time is agreed."""
        recipients = [booking.contact_email]
        if booking.installer:
            recipients.append(booking.installer.email)
        message = f"The installation for booking #{booking.id} is confirmed for {self._schedule_line(negotiation)}."
        return self.notify(
            NotificationType.SCHEDULE_CONFIRMED,
            "Installation schedule confirmed",
            message,
            recipients,
            url=f"{settings.SITE_URL}/booking/{booking.id}",
        )

    def notify_schedule_declined(self, booking, negotiation) -> Dict[str, bool]:
        """Tell the proposer their proposal was declined."""
        if negotiation.proposed_by == "customer":
            recipient = booking.contact_email
        else:
            recipient = booking.installer.email if booking.installer else None
        message = f"Your proposed time for booking #{booking.id} ({self._schedule_line(negotiation)}) was declined."
        if negotiation.response_message:
            message += f"\n\nReason: {negotiation.response_message}"
        return self.notify(
            NotificationType.SCHEDULE_DECLINED,
            "Installation schedule declined",
            message,
            [recipient],
            url=f"{settings.SITE_URL}/booking/{booking.id}",
        )

    # ==================== SUPPORT NOTIFICATIONS ====================

    def notify_ticket_reply(self, ticket, reply_message: str) -> Dict[str, bool]:
        if not ticket.requester:
            return {}
        message = (
            f"Our support team replied to your ticket #{ticket.id} \"{ticket.subject}\":\n\n"
            f"{reply_message}\n\n"
            f"Current status: {TICKET_STATUS_LABELS.get(ticket.status, ticket.status)}"
        )
        return self.notify(
            NotificationType.TICKET_REPLY,
            f"Re: {ticket.subject}",
            message,
            [ticket.requester.email],
            url=f"{settings.SITE_URL}/support",
        )

    def notify_ticket_status(self, ticket) -> Dict[str, bool]:
        if not ticket.requester:
            return {}
        message = (
            f"The status of your ticket #{ticket.id} \"{ticket.subject}\" is now "
            f"{TICKET_STATUS_LABELS.get(ticket.status, ticket.status)}."
        )
        return self.notify(
            NotificationType.TICKET_STATUS_UPDATED,
            "Support ticket updated",
            message,
            [ticket.requester.email],
            url=f"{settings.SITE_URL}/support",
        )
