"""
Email Service with SendGrid Integration
Sends registration confirmations and waiting list promotion notices
"""

import asyncio
from typing import List, Dict, Optional
import logging
from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail, Attachment, FileContent, FileName, FileType, Disposition, ContentId
from jinja2 import Template

from app.config import settings
from app.core.logging import mask_email
from app.core.metrics import EMAIL_FAILURES
from app.models.enums import PaymentType
from app.utils.timezone import format_event_date, format_event_time_range

logger = logging.getLogger(__name__)


class EmailService:
    """Service for handling email operations"""

    def __init__(self):
        self._client: Optional[SendGridAPIClient] = None
        self.from_email = settings.FROM_EMAIL
        self.templates = self._load_templates()

    @property
    def client(self) -> SendGridAPIClient:
        if self._client is None:
            self._client = SendGridAPIClient(settings.SENDGRID_API_KEY)
        return self._client

    def _load_templates(self) -> Dict[str, Template]:
        """Load email templates"""
        templates = {
            "registration_confirmation": Template("""
                <!DOCTYPE html>
                <html>
                <head>
                    <style>
                        body { font-family: Arial, sans-serif; line-height: 1.6; color: #333; }
                        .container { max-width: 600px; margin: 0 auto; padding: 20px; text-align: center; }
                        .header { color: #5a2ca0; }
                        .details { background: #f9fafb; border-radius: 8px; padding: 20px; margin: 20px 0; text-align: left; }
                        .footer { padding: 20px; color: #666; font-size: 14px; }
                    </style>
                </head>
                <body>
                    <div class="container">
                        <h1 class="header">Registration Confirmation</h1>
                        <p>Hello {{ first_name }},</p>
                        <p>You are registered for <strong>{{ event_title }}</strong>.</p>

                        <div class="details">
                            <p><strong>Date:</strong> {{ event_date }}</p>
                            <p><strong>Time:</strong> {{ event_time }}</p>
                            <p><strong>Location:</strong> {{ event_location }}</p>
                            {% if variable_symbol %}<p><strong>Variable symbol:</strong> {{ variable_symbol }}</p>{% endif %}
                        </div>

                        {% if has_qr %}
                        <p>Scan the attached QR code in your banking app to pay.</p>
                        <img src="cid:payment-qr" alt="Payment QR code" width="250" height="250" />
                        {% else %}
                        <p>Please bring cash for payment on arrival.</p>
                        {% endif %}

                        <div class="footer">
                            <p>See you on the court!</p>
                            <p>The Game On Team</p>
                        </div>
                    </div>
                </body>
                </html>
            """),

            "waiting_list_promotion": Template("""
                <!DOCTYPE html>
                <html>
                <body>
                    <div style="max-width: 600px; margin: 0 auto; padding: 20px; font-family: Arial, sans-serif;">
                        <h1 style="color: #6d28d9; text-align: center;">You're In!</h1>
                        <p>Hello {{ first_name }},</p>
                        <p>Great news! A spot has opened up for <strong>{{ event_title }}</strong>
                        and you've been moved from the waiting list to registered participants.</p>

                        <div style="background: #f9fafb; border-radius: 8px; padding: 20px; margin: 24px 0;">
                            <p><strong>Event Details:</strong></p>
                            <p>Date: {{ event_date }}</p>
                            <p>Time: {{ event_time }}</p>
                            <p>Location: {{ event_location }}</p>
                            <p>Payment Method: {{ payment_label }}</p>
                        </div>

                        <p>{{ payment_note }}</p>
                        <p>We're looking forward to seeing you there!</p>

                        <p><a href="{{ dashboard_url }}" style="display: inline-block; padding: 12px 24px; background: #6d28d9; color: white; text-decoration: none; border-radius: 4px;">View Your Dashboard</a></p>

                        <p style="color: #666; font-size: 14px;">Best regards,<br>The Game On Team</p>
                    </div>
                </body>
                </html>
            """)
        }
        return templates

    async def send_email(
        self,
        to_email: str,
        subject: str,
        template_name: str,
        context: Dict,
        attachments: Optional[List[Dict]] = None
    ) -> bool:
        """Send an email using SendGrid. Never raises; returns whether it was accepted."""
        if not settings.EMAIL_ENABLED:
            logger.debug(f"Email disabled, skipping {template_name} to {mask_email(to_email)}")
            return False

        try:
            template = self.templates.get(template_name)
            if not template:
                logger.error(f"Template {template_name} not found")
                return False

            html_content = template.render(**context)

            message = Mail(
                from_email=self.from_email,
                to_emails=to_email,
                subject=subject,
                html_content=html_content
            )

            for attachment_data in attachments or []:
                attachment = Attachment(
                    FileContent(attachment_data['content']),
                    FileName(attachment_data['filename']),
                    FileType(attachment_data['type']),
                    Disposition(attachment_data.get('disposition', 'attachment'))
                )
                if attachment_data.get('content_id'):
                    attachment.content_id = ContentId(attachment_data['content_id'])
                message.add_attachment(attachment)

            # SendGrid's client is blocking
            loop = asyncio.get_running_loop()
            response = await loop.run_in_executor(None, self.client.send, message)

            logger.info(f"Email {template_name} sent to {mask_email(to_email)}: {response.status_code}")
            if response.status_code in [200, 201, 202]:
                return True

        except Exception as e:
            logger.error(f"Error sending {template_name} email to {mask_email(to_email)}: {str(e)}")

        EMAIL_FAILURES.labels(template=template_name).inc()
        return False

    @staticmethod
    def _event_context(event) -> Dict:
        return {
            "event_title": event.title,
            "event_date": format_event_date(event.from_time),
            "event_time": format_event_time_range(event.from_time, event.to_time),
            "event_location": event.place or "",
        }

    async def send_registration_confirmation(
        self,
        to_email: str,
        first_name: str,
        event,
        qr_code_data: Optional[str] = None,
        variable_symbol: Optional[str] = None
    ) -> bool:
        """Send registration confirmation, with the payment QR code inline when present"""
        context = {
            "first_name": first_name,
            "has_qr": bool(qr_code_data),
            "variable_symbol": variable_symbol,
            **self._event_context(event)
        }

        attachments = []
        if qr_code_data and "," in qr_code_data:
            attachments.append({
                "content": qr_code_data.split(",", 1)[1],
                "filename": "payment-qr.png",
                "type": "image/png",
                "disposition": "inline",
                "content_id": "payment-qr"
            })

        return await self.send_email(
            to_email=to_email,
            subject=f"Registration Confirmation - {event.title}",
            template_name="registration_confirmation",
            context=context,
            attachments=attachments
        )

    async def send_waiting_list_promotion(
        self,
        to_email: str,
        first_name: str,
        event,
        payment_type: PaymentType
    ) -> bool:
        """Tell a promoted waiting list entry they now have a spot"""
        cashless = PaymentType(payment_type) != PaymentType.CASH
        context = {
            "first_name": first_name,
            "payment_label": "Card/QR Payment" if cashless else "Cash on arrival",
            "payment_note": (
                "Please check your original registration email for payment details, "
                "or log in to your account to see your registration status."
                if cashless else "Please remember to bring cash for payment on arrival."
            ),
            "dashboard_url": f"{settings.FRONTEND_URL}/dashboard",
            **self._event_context(event)
        }

        return await self.send_email(
            to_email=to_email,
            subject=f"You're registered for {event.title}!",
            template_name="waiting_list_promotion",
            context=context
        )


# Initialize global email service
email_service = EmailService()
