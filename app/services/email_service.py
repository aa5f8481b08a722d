"""
Email service for customer order confirmations and owner notifications.
Uses Flask-Mail for SMTP integration with UTF-8 support.
"""
import logging
from flask import current_app
from flask_mail import Mail, Message
from markupsafe import escape

logger = logging.getLogger(__name__)

mail = Mail()


def init_mail(app):
    """Initialize Flask-Mail with app."""
    mail.init_app(app)


def _mail_enabled() -> bool:
    """
    Check if mail is properly configured and enabled.
    Keeps dev and test environments from failing on SMTP.
    """
    cfg = current_app.config
    return bool(
        not cfg.get("MAIL_SUPPRESS_SEND", False)
        and cfg.get("MAIL_SERVER")
        and cfg.get("MAIL_USERNAME")
    )


def _format_quantity(quantity) -> str:
    text = f"{quantity:f}" if hasattr(quantity, 'is_finite') else str(quantity)
    return text.rstrip('0').rstrip('.') if '.' in text else text


def send_submission_confirmation(submission, business) -> bool:
    """
    Confirm a catalog order request to the customer.

    Args:
        submission: CustomerSubmission with its items loaded
        business: BusinessProfile that received the request

    Returns:
        True if sent (or mail disabled), False on SMTP errors
    """
    to_email = submission.customer_email
    try:
        if not _mail_enabled():
            logger.info(f"[MAIL DISABLED] Submission confirmation skipped for {to_email}")
            return True

        rows = "".join(
            f"""
            <tr>
                <td>{escape(item.item_name)}</td>
                <td align="center">{_format_quantity(item.quantity)}</td>
            </tr>"""
            for item in submission.items
        )

        html_body = f"""
        <!DOCTYPE html>
        <html>
        <head><meta charset="UTF-8"></head>
        <body style="font-family: Arial, sans-serif; color: #333;">
            <div style="max-width: 600px; margin: auto; padding: 20px;">
                <h2>Thanks for your request, {escape(submission.customer_name)}!</h2>
                <p><strong>{escape(business.business_name)}</strong> received your order request
                and will contact you shortly.</p>
                <table border="1" cellpadding="8" cellspacing="0" width="100%">
                    <tr style="background:#f2f2f2;">
                        <th>Item</th>
                        <th>Quantity</th>
                    </tr>
                    {rows}
                </table>
                <p style="font-size: 13px; color: #666;">
                    Questions? Reply to {escape(business.contact_email)}.
                </p>
            </div>
        </body>
        </html>
        """

        text_lines = "\n".join(
            f"- {item.item_name} x {_format_quantity(item.quantity)}" for item in submission.items
        )
        text_body = f"""
Thanks for your request, {submission.customer_name}!

{business.business_name} received your order request:

{text_lines}

Questions? Reply to {business.contact_email}.
"""

        msg = Message(
            subject=f"Order request received - {business.business_name}",
            recipients=[to_email],
            body=text_body,
            html=html_body,
            reply_to=business.contact_email,
        )

        mail.send(msg)
        logger.info(f"[EMAIL] ✓ Submission confirmation sent to {to_email}")
        return True

    except Exception as e:
        logger.exception(f"[EMAIL] ✗ Error sending submission confirmation: {e}")
        return False


def send_submission_notification(submission, business) -> bool:
    """Tell the business owner a new order request arrived."""
    try:
        if not _mail_enabled():
            logger.info(f"[MAIL DISABLED] Submission notification skipped for {business.contact_email}")
            return True

        msg = Message(
            subject=f"New order request from {submission.customer_name}",
            recipients=[business.contact_email],
            body=(
                f"{submission.customer_name} <{submission.customer_email}> requested "
                f"{len(submission.items)} item(s). Submission #{submission.id}."
            ),
        )
        mail.send(msg)
        return True

    except Exception:
        logger.exception("[EMAIL] Error sending submission notification")
        return False
