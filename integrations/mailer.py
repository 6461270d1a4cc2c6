"""
Email integration for sending trend alerts.

Sends HTML alert emails through the Resend API.
"""

from html import escape
from typing import Optional
from urllib.parse import quote
import requests
import structlog

from config import settings
from exceptions import EmailError
from models.alert import AlertType

logger = structlog.get_logger(__name__)


RESEND_API_URL = "https://api.resend.com/emails"

ALERT_EMOJIS = {
    AlertType.SPIKE: "🚀",
    AlertType.DROP: "⚠️",
    AlertType.THRESHOLD: "🔔",
}


def format_alert_email(
    term: str,
    geo: str,
    old_score: int,
    new_score: int,
    change_percent: float,
    alert_type: AlertType
) -> tuple[str, str]:
    """
    Format a trend alert as an email.

    Args:
        term: Monitored term
        geo: Geo code, empty for worldwide
        old_score: Score recorded on the previous check
        new_score: Score computed on this check
        change_percent: Absolute % change
        alert_type: spike, threshold or drop

    Returns:
        Tuple of (subject, html body)
    """
    emoji = ALERT_EMOJIS.get(alert_type, "🔔")
    increased = new_score > old_score
    direction = "📈 increased" if increased else "📉 decreased"
    diff = new_score - old_score
    where = f" ({geo})" if geo else ""
    safe_term = escape(term)
    link = f"{settings.app_base_url}/?search={quote(term)}"
    if geo:
        link += f"&geo={quote(geo)}"

    subject = f'{emoji} Trend Alert: "{term}" {direction}'

    html = f"""
<!DOCTYPE html>
<html>
  <body style="font-family: system-ui, -apple-system, sans-serif; line-height: 1.6; color: #333;">
    <div style="max-width: 600px; margin: 0 auto; padding: 20px;">
      <h1>{emoji} Trend Alert</h1>
      <p>Your saved trend has changed significantly!</p>
      <h2>"{safe_term}"{escape(where)}</h2>
      <p>This trend has {direction} by <strong>{change_percent:.1f}%</strong></p>
      <p style="font-size: 32px; font-weight: bold;">{old_score} → {new_score}</p>
      <p style="color: {'#10b981' if increased else '#ef4444'};">
        {'+' if diff > 0 else ''}{diff} points
      </p>
      <p><a href="{escape(link)}">View on TrendPulse</a></p>
      <p style="color: #9ca3af; font-size: 12px;">
        You're receiving this because you enabled alerts for this trend.
        Manage your alerts in your <a href="{escape(settings.app_base_url)}/profile">Profile Settings</a>.
      </p>
    </div>
  </body>
</html>
"""

    return subject, html


def send_email(to: str, subject: str, html: str) -> bool:
    """
    Send an email through Resend.

    Args:
        to: Recipient address
        subject: Subject line
        html: HTML body

    Returns:
        True if sent, False if email is not configured

    Raises:
        EmailError: If the API call fails
    """
    if not settings.email_configured:
        logger.warning("email_not_configured_skipping_send")
        return False

    payload = {
        "from": settings.alert_from_email,
        "to": [to],
        "subject": subject,
        "html": html,
    }
    headers = {"Authorization": f"Bearer {settings.resend_api_key}"}

    try:
        logger.info("sending_alert_email", subject=subject)

        response = requests.post(RESEND_API_URL, json=payload, headers=headers, timeout=10)
        response.raise_for_status()

        logger.info("alert_email_sent", email_id=response.json().get("id"))
        return True

    except requests.exceptions.RequestException as e:
        logger.error("email_request_failed", error=str(e))
        raise EmailError(f"Failed to send email: {str(e)}")


def send_alert_email(
    to: Optional[str],
    term: str,
    geo: str,
    old_score: int,
    new_score: int,
    change_percent: float,
    alert_type: AlertType
) -> bool:
    """
    Format and send a trend alert.

    Returns:
        True if sent, False when there is no recipient or email is not configured

    Raises:
        EmailError: If the API call fails
    """
    if not to:
        logger.warning("alert_email_no_recipient", term=term)
        return False

    subject, html = format_alert_email(
        term, geo, old_score, new_score, change_percent, alert_type
    )
    return send_email(to, subject, html)
