"""
Lead assignment notifications over an HTTP mail API
"""
import httpx
from html import escape
from typing import Any, Dict, Optional

from lead_router.core.config import EmailConfig, settings
from lead_router.utils.helpers import display_name
from lead_router.utils.logging import get_logger

logger = get_logger(__name__)


def build_lead_assignment_email(agent: Dict[str, Any], prospect: Dict[str, Any], dashboard_url: Optional[str] = None) -> Dict[str, str]:
    """Subject, plain text and HTML bodies for a new-lead email"""
    agent_name = agent.get("full_name") or agent.get("email", "")
    prospect_name = display_name(prospect.get("first_name"), prospect.get("last_name"), fallback="New prospect")
    lines = [
        f"Hi {agent_name},",
        "",
        "A new lead has been assigned to you:",
        f"Name: {prospect_name}",
        f"Email: {prospect.get('email') or 'N/A'}",
        f"Phone: {prospect.get('phone') or 'N/A'}",
        f"Source: {prospect.get('lead_source') or 'N/A'}",
    ]
    if prospect.get("campaign_name"):
        lines.append(f"Campaign: {prospect['campaign_name']}")
    if dashboard_url:
        lines += ["", f"View your prospects: {dashboard_url}"]
    text = "\n".join(lines)
    html = "<br>".join(escape(line) for line in lines)
    return {
        "subject": f"New lead assigned: {prospect_name}",
        "text": text,
        "html": f"<p>{html}</p>",
    }


class NotificationService:
    """
    Sends emails through the configured mail API.
    Every public method returns a bool and never raises: a failed email
    must not affect the request that triggered it.
    """

    def __init__(self, config: Optional[EmailConfig] = None, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.config = config or settings.email
        self._transport = transport

    def _get_headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.config.api_key:
            headers["Authorization"] = f"Bearer {self.config.api_key}"
        return headers

    async def send_lead_assignment_email(self, agent: Dict[str, Any], prospect: Dict[str, Any]) -> bool:
        """
        Tell an agent about a newly routed prospect.

        Args:
            agent: ``email`` and ``full_name`` of the assignee
            prospect: name, contact fields, ``lead_source`` and optional ``campaign_name``

        Returns:
            True when the mail API accepted the message
        """
        if not agent or not agent.get("email"):
            logger.warning("[yellow]⚠️  Cannot send lead assignment email: agent has no email[/yellow]")
            return False

        message = build_lead_assignment_email(agent, prospect, self.config.dashboard_url)

        if not self.config.api_url:
            logger.info(
                f"[dim]📧 Mailer not configured; email not sent[/dim] "
                f"to={agent['email']} subject={message['subject']!r}"
            )
            return False

        payload = {
            "from": self.config.from_address,
            "to": agent["email"],
            **message,
        }
        try:
            async with httpx.AsyncClient(timeout=self.config.timeout, transport=self._transport) as client:
                response = await client.post(self.config.api_url, json=payload, headers=self._get_headers())
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(
                f"[red]❌ Mail API rejected lead assignment email:[/red] "
                f"[yellow]{e.response.status_code}[/yellow] - {e.response.text}"
            )
            return False
        except httpx.HTTPError as e:
            logger.error(f"[red]❌ Failed to send lead assignment email to {agent['email']}:[/red] {e}")
            return False

        logger.info(f"[green]✅ Lead assignment email sent[/green] to [cyan]{agent['email']}[/cyan]")
        return True
