"""
Security and funnel event recording
"""
from typing import Any, Dict, Optional
from sqlalchemy.orm import Session

from pricemyfloor.database.models import AdminAction, AnalyticsEvent
from pricemyfloor.utils.logging import get_logger

logger = get_logger(__name__)


class AnalyticsService:
    """Persists analytics and admin audit rows"""

    def __init__(self, db: Session):
        self.db = db

    def log_security_event(
        self,
        event: str,
        data: Dict[str, Any],
        client_ip: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> None:
        """
        Record a security event as a `security_<event>` analytics row.
        Failures are logged and never propagate to the request.
        """
        if event == "lead_submitted":
            logger.info(f"[cyan]🔐 Security event:[/cyan] {event} from {client_ip}")
        else:
            logger.warning(f"[yellow]🔐 Security event:[/yellow] {event} from {client_ip}")
        try:
            self.db.add(AnalyticsEvent(
                event_name=f"security_{event}",
                event_category="security",
                event_data=data,
                ip_address=client_ip,
                user_agent=user_agent,
            ))
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"[red]Failed to log security event {event}:[/red] {e}")

    def record_admin_action(
        self,
        admin_user_id: str,
        action_type: str,
        target_retailer_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        ip_address: Optional[str] = None,
        commit: bool = True,
    ) -> AdminAction:
        action = AdminAction(
            admin_user_id=admin_user_id,
            action_type=action_type,
            target_retailer_id=target_retailer_id,
            details=details or {},
            ip_address=ip_address,
        )
        self.db.add(action)
        if commit:
            self.db.commit()
        logger.info(f"[magenta]🛡️  Admin action[/magenta] {action_type} by {admin_user_id}")
        return action
