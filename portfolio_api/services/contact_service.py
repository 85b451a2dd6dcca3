"""
Contact service: contact form submissions and their admin workflow.
"""

import logging

from ..database import Database, DBContactMessage, DBUser, ListParams, Page
from ..database.converters import utcnow
from ..exceptions import require_message
from ..schemas import ContactRequest, ContactUpdateRequest
from ..validators import require_valid_search

logger = logging.getLogger(__name__)


class ContactService:
    """Service for contact message business logic."""

    def __init__(self, db: Database):
        self.db = db

    def submit(
        self,
        request: ContactRequest,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> DBContactMessage:
        """Store a message from the public contact form."""
        message_id = self.db.messages.add(
            name=request.name,
            email=request.email,
            message=request.message,
            ip_address=ip_address,
            user_agent=user_agent,
        )
        logger.info(f"New contact message from {request.name} ({request.email})")
        return require_message(self.db.messages.get(message_id))

    def list_messages(self, params: ListParams, status: str | None = None) -> Page[DBContactMessage]:
        """List messages for the admin inbox. Unknown status values are ignored."""
        params.search = require_valid_search(params.search)
        if status not in ("new", "read", "replied", "archived"):
            status = None
        return self.db.messages.get_many(params, status=status)

    def open_message(self, message_id: int) -> DBContactMessage:
        """Get a message, marking it read if it was new."""
        message = require_message(self.db.messages.get(message_id))
        if message.status == "new":
            self.db.messages.mark_read(message_id)
            message = require_message(self.db.messages.get(message_id))
        return message

    def update_message(
        self,
        message_id: int,
        request: ContactUpdateRequest,
        actor: DBUser,
    ) -> DBContactMessage:
        """Change status and/or notes. Replying is stamped once."""
        message = require_message(self.db.messages.get(message_id))

        fields: dict = {}
        if request.status:
            fields["status"] = request.status
        if request.notes is not None:
            fields["notes"] = request.notes
        if request.status == "replied" and not message.replied:
            fields["replied"] = True
            fields["replied_at"] = utcnow()

        self.db.messages.update(message_id, fields)
        logger.info(f"Contact message {message_id} updated by {actor.username}")
        return require_message(self.db.messages.get(message_id))

    def delete_message(self, message_id: int, actor: DBUser) -> None:
        require_message(self.db.messages.get(message_id))
        self.db.messages.delete(message_id)
        logger.info(f"Contact message deleted by {actor.username}")

    def get_stats(self) -> dict:
        repo = self.db.messages
        return {
            "total_messages": repo.count(),
            "new_messages": repo.count(status="new"),
            "replied_messages": repo.count(replied=True),
            "status_breakdown": repo.count_by_status(),
        }
