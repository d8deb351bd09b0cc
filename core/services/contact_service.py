# =============================================================================
# core/services/contact_service.py - Contact Messages
# =============================================================================

import logging
from typing import Any

from app.auth.models import AuthUser
from core.models.account import ContactMessage
from core.models.result import returns_action_result
from core.services.common import persistence_failure, require_user
from core.validation import validate_model
from lib.supabase_client import SupabaseClient

logger = logging.getLogger(__name__)


class ContactService:

    @staticmethod
    @returns_action_result
    def submit_contact_message(user: AuthUser | None, subject: str | None, message: str | None) -> dict[str, Any]:
        """Store a message for the site team, tagged with the sender's id and email."""
        user = require_user(user, "You must be signed in to send a message.")
        contact = validate_model(ContactMessage, {"subject": subject or "", "message": message or ""})

        with persistence_failure("Failed to send message. Please try again."):
            SupabaseClient.insert_contact_message({
                "user_id": str(user.id),
                "email": user.email or "",
                "subject": contact.subject,
                "message": contact.message,
            })

        logger.info(f"Contact message received from {user.id}")
        return {}
