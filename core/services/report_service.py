# =============================================================================
# core/services/report_service.py - Listing Reports
# =============================================================================
# Signed-in users flag listings for moderation. One pending report per
# (reporter, listing); admins close them through ModerationService.
# =============================================================================

import logging
from typing import Any

from app.auth.models import AuthUser
from app.exceptions import DuplicateResourceError
from core.models.report import ReportStatus
from core.models.result import returns_action_result
from core.services.common import enforce_rate_limit, persistence_failure, require_user
from core.validation import validate_report
from lib.rate_limit import RateLimitRule
from lib.supabase_client import SupabaseClient

logger = logging.getLogger(__name__)


class ReportService:

    @staticmethod
    @returns_action_result
    def submit_report(user: AuthUser | None, raw: dict[str, Any]) -> dict[str, Any]:
        """
        File a report against a listing.

        Args:
            user: Signed-in caller
            raw: {"listing_id", "reason", "details"}

        Returns:
            {"id": <report id>}
        """
        user = require_user(user, "You must be signed in to report an app.")
        user_id = str(user.id)

        enforce_rate_limit(RateLimitRule.REPORT, user_id)

        report = validate_report(raw)

        with persistence_failure("Failed to submit report. Please try again."):
            existing = SupabaseClient.find_pending_report(report.listing_id, user_id)
        if existing:
            raise DuplicateResourceError(
                "You have already reported this app. Our team will review it.",
                details={"report_id": existing["id"]},
            )

        with persistence_failure("Failed to submit report. Please try again."):
            row = SupabaseClient.insert_report({
                "app_id": report.listing_id,
                "reporter_id": user_id,
                "reason": report.reason.value,
                "details": report.details,
                "status": ReportStatus.PENDING.value,
            })

        logger.info(f"Report filed on {report.listing_id} by {user_id} ({report.reason.value})")
        return {"id": row["id"] if row else None}
