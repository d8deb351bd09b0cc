# =============================================================================
# core/ - Business Logic Package
# =============================================================================
# This package contains the directory's business logic:
# - models/: Pydantic schemas for data validation
# - validation.py: First-error validation and URL checks
# - services/: Submission, moderation, engagement, reports, premium, auth
#
# Code in this package should NOT import FastAPI; routers translate
# ActionResult objects into HTTP responses.
# =============================================================================
