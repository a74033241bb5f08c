# =============================================================================
# core/ - Business Logic Package
# =============================================================================
# This package contains the business logic behind the API and the workers:
# - models/: Pydantic schemas for request/response validation
# - prompts/: LLM prompt templates
# - services/: One service class per feature, called by routers and tasks
#
# Services raise RocketException subclasses and never build HTTP responses,
# so the same code runs from an endpoint or a Celery task.
# =============================================================================
