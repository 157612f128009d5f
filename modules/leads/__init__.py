# modules/leads/__init__.py

from .lead_service import LeadService, LeadValidationError

__all__ = ["LeadService", "LeadValidationError"]
