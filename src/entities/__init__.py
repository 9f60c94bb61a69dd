from src.entities.template import Template
from src.entities.escalation import Escalation, EscalationStatus
from src.entities.audit_log import AuditLog, AuditAction
from src.entities.api_config import ApiConfig

__all__ = [
    "Template", "Escalation", "EscalationStatus",
    "AuditLog", "AuditAction", "ApiConfig",
]
