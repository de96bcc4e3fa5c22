"""Need approval: mark a need approved, match volunteers, notify them."""

from .models import ApprovalResult
from .workflow import NeedApprovalWorkflow

__all__ = ["NeedApprovalWorkflow", "ApprovalResult"]
