"""Domain models for the Engage matching service."""

from .models import Candidate, NeedRequest, NotificationRecord, ResolvedNeedRequest, TimePreference

__all__ = ["Candidate", "NeedRequest", "ResolvedNeedRequest", "NotificationRecord", "TimePreference"]
