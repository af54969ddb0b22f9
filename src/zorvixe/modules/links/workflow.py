"""
Link Workflow Definitions

A ``LinkWorkflow`` tells the link engine which tables a workflow uses and how
it behaves: link lifetime, the public URL path, the subject status recorded on
completion and the user-facing labels. The payment and onboarding workflows
are declared in their own modules.
"""

import enum
from collections.abc import Callable
from dataclasses import dataclass
from datetime import timedelta
from typing import Any


@dataclass(frozen=True)
class LinkWorkflow:
    name: str
    subject_label: str
    subject_model: type[Any]
    link_model: type[Any]
    outcome_model: type[Any]
    ttl: timedelta
    url_path: str
    completed_status: enum.Enum
    outcome_ref: Callable[[Any], str]
    already_completed_message: str
    reminder_lead: timedelta
    reminder_action: str

    def build_url(self, base_url: str, token: str) -> str:
        """Public URL the link holder opens, e.g. https://site/payment/<token>."""
        return f"{base_url.rstrip('/')}/{self.url_path}/{token}"
