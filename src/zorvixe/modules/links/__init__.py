"""
Access Links Module

The token-gated, single-completion engine behind the client payment and
candidate onboarding workflows:
1. Issue a time-boxed link (one active link per subject)
2. Gate every read and write on the presented token
3. Record exactly one completion per subject
4. Let administrators deactivate and reactivate a link before it expires

Background Jobs (via APScheduler):
- links_send_expiry_reminders: every 15 minutes
- links_purge_staged_uploads: hourly
"""

from .jobs import register_link_jobs
from .workflow import LinkWorkflow

__all__ = ["LinkWorkflow", "register_link_jobs"]
