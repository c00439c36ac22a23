"""
Server status reconciliation.

Local progress is only a memory of what the user did; the server's setup
status is authoritative. On mount the resumed step is checked against it
once:

    1. setup already complete      -> leave the wizard
    2. no owner, step past Account -> back to Account, forget local state
    3. otherwise                   -> keep the resumed step

Completion is watched separately and on every status update, since another
admin may finish setup from elsewhere while this wizard is open.
"""

from __future__ import annotations

import logging
from enum import Enum

from mediaserver.setup.api import SetupStatus
from mediaserver.setup.models import OWNER_REQUIRED_STEPS, WizardStep


logger = logging.getLogger(__name__)


class Reconciliation(str, Enum):
    EXIT = "exit"
    RESET_TO_ACCOUNT = "reset_to_account"
    KEEP = "keep"


def decide(status: SetupStatus, step: WizardStep) -> Reconciliation:
    """Decide what to do with the resumed *step* given server *status*."""
    if status.is_complete:
        return Reconciliation.EXIT
    if not status.has_owner and step in OWNER_REQUIRED_STEPS:
        return Reconciliation.RESET_TO_ACCOUNT
    return Reconciliation.KEEP


class ServerStatusReconciler:
    """Applies decide() at most once per wizard mount."""

    def __init__(self):
        self.done = False

    def reconcile(self, status: SetupStatus, step: WizardStep) -> Reconciliation | None:
        """
        Reconcile the resumed step against the first status seen.

        Returns:
            The decision on the first call, None on every later call
        """
        if self.done:
            return None
        self.done = True

        decision = decide(status, step)
        logger.info(
            f"Setup status reconciled: step={step.value} complete={status.is_complete} "
            f"has_owner={status.has_owner} -> {decision.value}"
        )
        return decision

    @staticmethod
    def watch_complete(status: SetupStatus) -> bool:
        """True whenever the server reports setup complete."""
        return status.is_complete
