"""
Tool: Setup Wizard Controller
Purpose: Drive the first-run wizard from Welcome to Ready

Owns the current step, the form data and every side effect:
- account creation, library provisioning, privacy save, completion
- persisting progress after each change
- reconciling resumed progress with the server once per mount

Every action returns ``{"success": bool, ...}`` and never raises: failures
become the step's inline ``error`` and the step does not change.

Usage:
    controller = WizardController(api, FileWizardStore(), on_exit=leave_wizard)
    await controller.initialize()
    controller.update_account(email="me@example.com", password="...", confirm_password="...")
    await controller.go_next()
"""

from __future__ import annotations

import logging
from typing import Any, Callable

from mediaserver.setup.api import SetupApi, SetupStatus
from mediaserver.setup.errors import error_message
from mediaserver.setup.models import (
    LIBRARY_DEFAULTS,
    LibraryType,
    PrivacyLevel,
    ProvisioningResult,
    WizardState,
    WizardStep,
)
from mediaserver.setup.paths import JUST_CREATED_SECONDS, PathValidationClient, PathValidationFlow
from mediaserver.setup.provisioner import LibraryProvisioner
from mediaserver.setup.reconciler import Reconciliation, ServerStatusReconciler
from mediaserver.setup.storage import WizardStore
from mediaserver.setup.validators import (
    AccountForm,
    configured_library_types,
    validate_step,
)


logger = logging.getLogger(__name__)


class WizardController:
    """
    The setup wizard state machine.

    Args:
        api: Server setup operations
        store: Where progress is persisted
        path_client: Folder checks/creation (defaults to the server API)
        on_exit: Called once when the wizard is left (finished or redirected)
        on_change: Called after any state change, for UIs that redraw
        just_created_seconds: How long the "folder created" flag stays up
    """

    def __init__(
        self,
        api: SetupApi,
        store: WizardStore,
        path_client: PathValidationClient | None = None,
        on_exit: Callable[[], None] | None = None,
        on_change: Callable[[], None] | None = None,
        just_created_seconds: float = JUST_CREATED_SECONDS,
    ):
        self.api = api
        self.store = store
        self.on_exit = on_exit
        self.on_change = on_change

        self.state = store.load() or WizardState()
        self.account = AccountForm(email=self.state.account_email)
        self.error: str | None = None
        self.busy: str | None = None
        self.server_status: SetupStatus | None = None
        self.last_provisioning: ProvisioningResult | None = None

        self.initialized = False
        self.exited = False
        self.closed = False

        self.reconciler = ServerStatusReconciler()
        self.provisioner = LibraryProvisioner(api)
        self.paths = PathValidationFlow(
            path_client or api,
            self.state.library_type_data,
            just_created_seconds=just_created_seconds,
            on_change=self._changed,
        )

    # =========================================================================
    # Views
    # =========================================================================

    @property
    def current_step(self) -> WizardStep | None:
        """Step to show; None while loading and after the wizard was left."""
        if not self.initialized or self.exited:
            return None
        return self.state.step

    @property
    def has_owner(self) -> bool:
        """An admin account exists. The server decides once its status is known."""
        if self.server_status is not None:
            return self.server_status.has_owner
        return WizardStep.ACCOUNT in self.state.completed_steps or bool(self.state.account_email)

    @property
    def libraries_to_create(self) -> list[LibraryType]:
        return configured_library_types(self.state.library_type_data)

    @property
    def progress_percent(self) -> int | None:
        return self.state.step.progress_percent

    def completion_summary(self) -> dict[str, Any]:
        """What the Ready step shows."""
        libraries = []
        for library_type in self.state.created_libraries:
            data = self.state.library_type_data[library_type]
            libraries.append(
                {
                    "type": library_type.value,
                    "name": data.name.strip() or LIBRARY_DEFAULTS[library_type]["name"],
                    "path": data.path.strip(),
                }
            )
        return {
            "account_email": self.state.account_email,
            "libraries": libraries,
            "privacy_level": self.state.privacy_level.value,
            "scan_available": bool(libraries),
        }

    # =========================================================================
    # Mount / unmount
    # =========================================================================

    async def initialize(self) -> dict[str, Any]:
        """
        Mount the wizard: fetch server status and reconcile resumed progress.

        A failed status fetch keeps the local step rather than forcing the
        user back through account creation.
        """
        if self.initialized:
            return {"success": True, "step": self._step_value()}

        try:
            status = await self.api.get_setup_status()
        except Exception as e:
            logger.warning(
                f"Setup status unavailable, resuming at {self.state.step.value}: {e}"
            )
            status = None

        if self.closed:
            return {"success": False, "error": "Setup wizard closed"}

        self.initialized = True
        decision = self.on_status(status) if status is not None else None

        if self.exited:
            return {"success": True, "exited": True}
        if decision != Reconciliation.RESET_TO_ACCOUNT:
            self._persist()
        await self._enter_step(self.state.step)
        return {"success": True, "step": self._step_value(), "status_known": status is not None}

    def on_status(self, status: SetupStatus) -> Reconciliation | None:
        """
        Feed a (re)fetched server status.

        Reconciliation only happens for the first status of this mount;
        completion is acted on every time.
        """
        self.server_status = status

        decision = self.reconciler.reconcile(status, self.state.step)
        if decision == Reconciliation.RESET_TO_ACCOUNT:
            self._reset_to_account()
        elif not status.has_owner:
            self._forget_owner()

        if self.reconciler.watch_complete(status):
            self._exit("setup already complete on the server")
        return decision

    def close(self) -> None:
        """Unmount: stop timers. Requests still in flight are ignored when they settle."""
        self.closed = True
        self.paths.cancel_timers()

    # =========================================================================
    # Navigation
    # =========================================================================

    async def go_next(self) -> dict[str, Any]:
        """
        Move forward one step.

        Steps whose work is already done are simply passed through; otherwise
        the step is submitted (account created, libraries added, privacy
        saved) and only a successful submission moves on.
        """
        blocked = self._blocked()
        if blocked:
            return blocked

        step = self.state.step
        if step == WizardStep.READY:
            return {"success": False, "error": "Setup is ready. Finish to continue."}
        if step == WizardStep.WELCOME or self._step_done(step):
            await self._go(step.next())
            return {"success": True, "step": self._step_value()}

        if step == WizardStep.ACCOUNT:
            return await self.submit_account()
        if step == WizardStep.LIBRARY:
            return await self.submit_libraries()
        return await self.submit_privacy()

    async def go_back(self) -> dict[str, Any]:
        blocked = self._blocked()
        if blocked:
            return blocked

        previous = self.state.step.previous()
        if previous is None:
            return {"success": False, "error": "Already at the first step"}
        await self._go(previous)
        return {"success": True, "step": self._step_value()}

    # =========================================================================
    # Field edits
    # =========================================================================

    def update_account(self, **fields: str) -> None:
        """Edit account fields (email, password, confirm_password, display_name)."""
        for key, value in fields.items():
            if not hasattr(self.account, key):
                raise AttributeError(f"Unknown account field: {key}")
            setattr(self.account, key, value)
        self.error = None
        # Form only, never persisted: it holds passwords
        self._changed()

    def update_library(
        self,
        name: str | None = None,
        path: str | None = None,
        library_type: LibraryType | str | None = None,
    ) -> None:
        """Edit a library's name or folder (the selected type by default)."""
        target = LibraryType(library_type) if library_type else self.state.selected_library_type
        data = self.state.library_type_data[target]
        if name is not None:
            data.name = name
        if path is not None and path != data.path:
            data.path = path
            self.paths.reset(target)
        self.error = None
        self._persist()

    def select_library_type(self, library_type: LibraryType | str) -> None:
        self.state.selected_library_type = LibraryType(library_type)
        self.error = None
        self._persist()

    def set_privacy_level(self, level: PrivacyLevel | str) -> None:
        self.state.privacy_level = PrivacyLevel(level)
        self.error = None
        self._persist()

    def dismiss_error(self) -> None:
        self.error = None
        self._changed()

    # =========================================================================
    # Folder actions
    # =========================================================================

    async def blur_path(self, library_type: LibraryType | str | None = None) -> None:
        target = LibraryType(library_type) if library_type else self.state.selected_library_type
        await self.paths.blur(target)

    async def create_directory(self, library_type: LibraryType | str | None = None) -> dict[str, Any]:
        target = LibraryType(library_type) if library_type else self.state.selected_library_type
        result = await self.paths.create_directory(target)
        if not result["success"] and not self.closed:
            self.error = result["error"]
            self._changed()
        return result

    # =========================================================================
    # Submissions
    # =========================================================================

    async def submit_account(self) -> dict[str, Any]:
        """Create the administrator account and move on to libraries."""
        blocked = self._blocked(WizardStep.ACCOUNT)
        if blocked:
            return blocked

        self.error = None
        problem = validate_step(WizardStep.ACCOUNT, self.account, self.state.library_type_data)
        if problem:
            return self._fail(problem)

        email = self.account.email.strip()
        self.busy = "account"
        self._changed()
        try:
            account = await self.api.create_owner(
                email=email,
                password=self.account.password,
                display_name=self.account.display_name.strip() or "Admin",
            )
        except Exception as e:
            return self._fail(error_message(e, "Failed to create account"))
        finally:
            self.busy = None

        if self.closed:
            return {"success": False, "error": "Setup wizard closed"}

        logger.info(f"Owner account created ({account.user_id})")
        if self.server_status is not None:
            self.server_status = self.server_status.model_copy(update={"has_owner": True})
        self.state.account_email = email
        self.state.mark_step_complete(WizardStep.ACCOUNT)
        self.store.mark_in_progress()
        await self._go(WizardStep.LIBRARY)
        return {"success": True, "step": self._step_value(), "user_id": account.user_id}

    async def submit_libraries(self) -> dict[str, Any]:
        """
        Check folders, then create a library for each configured type.

        Folders not checked yet are checked first; a missing folder aborts
        before anything is created. Provisioning stops at the first failure
        and keeps what was created.
        """
        blocked = self._blocked(WizardStep.LIBRARY)
        if blocked:
            return blocked

        self.error = None
        problem = validate_step(WizardStep.LIBRARY, self.account, self.state.library_type_data)
        if problem:
            return self._fail(problem)

        to_create = self.libraries_to_create
        self.busy = "library"
        self._changed()
        try:
            missing = await self.paths.ensure_exist(to_create)
            if missing is not None:
                if self.closed:
                    return {"success": False, "error": "Setup wizard closed"}
                self.state.selected_library_type = missing
                self._persist()
                return self._fail(
                    f"The folder for {missing.label} doesn't exist. "
                    "Create it or choose a different path."
                )

            # Created on an earlier, partially failed attempt
            already = [t for t in to_create if t in self.state.created_libraries]
            pending = [t for t in to_create if t not in already]
            result = await self.provisioner.provision(pending, self.state.library_type_data)
        finally:
            self.busy = None

        if self.closed:
            return {"success": False, "error": "Setup wizard closed"}

        self.last_provisioning = result
        self.state.created_libraries = [
            t
            for t in LibraryType.order()
            if t in self.state.created_libraries or t in result.created
        ]
        created = [t.value for t in self.state.created_libraries]

        if not result.success:
            self.state.selected_library_type = result.failed
            self._persist()
            failure = self._fail(result.error or "Failed to create library")
            failure["created"] = created
            return failure

        self.state.mark_step_complete(WizardStep.LIBRARY)
        await self._go(WizardStep.PRIVACY)
        return {"success": True, "step": self._step_value(), "created": created}

    async def skip_libraries(self) -> dict[str, Any]:
        """Continue without libraries; forgets any recorded as created."""
        blocked = self._blocked(WizardStep.LIBRARY)
        if blocked:
            return blocked

        self.state.created_libraries = []
        self.state.mark_step_complete(WizardStep.LIBRARY)
        await self._go(WizardStep.PRIVACY)
        return {"success": True, "step": self._step_value(), "created": []}

    async def submit_privacy(self) -> dict[str, Any]:
        blocked = self._blocked(WizardStep.PRIVACY)
        if blocked:
            return blocked

        self.error = None
        self.busy = "privacy"
        self._changed()
        try:
            await self.api.save_privacy_settings(self.state.privacy_level)
        except Exception as e:
            return self._fail(error_message(e, "Failed to save privacy settings"))
        finally:
            self.busy = None

        if self.closed:
            return {"success": False, "error": "Setup wizard closed"}

        self.state.mark_step_complete(WizardStep.PRIVACY)
        await self._go(WizardStep.READY)
        return {"success": True, "step": self._step_value()}

    async def finish(self) -> dict[str, Any]:
        """
        Mark setup complete and leave the wizard.

        The completion call is best effort: whatever it does, local progress
        is cleared and the wizard exits.
        """
        if self.exited:
            return {"success": True, "completed": None}
        blocked = self._blocked(WizardStep.READY)
        if blocked:
            return blocked

        self.busy = "finish"
        self._changed()
        completed = True
        try:
            await self.api.complete_setup()
        except Exception as e:
            logger.warning(f"Completing setup failed, leaving the wizard anyway: {e}")
            completed = False
        finally:
            self.busy = None

        self._exit("setup finished")
        return {"success": True, "completed": completed}

    # =========================================================================
    # Internals
    # =========================================================================

    def _step_value(self) -> str | None:
        step = self.current_step
        return step.value if step else None

    def _step_done(self, step: WizardStep) -> bool:
        if step == WizardStep.ACCOUNT:
            return self.has_owner
        return step in self.state.completed_steps

    def _blocked(self, required_step: WizardStep | None = None) -> dict[str, Any] | None:
        """Why an action can't run right now, or None."""
        if self.exited or self.closed:
            return {"success": False, "error": "Setup wizard is closed"}
        if not self.initialized:
            return {"success": False, "error": "Setup wizard is still loading"}
        if self.busy:
            return {"success": False, "error": "Please wait for the current request to finish"}
        if required_step is not None and self.state.step != required_step:
            return {
                "success": False,
                "error": f"Not available on the {self.state.step.value} step",
            }
        return None

    def _fail(self, message: str) -> dict[str, Any]:
        if not self.closed:
            self.error = message
            self._changed()
        return {"success": False, "error": message}

    async def _go(self, step: WizardStep) -> None:
        logger.info(f"Setup wizard: {self.state.step.value} -> {step.value}")
        self.state.step = step
        self.error = None
        self._persist()
        await self._enter_step(step)

    async def _enter_step(self, step: WizardStep) -> None:
        if step == WizardStep.LIBRARY:
            await self.paths.validate_prefilled()

    def _reset_to_account(self) -> None:
        """Local progress claims an account the server doesn't have."""
        logger.warning(
            f"Server reports no owner but local progress is at {self.state.step.value}; "
            "restarting from account creation"
        )
        self.state.step = WizardStep.ACCOUNT
        self.state.account_email = ""
        self.state.created_libraries = []
        self.state.completed_steps = []
        self.store.clear()
        self._changed()

    def _forget_owner(self) -> None:
        """The server has no owner: remembered account progress is stale."""
        if WizardStep.ACCOUNT not in self.state.completed_steps and not self.state.account_email:
            return
        logger.warning("Server reports no owner; forgetting the remembered account")
        self.state.account_email = ""
        self.state.completed_steps = [
            s for s in self.state.completed_steps if s != WizardStep.ACCOUNT
        ]
        if self.initialized:
            self._persist()

    def _exit(self, reason: str) -> None:
        if self.exited:
            return
        self.store.clear()
        logger.info(f"Leaving setup wizard: {reason}")
        self.exited = True
        self.paths.cancel_timers()
        self._changed()
        if self.on_exit is not None:
            self.on_exit()

    def _persist(self) -> None:
        if self.exited:
            return
        self.state.touch()
        self.store.save(self.state)
        self._changed()

    def _changed(self) -> None:
        if self.on_change is not None:
            self.on_change()
