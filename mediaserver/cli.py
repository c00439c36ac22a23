#!/usr/bin/env python3
"""
mediaserver Command Line Interface

Main entry point for the `mediaserver` command.

Usage:
    mediaserver setup            # Run the first-run setup wizard
    mediaserver setup --status   # Show local progress and server status
    mediaserver setup --reset    # Forget local wizard progress
    mediaserver --version        # Show version
"""

import argparse
import asyncio
import getpass
import json
import sys

from mediaserver import __version__
from mediaserver.logging_config import setup_logging
from mediaserver.setup.api import HttpSetupApi
from mediaserver.setup.config import SetupConfig, load_config
from mediaserver.setup.controller import WizardController
from mediaserver.setup.models import PRIVACY_OPTIONS, LibraryType, WizardStep
from mediaserver.setup.paths import LocalPathClient
from mediaserver.setup.storage import FileWizardStore


def _store(config: SetupConfig) -> FileWizardStore:
    return FileWizardStore.in_directory(config.wizard.state_path)


def _api(config: SetupConfig) -> HttpSetupApi:
    return HttpSetupApi(
        config.api.base_url,
        trpc_path=config.api.trpc_path,
        timeout=config.api.timeout_seconds,
    )


async def _status(config: SetupConfig) -> dict:
    store = _store(config)
    state = store.load()
    result = {
        "local": {
            **store.describe(),
            "step": state.step.value if state else None,
            "completed_steps": [s.value for s in state.completed_steps] if state else [],
            "last_updated": state.last_updated if state else None,
        },
        "server": None,
    }
    async with _api(config) as api:
        try:
            status = await api.get_setup_status()
            result["server"] = status.model_dump()
        except Exception as e:
            result["server"] = {"error": str(e)}
    return result


def cmd_setup(args):
    """Handle setup subcommand.

    With no flags, runs the interactive wizard against the configured server.
    """
    config = load_config()

    # --status: print JSON status and exit
    if args.status:
        print(json.dumps(asyncio.run(_status(config)), indent=2))
        return 0

    # --reset: clear wizard progress
    if args.reset:
        _store(config).clear()
        print("Setup progress reset.")
        return 0

    try:
        return asyncio.run(_run_setup_wizard(config))
    except KeyboardInterrupt:
        print("\nProgress saved. Run 'mediaserver setup' to continue.")
        return 130


# =============================================================================
# Interactive Wizard
# =============================================================================


def _header(title: str) -> None:
    print(f"\n{'=' * 50}")
    print(f"  {title}")
    print(f"{'=' * 50}\n")


def _prompt(label: str, default: str = "", secret: bool = False) -> str:
    suffix = f" [{default}]" if default else ""
    prompt_text = f"  {label}{suffix}: "
    try:
        value = getpass.getpass(prompt_text) if secret else input(prompt_text)
    except EOFError:
        # No more input: stop like Ctrl-C, progress is already saved
        raise KeyboardInterrupt from None
    return value.strip() or default


def _report(result: dict) -> None:
    if not result.get("success") and result.get("error"):
        print(f"  [!!] {result['error']}")


async def _run_setup_wizard(config: SetupConfig) -> int:
    """Thin prompt-driven UI over WizardController."""
    async with _api(config) as api:
        controller = WizardController(
            api,
            _store(config),
            path_client=LocalPathClient() if config.wizard.use_local_paths else None,
            on_exit=lambda: print("\nSetup is complete. Your media server is ready."),
            just_created_seconds=config.wizard.just_created_seconds,
        )
        await controller.initialize()
        try:
            while controller.current_step is not None:
                step = controller.current_step
                if step == WizardStep.WELCOME:
                    await _welcome_step(controller)
                elif step == WizardStep.ACCOUNT:
                    await _account_step(controller)
                elif step == WizardStep.LIBRARY:
                    await _library_step(controller)
                elif step == WizardStep.PRIVACY:
                    await _privacy_step(controller)
                else:
                    await _ready_step(controller)
        finally:
            controller.close()
    return 0


def _step_header(controller: WizardController, title: str) -> None:
    progress = controller.progress_percent
    _header(f"{title} ({progress}%)" if progress is not None else title)


async def _welcome_step(controller: WizardController) -> None:
    _header("Welcome to Your Media Server")
    print("  Let's get your server set up in just a few steps. You'll create your")
    print("  admin account, add your media libraries and choose your privacy level.\n")
    _prompt("Press Enter to get started")
    await controller.go_next()


async def _account_step(controller: WizardController) -> None:
    _step_header(controller, "Create Admin Account")
    if controller.has_owner:
        print(f"  Account already created: {controller.state.account_email or 'admin'}")
        if _prompt("[Enter] continue, [b] back").lower() == "b":
            await controller.go_back()
        else:
            await controller.go_next()
        return

    print("  This will be the first administrator of your server.")
    print("  Type 'b' as the display name to go back.\n")
    display_name = _prompt("Display name", default=controller.account.display_name or "Admin")
    if display_name.lower() == "b":
        await controller.go_back()
        return
    controller.update_account(
        display_name=display_name,
        email=_prompt("Email", default=controller.account.email),
        password=_prompt("Password (at least 8 characters)", secret=True),
        confirm_password=_prompt("Confirm password", secret=True),
    )
    _report(await controller.submit_account())


async def _library_step(controller: WizardController) -> None:
    _step_header(controller, "Add Your Media")
    print("  Enter the folder for each library, or '-' to leave it out.\n")

    for library_type in LibraryType.order():
        data = controller.state.library_type_data[library_type]
        print(f"  {library_type.label}")
        name = _prompt("  Name", default=data.name)
        path = _prompt("  Folder", default=data.path)
        controller.update_library(
            name=name,
            path="" if path == "-" else path,
            library_type=library_type,
        )
        await controller.blur_path(library_type)

        validation = controller.paths[library_type]
        hint = validation.hint()
        if hint:
            print(f"    {hint}")
        if validation.can_create and _prompt("  Create this folder? [y/N]").lower() == "y":
            result = await controller.create_directory(library_type)
            print("    Folder created successfully!" if result["success"] else f"    {result['error']}")

    to_create = controller.libraries_to_create
    if to_create:
        print("\n  Libraries to create: " + ", ".join(t.label for t in to_create))
    choice = _prompt("[a] add libraries, [s] skip for now, [b] back", default="a").lower()
    if choice == "b":
        await controller.go_back()
    elif choice == "s":
        await controller.skip_libraries()
    else:
        _report(await controller.submit_libraries())


async def _privacy_step(controller: WizardController) -> None:
    _step_header(controller, "Privacy Settings")
    for idx, option in enumerate(PRIVACY_OPTIONS, start=1):
        marker = "*" if option["level"] == controller.state.privacy_level else " "
        print(f"  {marker} {idx}. {option['title']:<10} {option['description']}")

    current = [o["level"] for o in PRIVACY_OPTIONS].index(controller.state.privacy_level) + 1
    choice = _prompt("Choose 1-4, or [b] back", default=str(current)).lower()
    if choice == "b":
        await controller.go_back()
        return
    if choice.isdigit() and 1 <= int(choice) <= len(PRIVACY_OPTIONS):
        controller.set_privacy_level(PRIVACY_OPTIONS[int(choice) - 1]["level"])
    _report(await controller.submit_privacy())


async def _ready_step(controller: WizardController) -> None:
    _header("You're All Set!")
    summary = controller.completion_summary()
    print(f"  Admin account: {summary['account_email'] or 'created'}")
    if summary["libraries"]:
        print(f"  {'Library' if len(summary['libraries']) == 1 else 'Libraries'}:")
        for library in summary["libraries"]:
            print(f"    - {library['name']} ({library['path']})")
        print("  You can trigger a library scan from the Libraries page.")
    print(f"  Privacy: {summary['privacy_level']}\n")

    if _prompt("[Enter] finish, [b] back").lower() == "b":
        await controller.go_back()
    else:
        await controller.finish()


# =============================================================================
# Entry Point
# =============================================================================


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="mediaserver",
        description="mediaserver - self-hosted media server tools",
    )
    parser.add_argument(
        "--version", "-V", action="store_true", help="Show version and exit"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    setup_parser = subparsers.add_parser(
        "setup", help="First-run setup wizard (or --status / --reset)"
    )
    setup_parser.add_argument(
        "--reset", action="store_true", help="Forget local wizard progress"
    )
    setup_parser.add_argument(
        "--status", action="store_true", help="Show setup progress as JSON"
    )
    setup_parser.set_defaults(func=cmd_setup)

    args = parser.parse_args()

    if args.version:
        print(f"mediaserver {__version__}")
        return 0

    if not args.command:
        parser.print_help()
        return 1

    setup_logging()
    return args.func(args) or 0


if __name__ == "__main__":
    sys.exit(main())
