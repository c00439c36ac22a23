"""Setup Wizard - First-run server configuration

Walks a new installation through five fixed steps:
    1. Welcome
    2. Create the administrator account
    3. Add media libraries (optional, with folder checks)
    4. Privacy settings
    5. Ready

Design Principles:
    1. Resumable - progress survives restarts and reloads
    2. Server is the source of truth - local progress is corrected on mount
    3. Partial success is visible - libraries created before a failure stay created
    4. Finishing never blocks - completion is best effort

Components:
    models.py: Steps, library/privacy types and the persisted state
    storage.py: Persisted wizard state (file and in-memory stores)
    validators.py: Per-step guards
    reconciler.py: Local progress vs. server setup status
    paths.py: Folder checks and directory creation
    provisioner.py: Sequential library creation
    api.py: Client for the server's setup endpoints
    controller.py: The wizard state machine
    config.py: args/setup.yaml loading
"""

import os
from pathlib import Path

# Path constants
PROJECT_ROOT = Path(__file__).parent.parent.parent
CONFIG_PATH = PROJECT_ROOT / "args" / "setup.yaml"
DATA_PATH = Path(os.environ.get("MEDIASERVER_DATA_DIR", PROJECT_ROOT / "data"))
WIZARD_STATE_PATH = DATA_PATH / "setup_wizard_state.json"
SETUP_IN_PROGRESS_FLAG = DATA_PATH / "setup_in_progress.flag"
