"""mediaserver Test Suite

Test organization:
- unit/: Unit tests for individual modules
  - setup/: Setup wizard tests (models, storage, reconciler, paths,
    provisioner, api, controller, config, cli)

Running tests:
    # All tests
    pytest

    # Specific module
    pytest tests/unit/setup/test_controller.py
"""
