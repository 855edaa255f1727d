"""
CLI commands for kserveup.
"""

from kserveup.cli.deploy import deploy_command
from kserveup.cli.plan import plan_command
from kserveup.cli.smoke import smoke_command
from kserveup.cli.teardown import teardown_command

__all__ = [
    "deploy_command",
    "plan_command",
    "smoke_command",
    "teardown_command",
]
