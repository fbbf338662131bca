"""Install validity checks driven by plugin requirements/incompatibilities."""

from loot_report.engine.conditions import InstallState
from loot_report.models.metadata import Message, PluginMetadata, sorted_references


def check_install_validity(metadata: PluginMetadata, state: InstallState) -> int:
    """Append an error message for each violated requirement/incompatibility.

    Returns the number of violations found. Never raises.
    """
    violations = 0
    for ref in sorted_references(metadata.requirements):
        if not state.is_installed(ref.name):
            metadata.messages.append(Message.plain(
                "error",
                f'This plugin requires "{ref.display_name}" to be installed, but it is missing.',
            ))
            violations += 1
    for ref in sorted_references(metadata.incompatibilities):
        if state.is_installed(ref.name):
            metadata.messages.append(Message.plain(
                "error",
                f'This plugin is incompatible with "{ref.display_name}", but both are present.',
            ))
            violations += 1
    return violations
