"""Generated .omni/instructions.md combining capability docs and rules.

The file belongs to the user except for the block between the two markers,
which is rewritten on every sync from the enabled capabilities.
"""

import logging
from dataclasses import dataclass
from pathlib import Path

from omnidev.capability.registry import LoadedCapability
from omnidev.capability.wrapping import ContentItem
from omnidev.paths import get_instructions_path

logger = logging.getLogger(__name__)

BEGIN_MARKER = "<!-- BEGIN OMNIDEV GENERATED CONTENT - DO NOT EDIT BELOW THIS LINE -->"
END_MARKER = "<!-- END OMNIDEV GENERATED CONTENT -->"

INSTRUCTIONS_TEMPLATE = f"""# OmniDev Instructions

## Project Description
[Describe what this project does and its main purpose]

{BEGIN_MARKER}
{END_MARKER}
"""

_SECTION_HEADER = (
    "<!-- This section is automatically updated when capabilities change -->\n\n## Capabilities\n\n"
)
NO_CAPABILITIES = "No capabilities enabled yet. Add one to a profile and run `omnidev sync`."


@dataclass(frozen=True)
class InstructionEntry:
    name: str
    capability_id: str
    content: str


def _entries(capability_id: str, items: list[ContentItem]) -> list[InstructionEntry]:
    return [
        InstructionEntry(
            name=item.name,
            capability_id=capability_id,
            content=item.path.read_text(encoding="utf-8").strip(),
        )
        for item in items
    ]


def render_generated_section(capabilities: list[LoadedCapability]) -> str:
    """Markdown placed between the markers: docs first, then rules."""
    docs: list[InstructionEntry] = []
    rules: list[InstructionEntry] = []
    for capability in capabilities:
        docs.extend(_entries(capability.id, capability.docs))
        rules.extend(_entries(capability.id, capability.rules))

    if not docs and not rules:
        return _SECTION_HEADER + NO_CAPABILITIES

    parts = [_SECTION_HEADER]
    for title, entries in (("Documentation", docs), ("Rules", rules)):
        if not entries:
            continue
        parts.append(f"### {title}\n\n")
        for entry in entries:
            parts.append(f"#### {entry.name} (from {entry.capability_id})\n\n{entry.content}\n\n")
    return "".join(parts).rstrip("\n")


def replace_generated_section(document: str, section: str) -> str:
    """Swap the text between the markers, appending a marked block if absent."""
    begin = document.find(BEGIN_MARKER)
    end = document.find(END_MARKER, begin + len(BEGIN_MARKER)) if begin != -1 else -1
    if begin == -1 or end == -1:
        return f"{document.rstrip()}\n\n{BEGIN_MARKER}\n{section}\n{END_MARKER}\n"
    return f"{document[: begin + len(BEGIN_MARKER)]}\n{section}\n{document[end:]}"


def write_instructions(project_root: Path, capabilities: list[LoadedCapability]) -> Path:
    """Rewrite the generated block of .omni/instructions.md.

    The file is created from a template the first time. Failures propagate.
    """
    path = get_instructions_path(project_root)
    if path.exists():
        document = path.read_text(encoding="utf-8")
    else:
        document = INSTRUCTIONS_TEMPLATE
    updated = replace_generated_section(document, render_generated_section(capabilities))
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(updated, encoding="utf-8")
    logger.debug("wrote %s", path)
    return path
