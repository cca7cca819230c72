"""
Applied-patch report for AutoPatch.

Writes a PATCHES.txt into each patched package so anyone looking at the
installed files can see they were modified and where the diffs came from.
"""

from pathlib import Path

REPORT_FILENAME = "PATCHES.txt"

REPORT_HEADER = (
    "This file was automatically generated by AutoPatch.\n"
    "Patches applied to this directory:\n"
)


def format_report(applied: dict[str, str]) -> str:
    lines = [REPORT_HEADER]
    for description, url in applied.items():
        lines.append(f"{description}\nSource: {url}\n")
    return "\n".join(lines)


def write_report(install_path: Path, applied: dict[str, str]) -> Path:
    """
    Write the report for the given description -> url mapping.

    Args:
        install_path: Package install directory
        applied: Patches that were applied successfully

    Returns:
        Path of the report file
    """
    path = Path(install_path) / REPORT_FILENAME
    path.write_text(format_report(applied), encoding="utf-8")
    return path


def read_report(install_path: Path) -> dict[str, str]:
    """
    Read a report back into a description -> url mapping.

    Returns:
        Empty dict if there is no report
    """
    path = Path(install_path) / REPORT_FILENAME
    if not path.exists():
        return {}

    applied = {}
    blocks = path.read_text(encoding="utf-8").split("\n\n")
    for block in blocks[1:]:
        lines = block.strip().splitlines()
        if len(lines) == 2 and lines[1].startswith("Source: "):
            applied[lines[0]] = lines[1][len("Source: "):]
    return applied
