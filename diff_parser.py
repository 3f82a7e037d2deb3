import re
from typing import List, Optional, Sequence

from unidiff import PatchSet

from models import ChangedFile

HUNK_HEADER_RE = re.compile(r"^@@ -\d+(?:,\d+)? \+(\d+)(?:,\d+)? @@")


def split_patch(patch: str) -> List[str]:
    return patch.split("\n")


def map_line_to_position(target_line: int, patch_lines: Sequence[str]) -> Optional[int]:
    """
    Map a line number of the new file to its 1-indexed position in the patch.

    Only added lines are eligible. Context lines advance the counter but never
    match, so a line that exists only as context is unmapped (None). The
    "\\ No newline at end of file" marker is not a line of either file.
    """
    current_line = 0
    in_hunk = False

    for i, line in enumerate(patch_lines):
        hunk_match = HUNK_HEADER_RE.match(line)
        if hunk_match:
            in_hunk = True
            current_line = int(hunk_match.group(1)) - 1
            continue

        if not in_hunk or line.startswith("\\"):
            continue

        if line.startswith("+"):
            current_line += 1
            if current_line == target_line:
                return i + 1
        elif not line.startswith("-"):
            current_line += 1

    return None


def get_line_content(position: int, patch_lines: Sequence[str]) -> Optional[str]:
    """
    Text of the line at a 1-indexed patch position, without its '+' marker.
    Removed lines, hunk headers, "\\ No newline" markers and out-of-range
    positions give None.
    """
    if position < 1 or position > len(patch_lines):
        return None

    line = patch_lines[position - 1]
    if line.startswith("+"):
        return line[1:]
    if line.startswith(("-", "@", "\\")):
        return None
    return line


def _file_status(patched_file) -> str:
    if patched_file.is_added_file:
        return "added"
    if patched_file.is_removed_file:
        return "removed"
    if getattr(patched_file, "is_rename", False):
        return "renamed"
    return "modified"


def _strip_prefix(name: str) -> str:
    if name.startswith("a/") or name.startswith("b/"):
        return name[2:]
    return name


def parse_unified_diff(diff_text: str) -> List[ChangedFile]:
    """
    Split a multi-file `git diff` into one ChangedFile per file, each carrying
    only its hunks as the patch (the same shape GitHub returns per file).
    """
    patch = PatchSet(diff_text.splitlines(keepends=True))
    files = []
    for patched_file in patch:
        hunks = "".join(str(hunk) for hunk in patched_file)
        status = _file_status(patched_file)
        files.append(ChangedFile(
            filename=patched_file.path,
            status=status,
            additions=patched_file.added,
            deletions=patched_file.removed,
            changes=patched_file.added + patched_file.removed,
            patch=hunks.rstrip("\n") or None,
            previous_filename=_strip_prefix(patched_file.source_file) if status == "renamed" else None,
        ))
    return files
