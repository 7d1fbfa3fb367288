"""Branch formatting utilities."""

from katazuke.formatters.date import format_age
from katazuke.models.branch import MergedBranch, StaleBranch, StaleTier

# Maximum characters for commit subjects in different contexts
MAX_SUBJECT_SUMMARY_LEN = 50
MAX_SUBJECT_OPTION_LEN = 40

TIER_TITLES = {
    StaleTier.SAFE: "Safe to delete (your branches, backed up remotely)",
    StaleTier.AUTOMATION: "Automation branches",
    StaleTier.REVIEW: "Needs review",
}


def truncate(text: str, max_len: int) -> str:
    """Shorten text to max_len characters, ending with "..." when cut."""
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."


def format_merged_option(branch: MergedBranch) -> str:
    """Selection label for a merged branch."""
    label = branch.label
    if branch.force_delete:
        label += " (squash-merged)"
    return label


def format_stale_notes(branch: StaleBranch) -> str:
    """Short annotations shown next to a stale branch."""
    notes = []
    if branch.is_local_only:
        notes.append("local only")
    if not branch.is_own_branch:
        notes.append("other authors")
    if branch.pr_number:
        notes.append(f"PR #{branch.pr_number} merged")
    return ", ".join(notes)


def format_stale_option(branch: StaleBranch) -> str:
    """Selection label for a stale branch."""
    subject = truncate(branch.last_commit_message, MAX_SUBJECT_OPTION_LEN)
    label = (
        f"{branch.label} ({subject}, {format_age(branch.last_commit)}, "
        f"+{branch.commits_ahead}/-{branch.commits_behind})"
    )
    notes = format_stale_notes(branch)
    if notes:
        label += f" ({notes})"
    return label
