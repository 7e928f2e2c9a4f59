"""Helpers for synthetic attachments identified by fallback tag."""

from __future__ import annotations

from typing import Iterable

from core.models import EDITED_FALLBACK_TAG, EDITED_FOOTER, Attachment


def upsert_attachment(
    attachments: Iterable[Attachment],
    attachment: Attachment,
    prepend: bool = False,
) -> list[Attachment]:
    """Return a new list with ``attachment`` replacing the one sharing its tag.

    When no attachment carries the tag yet, it is appended (or prepended).
    """

    updated = list(attachments)
    for index, existing in enumerate(updated):
        if existing.fallback_tag == attachment.fallback_tag:
            updated[index] = attachment
            return updated
    if prepend:
        updated.insert(0, attachment)
    else:
        updated.append(attachment)
    return updated


def edit_marker(edit_ts: str) -> Attachment:
    """Attachment rendered under an edited mirror, dated by the edit event."""

    return Attachment(fallback_tag=EDITED_FALLBACK_TAG, text="", footer=EDITED_FOOTER, ts=edit_ts)
