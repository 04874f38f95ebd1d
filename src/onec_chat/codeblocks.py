"""Extraction of BSL (1C:Enterprise) code from assistant answers."""

from __future__ import annotations

FENCE = "```"

# Both tags mark BSL code; each gets its own pass, in this order
BSL_FENCE_TAGS = ("bsl", "1c")


def _scan(text: str, opener: str) -> list[str]:
    blocks: list[str] = []
    pos = 0
    while True:
        start = text.find(opener, pos)
        if start == -1:
            break
        body_start = start + len(opener)
        end = text.find(FENCE, body_start)
        if end == -1:
            # Unterminated fence stops this pass
            break
        blocks.append(text[body_start:end].strip())
        pos = end + len(FENCE)
    return blocks


def extract_code_blocks(text: str) -> list[str]:
    """Return the trimmed contents of every ```bsl and ```1c fenced block.

    Blocks tagged ``bsl`` come first, then blocks tagged ``1c``, each group
    in order of appearance.
    """
    blocks: list[str] = []
    for tag in BSL_FENCE_TAGS:
        blocks.extend(_scan(text, FENCE + tag))
    return blocks
