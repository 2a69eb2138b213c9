"""Output shaping for model replies.

Both checks here are string heuristics, not parsers. ``has_numbered_list``
only recognizes ``1.``/``1)`` and ``2.``/``2)`` items at line starts, so prose
such as "Step 1 ... Step 2" or bullet lists pass through untouched.
"""
import logging
import re

logger = logging.getLogger("interviewpro.postprocess")

# Fixed by agreement with the real interview prompt; do not paraphrase
FEEDBACK_START_MARKER = "---FEEDBACK_START---"
FEEDBACK_END_MARKER = "---FEEDBACK_END---"

_FIRST_ITEM = re.compile(r"(?:^|\n)\s*1[.)]\s")
_SECOND_ITEM = re.compile(r"\n\s*2[.)]\s")


def contains_feedback(text: str) -> bool:
    return FEEDBACK_START_MARKER in (text or "")


def has_numbered_list(text: str) -> bool:
    return bool(_FIRST_ITEM.search(text)) and bool(_SECOND_ITEM.search(text))


def enforce_one_question(text: str) -> str:
    """Keep only the first question when the model dumps a numbered list of them."""
    if not has_numbered_list(text):
        return text
    match = _SECOND_ITEM.search(text)
    logger.info("Truncated multi-question response at offset %d", match.start())
    return text[: match.start()].rstrip()


def postprocess(raw_text: str, is_feedback: bool) -> str:
    # A feedback block is never truncated
    if is_feedback:
        return raw_text
    return enforce_one_question(raw_text)
