"""Interview progress tracking for the real interview endpoint.

The client resends the whole conversation on every call, so progress is
derived from the history alone: the number of user turns picks a tier, and
the tier decides how many tokens the model may spend and which progress
note goes into the system prompt.
"""
from dataclasses import dataclass

MAX_USER_MESSAGES = 10
NEARING_END_THRESHOLD = 7
FINAL_THRESHOLD = 9

INITIAL = "initial"
EARLY = "early"
NEARING_END = "nearing-end"
FINAL = "final"

TIER_ORDER = (INITIAL, EARLY, NEARING_END, FINAL)

TOKEN_BUDGETS = {
    INITIAL: 200,  # greeting + one question
    EARLY: 512,  # reaction + bridge + question
    NEARING_END: 2048,  # closing question, or early feedback if the candidate wraps up
    FINAL: 2048,  # full feedback block
}


@dataclass(frozen=True)
class ProgressTier:
    name: str
    user_turn_count: int
    max_tokens: int
    directive: str
    expects_feedback: bool

    @property
    def rank(self) -> int:
        return TIER_ORDER.index(self.name)


def count_user_turns(turns) -> int:
    if not isinstance(turns, (list, tuple)):
        return 0
    count = 0
    for turn in turns:
        role = turn.get("role") if isinstance(turn, dict) else getattr(turn, "role", None)
        if role == "user":
            count += 1
    return count


def tier_name(user_turn_count: int) -> str:
    if user_turn_count >= FINAL_THRESHOLD:
        return FINAL
    if user_turn_count >= NEARING_END_THRESHOLD:
        return NEARING_END
    if user_turn_count >= 1:
        return EARLY
    return INITIAL


def progress_directive(name: str, user_turn_count: int) -> str:
    remaining = max(MAX_USER_MESSAGES - user_turn_count, 0)
    sent = f"The candidate has sent message {user_turn_count} of {MAX_USER_MESSAGES}"
    if name == FINAL:
        return (
            f"\n\n[INTERVIEW PROGRESS: {sent}. This is their FINAL message. You MUST conclude "
            "the interview NOW. Thank them briefly, then provide your complete feedback in the "
            "---FEEDBACK_START--- block. Do NOT ask another question.]"
        )
    if name == NEARING_END:
        return (
            f"\n\n[INTERVIEW PROGRESS: {sent} ({remaining} remaining). The interview is ending "
            "soon. If you haven't asked your closing question yet (\"Do you have any questions "
            "for me about the role?\"), ask it now. Be ready to provide feedback on their next "
            "message.]"
        )
    if name == EARLY:
        return (
            f"\n\n[INTERVIEW PROGRESS: {sent} ({remaining} remaining). Cover all 5 evaluation "
            "areas (Communication, Technical Knowledge, Problem Solving, Leadership & Teamwork, "
            "Professionalism) before the interview concludes.]"
        )
    # The initial turn is steered by the few-shot seed instead
    return ""


def classify(turns) -> ProgressTier:
    """Map a conversation snapshot to its progress tier. Never raises."""
    user_turn_count = count_user_turns(turns)
    name = tier_name(user_turn_count)
    return ProgressTier(
        name=name,
        user_turn_count=user_turn_count,
        max_tokens=TOKEN_BUDGETS[name],
        directive=progress_directive(name, user_turn_count),
        expects_feedback=name == FINAL,
    )
