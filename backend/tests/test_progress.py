from interviewpro.progress import (
    EARLY,
    FINAL,
    INITIAL,
    NEARING_END,
    classify,
    count_user_turns,
)
from interviewpro.schemas import ConversationTurn

from conftest import conversation


def test_tier_thresholds():
    assert classify(conversation(0)).name == INITIAL
    assert classify(conversation(1)).name == EARLY
    assert classify(conversation(6)).name == EARLY
    assert classify(conversation(7)).name == NEARING_END
    assert classify(conversation(8)).name == NEARING_END
    assert classify(conversation(9)).name == FINAL
    assert classify(conversation(14)).name == FINAL


def test_classification_is_monotonic():
    tiers = [classify(conversation(k)) for k in range(16)]
    for prev, nxt in zip(tiers, tiers[1:]):
        assert nxt.max_tokens >= prev.max_tokens
        assert nxt.rank >= prev.rank
        assert nxt.expects_feedback >= prev.expects_feedback


def test_missing_or_malformed_history_is_initial():
    for turns in (None, "nope", 5, {"role": "user"}):
        tier = classify(turns)
        assert tier.name == INITIAL
        assert tier.user_turn_count == 0


def test_only_user_turns_count():
    turns = (
        ConversationTurn(role="assistant", content="Hi"),
        ConversationTurn(role="user", content="Hello"),
        ConversationTurn(role="assistant", content="Tell me more"),
    )
    assert count_user_turns(turns) == 1
    assert count_user_turns([{"role": "user", "content": "a"}, {"role": "assistant", "content": "b"}]) == 1


def test_budgets_and_directives():
    initial = classify([])
    assert initial.max_tokens == 200
    assert initial.directive == ""

    early = classify(conversation(3))
    assert early.max_tokens == 512
    assert "message 3 of 10 (7 remaining)" in early.directive
    assert "Cover all 5 evaluation areas" in early.directive

    nearing = classify(conversation(8))
    assert nearing.max_tokens == 2048
    assert "closing question" in nearing.directive
    assert not nearing.expects_feedback

    final = classify(conversation(9))
    assert final.max_tokens == 2048
    assert final.expects_feedback
    assert "Do NOT ask another question" in final.directive
    assert "---FEEDBACK_START---" in final.directive


def test_directives_start_on_their_own_paragraph():
    for k in range(1, 12):
        assert classify(conversation(k)).directive.startswith("\n\n[INTERVIEW PROGRESS:")
