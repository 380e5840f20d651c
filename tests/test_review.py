from app.database.records import DAY_MS
from app.modules.applications.review import ReviewDecision, evaluate_review, is_terminal

NOW = 1_700_000_000_000
FUTURE = NOW + 2 * DAY_MS
PAST = NOW - DAY_MS


def votes(accept, reject, abstain):
    return {"accept": accept, "reject": reject, "abstain": abstain}, accept + reject + abstain


def test_below_quorum_before_deadline_is_not_due():
    counts, total = votes(3, 0, 0)
    assert evaluate_review("pending", counts, total, FUTURE, NOW).decision == ReviewDecision.NOT_DUE


def test_quorum_with_accept_majority_accepts():
    counts, total = votes(4, 1, 0)
    outcome = evaluate_review("pending", counts, total, FUTURE, NOW)
    assert outcome.decision == ReviewDecision.ACCEPTED
    assert outcome.accept_pct == 80.0


def test_quorum_with_reject_majority_rejects():
    counts, total = votes(2, 3, 0)
    assert evaluate_review("pending", counts, total, FUTURE, NOW).decision == ReviewDecision.REJECTED


def test_exactly_sixty_percent_is_enough():
    counts, total = votes(3, 2, 0)
    assert evaluate_review("pending", counts, total, FUTURE, NOW).decision == ReviewDecision.ACCEPTED


def test_no_majority_extends_by_three_days():
    counts, total = votes(2, 2, 1)
    outcome = evaluate_review("pending", counts, total, FUTURE, NOW)
    assert outcome.decision == ReviewDecision.EXTENDED
    assert outcome.review_end_date == FUTURE + 3 * DAY_MS


def test_past_deadline_without_votes_extends_from_now():
    outcome = evaluate_review("pending", {}, 0, PAST, NOW)
    assert outcome.decision == ReviewDecision.EXTENDED
    assert outcome.accept_pct == 0.0
    assert outcome.review_end_date == NOW + 3 * DAY_MS


def test_past_deadline_below_quorum_still_decides():
    counts, total = votes(2, 0, 1)
    assert evaluate_review("under_review", counts, total, PAST, NOW).decision == ReviewDecision.ACCEPTED


def test_terminal_status_is_left_alone():
    counts, total = votes(0, 5, 0)
    assert evaluate_review("accepted", counts, total, PAST, NOW).decision == ReviewDecision.ALREADY_CLOSED
    assert is_terminal("rejected")
    assert not is_terminal("under_review")


def test_rule_parameters_are_configurable():
    counts, total = votes(2, 1, 0)
    outcome = evaluate_review("pending", counts, total, FUTURE, NOW, quorum=3, majority_pct=66.0)
    assert outcome.decision == ReviewDecision.ACCEPTED
