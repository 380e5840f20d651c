import pytest

from app.core.errors import AlreadyExists, AlreadyVoted, NotFound, StoreFailure, VotingClosed
from app.modules.applications.schemas import ApplicationCreate
from tests.fakes import DAY_MS, NOW, make_profile


def submit(service, applicant, now=NOW):
    return service.create_application(ApplicationCreate(
        game="apex-legends",
        experience="Diamond for three seasons",
        motivation="Looking for a stable team",
        availability="Evenings",
    ), applicant, now=now)


def cast(service, application_id, choices, now=NOW + 1):
    result = None
    for index, choice in enumerate(choices):
        result = service.vote(application_id, choice, f"reviewer-{index}", now=now)
    return result


def test_submit_fills_applicant_and_deadline(application_service, applicant):
    application = submit(application_service, applicant)
    assert application.status == "pending"
    assert application.applicant_name == "Carol"
    assert application.applicant_email == "carol@example.com"
    assert application.review_end_date == NOW + 7 * DAY_MS
    assert application.total_votes == 0
    assert application.voted_by == []


def test_second_open_application_is_refused(application_service, applicant):
    submit(application_service, applicant)
    with pytest.raises(AlreadyExists):
        submit(application_service, applicant, now=NOW + 1)


def test_new_application_allowed_after_terminal(application_service, applicant):
    first = submit(application_service, applicant)
    cast(application_service, first.id, ["reject"] * 5)
    assert application_service.get_application(first.id).status == "rejected"

    second = submit(application_service, applicant, now=NOW + 2)
    assert second.id != first.id
    assert application_service.get_user_application("carol").id == second.id


def test_under_quorum_before_deadline_stays_pending(application_service, applicant):
    application = submit(application_service, applicant)
    result = cast(application_service, application.id, ["accept"] * 3)
    assert result.status == "pending"
    assert result.total_votes == 3
    assert result.review_end_date == application.review_end_date


def test_quorum_with_accept_majority_accepts(application_service, applicant):
    application = submit(application_service, applicant)
    result = cast(application_service, application.id, ["accept", "accept", "reject", "accept", "accept"])
    assert result.status == "accepted"
    assert result.votes.accept == 4
    assert result.votes.reject == 1


def test_quorum_with_reject_majority_rejects(application_service, applicant):
    application = submit(application_service, applicant)
    result = cast(application_service, application.id, ["accept", "reject", "reject", "accept", "reject"])
    assert result.status == "rejected"


def test_quorum_without_majority_extends_deadline(application_service, applicant):
    application = submit(application_service, applicant)
    result = cast(application_service, application.id, ["accept", "reject", "abstain", "accept", "reject"])
    assert result.status == "pending"
    assert result.review_end_date == application.review_end_date + 3 * DAY_MS


def test_counters_stay_consistent(application_service, applicant, supabase):
    application = submit(application_service, applicant)
    result = cast(application_service, application.id, ["accept", "abstain", "reject"])
    votes = result.votes
    assert result.total_votes == votes.accept + votes.reject + votes.abstain == len(result.voted_by) == 3
    assert len(supabase.rows("application_votes")) == 3


def test_double_vote_is_refused(application_service, applicant):
    application = submit(application_service, applicant)
    application_service.vote(application.id, "accept", "dave", now=NOW + 1)
    with pytest.raises(AlreadyVoted):
        application_service.vote(application.id, "reject", "dave", now=NOW + 2)
    assert application_service.get_application(application.id).total_votes == 1


def test_vote_on_decided_application_is_refused(application_service, applicant):
    application = submit(application_service, applicant)
    cast(application_service, application.id, ["accept"] * 5)
    with pytest.raises(VotingClosed):
        application_service.vote(application.id, "reject", "late-reviewer", now=NOW + 2)


def test_vote_on_unknown_application(application_service):
    with pytest.raises(NotFound):
        application_service.vote("missing", "accept", "dave", now=NOW)


def test_resolution_is_noop_once_terminal(application_service, applicant, supabase):
    application = submit(application_service, applicant)
    cast(application_service, application.id, ["accept"] * 5)
    before = supabase.rows("applications")[0]

    result = application_service.resolve(application.id, now=NOW + 30 * DAY_MS)

    assert result.decision == "already_closed"
    assert result.status == "accepted"
    assert supabase.rows("applications")[0] == before


def test_resolution_failure_is_swallowed_and_vote_kept(application_service, applicant, supabase, caplog):
    application = submit(application_service, applicant)
    cast(application_service, application.id, ["accept"] * 4)
    # The vote's own counter update goes through; the resolution update after it fails
    supabase.fail_on("applications", "update", after=1)

    result = application_service.vote(application.id, "accept", "last-reviewer", now=NOW + 1)

    assert result.total_votes == 5
    assert result.status == "pending"
    stored = application_service.get_application(application.id)
    assert stored.total_votes == 5
    assert "last-reviewer" in stored.voted_by
    assert "Resolution check failed" in caplog.text


def test_resolve_due_sweep(application_service, supabase, profile_service):
    supabase.seed("user_profiles", make_profile("carol"), make_profile("erin"), make_profile("frank"))
    overdue = submit(application_service, profile_service.get_profile("carol"), now=NOW - 10 * DAY_MS)
    cast(application_service, overdue.id, ["accept", "accept"], now=NOW - 9 * DAY_MS)
    stalled = submit(application_service, profile_service.get_profile("erin"), now=NOW - 10 * DAY_MS)
    fresh = submit(application_service, profile_service.get_profile("frank"), now=NOW)

    results = {r.application_id: r for r in application_service.resolve_due_applications(now=NOW)}

    assert set(results) == {overdue.id, stalled.id}
    assert results[overdue.id].status == "accepted"
    assert results[stalled.id].decision == "extended"
    assert results[stalled.id].review_end_date == NOW + 3 * DAY_MS
    assert application_service.get_application(fresh.id).status == "pending"


def test_sweep_continues_after_a_failure(application_service, supabase, profile_service, caplog):
    supabase.seed("user_profiles", make_profile("carol"), make_profile("erin"))
    submit(application_service, profile_service.get_profile("carol"), now=NOW - 10 * DAY_MS)
    submit(application_service, profile_service.get_profile("erin"), now=NOW - 10 * DAY_MS)
    supabase.fail_on("applications", "update")

    results = application_service.resolve_due_applications(now=NOW)

    assert len(results) == 1
    assert "Error resolving application" in caplog.text


def test_pending_list_and_comments(application_service, applicant):
    application = submit(application_service, applicant)
    assert [a.id for a in application_service.list_pending_applications()] == [application.id]

    application_service.add_comment(application.id, "dave", "Dave", "Great aim", "support")
    application_service.add_comment(application.id, "erin", "Erin", "Often late", "concern")
    comments = application_service.list_comments(application.id)
    assert [(c.author_id, c.type) for c in comments] == [("dave", "support"), ("erin", "concern")]

    cast(application_service, application.id, ["accept"] * 5)
    assert application_service.list_pending_applications() == []


def test_failed_count_removes_vote_so_reviewer_can_retry(application_service, applicant, supabase):
    application = submit(application_service, applicant)
    supabase.fail_on("applications", "update")
    with pytest.raises(StoreFailure):
        application_service.vote(application.id, "accept", "dave", now=NOW + 1)
    assert supabase.rows("application_votes") == []

    result = application_service.vote(application.id, "accept", "dave", now=NOW + 2)

    assert result.total_votes == len(supabase.rows("application_votes")) == 1
    assert result.voted_by == ["dave"]
