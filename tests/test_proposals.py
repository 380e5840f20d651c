import pytest

from app.core.errors import AlreadyVoted, ConcurrentModification, DuplicateProposal, NotFound, NotVoted, StoreFailure
from app.modules.proposals.schemas import ProposalCreate
from tests.fakes import DAY_MS, NOW


def create(service, title="Weekly scrims", description="Organise scrims every Friday evening", user="alice", now=NOW):
    return service.create_proposal(ProposalCreate(title=title, description=description, game="valorant"), user, now=now)


def test_create_proposal_stamps_fields(proposal_service):
    proposal = create(proposal_service)
    assert proposal.status == "pending"
    assert proposal.upvotes == 0
    assert proposal.upvoted_by == []
    assert proposal.created_by == "alice"
    assert proposal.created_at == proposal.updated_at == NOW


def test_similar_recent_proposal_is_rejected(proposal_service, supabase):
    create(proposal_service)
    with pytest.raises(DuplicateProposal):
        create(proposal_service, title="weekly scrims!", description="Something else entirely", user="bob", now=NOW + DAY_MS)
    with pytest.raises(DuplicateProposal):
        create(proposal_service, title="Tournament", description="Organise scrims every Friday evenings", now=NOW + DAY_MS)
    assert len(supabase.rows("proposals")) == 1


def test_similar_proposal_outside_window_is_accepted(proposal_service):
    create(proposal_service)
    later = create(proposal_service, user="bob", now=NOW + 8 * DAY_MS)
    assert later.created_by == "bob"


def test_distinct_proposal_is_accepted(proposal_service):
    create(proposal_service)
    create(proposal_service, title="Coaching sessions", description="Monthly VOD reviews with a coach")
    assert len(proposal_service.list_proposals()) == 2


def test_upvote_then_remove_restores_state(proposal_service):
    proposal = create(proposal_service)
    upvoted = proposal_service.upvote(proposal.id, "bob")
    assert upvoted.upvotes == 1
    assert upvoted.upvoted_by == ["bob"]

    restored = proposal_service.remove_upvote(proposal.id, "bob")
    assert restored.upvotes == 0
    assert restored.upvoted_by == []


def test_double_upvote_is_refused(proposal_service):
    proposal = create(proposal_service)
    proposal_service.upvote(proposal.id, "bob")
    with pytest.raises(AlreadyVoted):
        proposal_service.upvote(proposal.id, "bob")
    assert proposal_service.get_proposal(proposal.id).upvotes == 1


def test_remove_missing_upvote_is_refused(proposal_service):
    proposal = create(proposal_service)
    with pytest.raises(NotVoted):
        proposal_service.remove_upvote(proposal.id, "bob")


def test_upvote_unknown_proposal(proposal_service):
    with pytest.raises(NotFound):
        proposal_service.upvote("missing", "bob")


def test_concurrent_upvote_is_retried_and_both_count(proposal_service, supabase):
    proposal = create(proposal_service)

    def other_member_upvotes(db):
        for row in db.tables["proposals"]:
            row["upvoted_by"] = row["upvoted_by"] + ["dave"]
            row["upvotes"] += 1
            row["revision"] += 1

    supabase.on_update("proposals", other_member_upvotes)
    result = proposal_service.upvote(proposal.id, "bob")
    assert result.upvotes == 2
    assert sorted(result.upvoted_by) == ["bob", "dave"]


def test_persistent_conflict_gives_up(proposal_service, supabase, settings):
    proposal = create(proposal_service)
    supabase.on_update("proposals", lambda db: db.bump_revision("proposals", proposal.id), times=settings.store_max_attempts)
    with pytest.raises(ConcurrentModification):
        proposal_service.upvote(proposal.id, "bob")
    assert proposal_service.get_proposal(proposal.id).upvotes == 0


def test_list_orders_by_upvotes(proposal_service):
    first = create(proposal_service)
    second = create(proposal_service, title="Coaching sessions", description="Monthly VOD reviews with a coach")
    proposal_service.upvote(second.id, "bob")
    assert [p.id for p in proposal_service.list_proposals()] == [second.id, first.id]


def test_store_failure_is_wrapped(proposal_service, supabase):
    supabase.fail_on("proposals", "select")
    with pytest.raises(StoreFailure) as exc:
        proposal_service.list_proposals()
    assert exc.value.message == "list_proposals failed"
    assert "unavailable" in str(exc.value.cause)
    assert exc.value.status_code == 500


def test_discussions_and_replies(proposal_service):
    proposal = create(proposal_service)
    discussion = proposal_service.add_discussion(proposal.id, "bob", "Bob", "  Fridays are bad for me  ")
    proposal_service.add_discussion_reply(proposal.id, discussion.id, "alice", "Alice", "Saturday then?")

    threads = proposal_service.list_discussions(proposal.id)
    assert len(threads) == 1
    assert threads[0].content == "Fridays are bad for me"
    assert [reply.content for reply in threads[0].replies] == ["Saturday then?"]


def test_reply_to_unknown_discussion(proposal_service):
    proposal = create(proposal_service)
    with pytest.raises(NotFound):
        proposal_service.add_discussion_reply(proposal.id, "missing", "bob", "Bob", "hello")
