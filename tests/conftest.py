import pytest
from fastapi.testclient import TestClient

from app.config.settings import Settings
from app.core.realtime import ChangeFeed, get_change_feed
from app.database.supabase_client import get_supabase
from app.modules.applications.service import ApplicationService
from app.modules.auth.service import clear_auth_cache
from app.modules.dashboard.service import DashboardService
from app.modules.final_votes.service import FinalVoteService
from app.modules.monthly_selections.service import MonthlySelectionService
from app.modules.polls.service import PollService
from app.modules.profiles.service import ProfileService
from app.modules.proposals.service import ProposalService
from tests.fakes import FakeAsyncClient, FakeSupabase, make_profile


@pytest.fixture()
def settings():
    return Settings(supabase_url="http://localhost:54321", supabase_key="test-key")


@pytest.fixture()
def supabase():
    clear_auth_cache()
    fake = FakeSupabase()
    yield fake
    clear_auth_cache()


@pytest.fixture()
def proposal_service(supabase, settings):
    return ProposalService(supabase, settings)


@pytest.fixture()
def final_vote_service(supabase, settings):
    return FinalVoteService(supabase, settings)


@pytest.fixture()
def selection_service(supabase, settings):
    return MonthlySelectionService(supabase, settings)


@pytest.fixture()
def application_service(supabase, settings):
    return ApplicationService(supabase, settings)


@pytest.fixture()
def poll_service(supabase, settings):
    return PollService(supabase, settings)


@pytest.fixture()
def profile_service(supabase):
    return ProfileService(supabase)


@pytest.fixture()
def dashboard_service(supabase, settings):
    return DashboardService(supabase, settings)


@pytest.fixture()
def applicant(supabase, profile_service):
    supabase.seed("user_profiles", make_profile("carol"))
    return profile_service.get_profile("carol")


@pytest.fixture()
def realtime():
    return FakeAsyncClient()


@pytest.fixture()
def client(supabase, realtime):
    """API client on the fake store; tokens: token-alice (member), token-root (admin)"""
    from app.main import app

    supabase.auth.add_user("token-alice", "alice", "alice@example.com", display_name="Alice")
    supabase.auth.add_user("token-bob", "bob", "bob@example.com")
    supabase.auth.add_user("token-root", "root", "root@example.com")
    supabase.seed("user_profiles", make_profile("root", role="admin", display_name="Root"))

    async def fake_change_feed():
        return ChangeFeed(realtime)

    app.dependency_overrides[get_supabase] = lambda: supabase
    app.dependency_overrides[get_change_feed] = fake_change_feed
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
