"""Unit tests for LeadsService.

Tests cover:
- Listing with status and score filters
- Ownership checks on leads and campaigns
- Status updates
- Campaign metrics
"""

import pytest

from redlead_core.domain.errors import CampaignNotFoundError, LeadNotFoundError
from redlead_core.domain.models import LeadStatus
from redlead_core.domain.services.leads import (
    InvalidStatusError,
    LeadsService,
    SubredditPerformance,
    compute_metrics,
)
from tests.factories import create_campaign, create_lead


# =============================================================================
# FIXTURES
# =============================================================================


@pytest.fixture
def service(memory_store) -> LeadsService:
    """Leads service over the memory store."""
    return LeadsService(memory_store)


@pytest.fixture
def campaign(memory_store):
    """A campaign owned by user-1."""
    return create_campaign(memory_store, owner_id="user-1")


# =============================================================================
# LISTING TESTS
# =============================================================================


class TestListLeads:
    """Tests for LeadsService.list_leads."""

    def test_lists_best_first(self, service, memory_store, campaign):
        """Leads come back best score first."""
        create_lead(memory_store, campaign.id, "a", opportunity_score=30)
        create_lead(memory_store, campaign.id, "b", opportunity_score=95)

        leads = service.list_leads(campaign.id, "user-1")

        assert [lead.external_post_id for lead in leads] == ["b", "a"]

    def test_filters(self, service, memory_store, campaign):
        """Status and min_score are passed through to the store."""
        a = create_lead(memory_store, campaign.id, "a", opportunity_score=90)
        create_lead(memory_store, campaign.id, "b", opportunity_score=40)
        memory_store.update_lead_status(a.id, LeadStatus.REPLIED)

        new_leads = service.list_leads(campaign.id, "user-1", status="new")
        strong_leads = service.list_leads(campaign.id, "user-1", min_score=50)

        assert [lead.external_post_id for lead in new_leads] == ["b"]
        assert [lead.external_post_id for lead in strong_leads] == ["a"]

    def test_invalid_status(self, service, campaign):
        """Unknown statuses are rejected."""
        with pytest.raises(InvalidStatusError):
            service.list_leads(campaign.id, "user-1", status="archived")

    def test_other_owner(self, service, campaign):
        """Another user's campaign is not found."""
        with pytest.raises(CampaignNotFoundError):
            service.list_leads(campaign.id, "user-2")


# =============================================================================
# LEAD TESTS
# =============================================================================


class TestLeadAccess:
    """Tests for get_lead and update_status."""

    def test_get_lead(self, service, memory_store, campaign):
        """Owners can read their leads."""
        lead = create_lead(memory_store, campaign.id, "a")

        assert service.get_lead(lead.id, "user-1").external_post_id == "a"

    def test_get_lead_other_owner(self, service, memory_store, campaign):
        """Leads of other users' campaigns are not found."""
        lead = create_lead(memory_store, campaign.id, "a")

        with pytest.raises(LeadNotFoundError):
            service.get_lead(lead.id, "user-2")

    def test_get_missing_lead(self, service):
        """Missing leads are not found."""
        with pytest.raises(LeadNotFoundError):
            service.get_lead("nope", "user-1")

    @pytest.mark.parametrize("status", ["new", "replied", "saved", "ignored"])
    def test_update_status(self, service, memory_store, campaign, status):
        """Every valid status can be set."""
        lead = create_lead(memory_store, campaign.id, "a")

        updated = service.update_status(lead.id, "user-1", status)

        assert updated.status == status
        assert memory_store.get_lead(lead.id).status == status

    def test_update_invalid_status(self, service, memory_store, campaign):
        """Invalid statuses are rejected before any write."""
        lead = create_lead(memory_store, campaign.id, "a")

        with pytest.raises(InvalidStatusError):
            service.update_status(lead.id, "user-1", "archived")

        assert memory_store.get_lead(lead.id).status == LeadStatus.NEW

    def test_update_other_owner(self, service, memory_store, campaign):
        """Other users cannot triage the lead."""
        lead = create_lead(memory_store, campaign.id, "a")

        with pytest.raises(LeadNotFoundError):
            service.update_status(lead.id, "user-2", "replied")


# =============================================================================
# METRICS TESTS
# =============================================================================


class TestMetrics:
    """Tests for campaign metrics."""

    def test_empty_campaign(self, service, campaign):
        """A campaign without leads has zero metrics."""
        metrics = service.campaign_metrics(campaign.id, "user-1")

        assert metrics.total_leads == 0
        assert metrics.conversion_rate == 0.0
        assert sum(metrics.opportunity_score_distribution.values()) == 0
        assert metrics.subreddit_performance == []

    def test_counts_and_distribution(self, service, memory_store, campaign):
        """Buckets are inclusive and conversion is replied over total."""
        scores = {"a": 10, "b": 20, "c": 21, "d": 55, "e": 80, "f": 81, "g": 100}
        leads = {
            pid: create_lead(
                memory_store,
                campaign.id,
                pid,
                opportunity_score=score,
                subreddit_name="startups" if pid in ("f", "g") else "smallbusiness",
            )
            for pid, score in scores.items()
        }
        memory_store.update_lead_status(leads["a"].id, LeadStatus.REPLIED)
        memory_store.update_lead_status(leads["b"].id, LeadStatus.REPLIED)
        memory_store.update_lead_status(leads["c"].id, LeadStatus.IGNORED)

        metrics = service.campaign_metrics(campaign.id, "user-1")

        assert metrics.total_leads == 7
        assert metrics.new_leads == 4
        assert metrics.replied_leads == 2
        assert metrics.conversion_rate == round(2 / 7, 4)
        assert metrics.opportunity_score_distribution == {
            "0-20": 2,
            "21-40": 1,
            "41-60": 1,
            "61-80": 1,
            "81-100": 2,
        }
        assert metrics.subreddit_performance == [
            SubredditPerformance(subreddit="smallbusiness", lead_count=5, average_score=37.2),
            SubredditPerformance(subreddit="startups", lead_count=2, average_score=90.5),
        ]

    def test_other_owner(self, service, campaign):
        """Metrics for another user's campaign are not found."""
        with pytest.raises(CampaignNotFoundError):
            service.campaign_metrics(campaign.id, "user-2")

    def test_compute_metrics_directly(self):
        """compute_metrics works on plain lead records."""
        assert compute_metrics("c1", []).campaign_id == "c1"
