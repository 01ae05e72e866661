"""Unit tests for the campaign and lead stores.

The memory and SQL stores run the same contract tests; the failover
store and the factory are tested separately.
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock, patch

import pytest
from sqlalchemy import create_engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker

from redlead_core.config import Settings
from redlead_core.domain.errors import StoreError, StoreUnavailableError
from redlead_core.domain.models import DiscoveryMode, LeadStatus
from redlead_core.domain.stores import (
    FailoverStore,
    LeadFields,
    MemoryStore,
    SqlStore,
    build_store,
)
from tests.factories import create_campaign, create_lead


# =============================================================================
# FIXTURES
# =============================================================================


@pytest.fixture(params=["memory", "sql"])
def store(request):
    """Each contract test runs against both store implementations."""
    if request.param == "memory":
        return MemoryStore()
    return request.getfixturevalue("sql_store")


def posted(minutes_ago: int) -> datetime:
    return datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc) - timedelta(minutes=minutes_ago)


# =============================================================================
# CAMPAIGN TESTS
# =============================================================================


class TestCampaigns:
    """Campaign CRUD contract."""

    def test_create_and_get(self, store):
        """A created campaign can be read back."""
        campaign = create_campaign(
            store,
            keywords=["crm", "sales"],
            target_subreddits=["smallbusiness"],
            negative_keywords=["giveaway"],
        )

        loaded = store.get_campaign(campaign.id)

        assert loaded.id == campaign.id
        assert loaded.owner_id == "user-1"
        assert loaded.keywords == ["crm", "sales"]
        assert loaded.primary_keyword == "crm"
        assert loaded.negative_keywords == ["giveaway"]
        assert loaded.subreddit_blacklist == []
        assert loaded.is_active is True
        assert loaded.last_manual_discovery_at is None

    def test_get_missing(self, store):
        """Missing campaigns are None."""
        assert store.get_campaign("nope") is None

    def test_list_filters_by_owner_and_active(self, store):
        """list_campaigns filters by owner and activity."""
        a = create_campaign(store, owner_id="user-1", name="a")
        create_campaign(store, owner_id="user-2", name="b")
        c = create_campaign(store, owner_id="user-1", name="c", is_active=False)

        assert {x.id for x in store.list_campaigns(owner_id="user-1")} == {a.id, c.id}
        assert [x.id for x in store.list_campaigns(owner_id="user-1", is_active=True)] == [a.id]
        assert len(store.list_campaigns()) == 3

    def test_update(self, store):
        """Editable fields can be updated."""
        campaign = create_campaign(store)

        updated = store.update_campaign(campaign.id, name="Renamed", keywords=["billing"])

        assert updated.name == "Renamed"
        assert store.get_campaign(campaign.id).keywords == ["billing"]

    def test_update_rejects_unknown_fields(self, store):
        """Read-only and unknown fields are rejected."""
        campaign = create_campaign(store)

        with pytest.raises(ValueError):
            store.update_campaign(campaign.id, owner_id="someone-else")

    def test_update_missing(self, store):
        """Updating a missing campaign returns None."""
        assert store.update_campaign("nope", name="x") is None

    def test_returned_records_are_detached(self, store):
        """Mutating a returned record does not change the store."""
        campaign = create_campaign(store, keywords=["crm"])

        campaign.keywords.append("mutated")

        assert store.get_campaign(campaign.id).keywords == ["crm"]

    def test_touch_discovery_by_mode(self, store):
        """Each mode has its own last-run timestamp."""
        campaign = create_campaign(store)
        at = datetime(2026, 3, 1, 9, 30, tzinfo=timezone.utc)

        store.touch_discovery(campaign.id, DiscoveryMode.TARGETED, at)

        loaded = store.get_campaign(campaign.id)
        assert loaded.last_targeted_discovery_at is not None
        assert loaded.last_manual_discovery_at is None

    def test_delete_cascades_to_leads(self, store):
        """Deleting a campaign removes its leads."""
        campaign = create_campaign(store)
        lead = create_lead(store, campaign.id, "p1")

        assert store.delete_campaign(campaign.id) is True

        assert store.get_campaign(campaign.id) is None
        assert store.get_lead(lead.id) is None
        assert store.list_leads(campaign.id) == []

    def test_delete_missing(self, store):
        """Deleting a missing campaign returns False."""
        assert store.delete_campaign("nope") is False


# =============================================================================
# LEAD TESTS
# =============================================================================


class TestLeads:
    """Lead upsert and listing contract."""

    def test_insert_then_update(self, store):
        """The second upsert of a post updates score and intent only."""
        campaign = create_campaign(store)
        first, created = store.upsert_lead(
            campaign.id,
            "p1",
            LeadFields(title="Original", opportunity_score=60, intent="Discussing"),
        )
        discovered_at = store.get_lead(first.id).discovered_at

        second, created_again = store.upsert_lead(
            campaign.id,
            "p1",
            LeadFields(title="Edited title", opportunity_score=85, intent="Buying"),
        )

        assert created is True
        assert created_again is False
        assert second.id == first.id
        loaded = store.get_lead(first.id)
        assert loaded.title == "Original"
        assert loaded.opportunity_score == 85
        assert loaded.intent == "Buying"
        assert loaded.discovered_at == discovered_at
        assert len(store.list_leads(campaign.id)) == 1

    def test_insert_defaults_status_new(self, store):
        """New leads start as new."""
        campaign = create_campaign(store)

        lead = create_lead(store, campaign.id, "p1")

        assert lead.status == LeadStatus.NEW

    def test_update_keeps_status_unless_given(self, store):
        """Upserts without a status leave the stored status alone."""
        campaign = create_campaign(store)
        lead = create_lead(store, campaign.id, "p1")
        store.update_lead_status(lead.id, LeadStatus.SAVED)

        store.upsert_lead(campaign.id, "p1", LeadFields(opportunity_score=10))
        assert store.get_lead(lead.id).status == LeadStatus.SAVED

        store.upsert_lead(campaign.id, "p1", LeadFields(status=LeadStatus.IGNORED))
        assert store.get_lead(lead.id).status == LeadStatus.IGNORED

    def test_same_post_in_two_campaigns(self, store):
        """Uniqueness is per campaign."""
        one = create_campaign(store, name="one")
        two = create_campaign(store, name="two")

        _, created_one = store.upsert_lead(one.id, "p1", LeadFields())
        _, created_two = store.upsert_lead(two.id, "p1", LeadFields())

        assert created_one is True
        assert created_two is True

    def test_list_ordering(self, store):
        """Leads sort by score, then by newest post."""
        campaign = create_campaign(store)
        create_lead(store, campaign.id, "low", opportunity_score=20, posted_at=posted(0))
        create_lead(store, campaign.id, "old", opportunity_score=80, posted_at=posted(60))
        create_lead(store, campaign.id, "new", opportunity_score=80, posted_at=posted(5))

        ids = [lead.external_post_id for lead in store.list_leads(campaign.id)]

        assert ids == ["new", "old", "low"]

    def test_list_filters(self, store):
        """Status and minimum score filters combine."""
        campaign = create_campaign(store)
        a = create_lead(store, campaign.id, "a", opportunity_score=90)
        create_lead(store, campaign.id, "b", opportunity_score=30)
        create_lead(store, campaign.id, "c", opportunity_score=70)
        store.update_lead_status(a.id, LeadStatus.REPLIED)

        assert [lead.external_post_id for lead in store.list_leads(campaign.id, min_score=70)] == ["a", "c"]
        assert [
            lead.external_post_id for lead in store.list_leads(campaign.id, status=LeadStatus.NEW)
        ] == ["c", "b"]
        assert [
            lead.external_post_id
            for lead in store.list_leads(campaign.id, status=LeadStatus.NEW, min_score=50)
        ] == ["c"]

    def test_update_status_missing(self, store):
        """Updating a missing lead returns None."""
        assert store.update_lead_status("nope", LeadStatus.REPLIED) is None


# =============================================================================
# SQL-SPECIFIC TESTS
# =============================================================================


class TestSqlStore:
    """Behaviour specific to the SQL store."""

    def test_unreachable_database(self, tmp_path):
        """Connection failures surface as StoreUnavailableError."""
        engine = create_engine(f"sqlite:///{tmp_path}/missing-dir/db.sqlite")
        sql = SqlStore(sessionmaker(bind=engine, expire_on_commit=False))

        with pytest.raises(StoreUnavailableError):
            sql.get_campaign("anything")

    def test_concurrent_insert_retries_as_update(self, sql_store):
        """An IntegrityError on insert is retried once."""
        campaign = create_campaign(sql_store)
        expected = create_lead(sql_store, campaign.id, "p1")
        conflict = IntegrityError("INSERT", {}, Exception("duplicate"))

        with patch.object(
            sql_store, "_upsert_once", side_effect=[conflict, (expected, False)]
        ) as upsert_once:
            lead, created = sql_store.upsert_lead(campaign.id, "p1", LeadFields())

        assert upsert_once.call_count == 2
        assert lead is expected
        assert created is False

    def test_second_conflict_is_store_error(self, sql_store):
        """A conflict on the retry becomes StoreError."""
        conflict = IntegrityError("INSERT", {}, Exception("duplicate"))

        with patch.object(sql_store, "_upsert_once", side_effect=[conflict, conflict]):
            with pytest.raises(StoreError):
                sql_store.upsert_lead("c", "p1", LeadFields())

    def test_lead_for_missing_campaign(self, sql_store):
        """The foreign key rejects leads for unknown campaigns."""
        with pytest.raises(StoreError):
            sql_store.upsert_lead("no-such-campaign", "p1", LeadFields())


# =============================================================================
# FAILOVER TESTS
# =============================================================================


class TestFailoverStore:
    """Tests for FailoverStore."""

    def test_uses_primary_when_healthy(self):
        """Calls go to the primary while it works."""
        primary, fallback = MemoryStore(), MemoryStore()
        store = FailoverStore(primary, fallback)

        campaign = create_campaign(store)

        assert primary.get_campaign(campaign.id) is not None
        assert fallback.get_campaign(campaign.id) is None
        assert store.failover_count == 0

    def test_falls_back_when_primary_unavailable(self):
        """StoreUnavailableError routes the call to the fallback."""
        primary = MagicMock()
        primary.create_campaign.side_effect = StoreUnavailableError("db down")
        primary.get_campaign.side_effect = StoreUnavailableError("db down")
        fallback = MemoryStore()
        store = FailoverStore(primary, fallback)

        campaign = create_campaign(store)

        assert store.get_campaign(campaign.id).id == campaign.id
        assert fallback.get_campaign(campaign.id) is not None
        assert store.failover_count == 2

    def test_other_errors_propagate(self):
        """Only unavailability triggers failover."""
        primary = MagicMock()
        primary.get_lead.side_effect = StoreError("bad row")
        store = FailoverStore(primary, MemoryStore())

        with pytest.raises(StoreError):
            store.get_lead("x")

    def test_primary_retried_every_call(self, sql_store):
        """After an outage the primary is used again."""
        primary = MagicMock(wraps=sql_store)
        primary.list_campaigns.side_effect = [StoreUnavailableError("blip"), []]
        store = FailoverStore(primary, MemoryStore())

        store.list_campaigns()
        store.list_campaigns()

        assert primary.list_campaigns.call_count == 2
        assert store.failover_count == 1


# =============================================================================
# FACTORY TESTS
# =============================================================================


class TestBuildStore:
    """Tests for build_store."""

    def test_memory_backend(self):
        """STORE_BACKEND=memory builds a MemoryStore."""
        assert isinstance(build_store(Settings(store_backend="memory")), MemoryStore)

    def test_database_backend(self, sync_session_factory):
        """STORE_BACKEND=database builds a SqlStore."""
        store = build_store(Settings(store_backend="database"), session_factory=sync_session_factory)

        assert isinstance(store, SqlStore)

    def test_database_with_fallback(self, sync_session_factory):
        """The default backend wraps SQL with a memory failover."""
        store = build_store(
            Settings(store_backend="database_with_fallback"),
            session_factory=sync_session_factory,
        )

        assert isinstance(store, FailoverStore)
        assert isinstance(store.primary, SqlStore)
        assert isinstance(store.fallback, MemoryStore)

    def test_invalid_backend(self):
        """Unknown backends are rejected by settings validation."""
        with pytest.raises(ValueError):
            Settings(store_backend="redis")
