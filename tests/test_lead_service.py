"""
Lead and scoring service tests against an in-memory database.
"""
import uuid

import pytest
from fastapi import HTTPException

from wingside.schemas.lead import LeadCreate, LeadUpdate, LeadFilter, LeadActivityCreate
from wingside.services.lead_service import LeadService
from wingside.services.scoring_service import ScoringService


@pytest.fixture
def lead_service(session):
    return LeadService(session)


@pytest.fixture
def scoring_service(session):
    return ScoringService(session)


def hot_lead(**overrides) -> LeadCreate:
    data = dict(
        name="Ada Obi",
        source="referral",
        email="ada@obievents.ng",
        company="Obi Events",
        budget="high",
        timeline="immediate",
        interest_level="high",
        estimated_value=150000,
    )
    data.update(overrides)
    return LeadCreate(**data)


class TestLeadService:
    async def test_create_scores_the_lead(self, lead_service):
        lead = await lead_service.create(hot_lead())

        # 4 x 20 + value 10 + one logged activity 2
        assert lead.score == 92
        assert lead.score_updated_at is not None
        assert lead.status == "new"

        activities = await lead_service.list_activities(lead.id)
        assert [a.subject for a in activities] == ["Lead created"]

    async def test_duplicate_email_conflicts(self, lead_service):
        await lead_service.create(hot_lead())
        with pytest.raises(HTTPException) as exc:
            await lead_service.create(hot_lead(name="Someone Else"))
        assert exc.value.status_code == 409

    async def test_contact_activity_adds_recency_and_engagement(self, lead_service):
        lead = await lead_service.create(hot_lead())

        await lead_service.add_activity(lead.id, LeadActivityCreate(activity_type="call", subject="Intro call"))

        lead = await lead_service.get(lead.id)
        assert lead.last_contacted_at is not None
        assert lead.score == 99

    async def test_note_does_not_count_as_contact(self, lead_service):
        lead = await lead_service.create(hot_lead())

        await lead_service.add_activity(lead.id, LeadActivityCreate(activity_type="note", subject="Left a voicemail"))

        lead = await lead_service.get(lead.id)
        assert lead.last_contacted_at is None
        assert lead.score == 94

    async def test_conversion_zeroes_score_and_logs_status(self, lead_service):
        lead = await lead_service.create(hot_lead())

        lead = await lead_service.update(lead.id, LeadUpdate(status="converted"))

        assert lead.score == 0
        activities = await lead_service.list_activities(lead.id)
        assert any(a.description == "Status changed from new to converted" for a in activities)

    async def test_update_unknown_lead(self, lead_service):
        with pytest.raises(HTTPException) as exc:
            await lead_service.update(uuid.uuid4(), LeadUpdate(status="lost"))
        assert exc.value.status_code == 404

    async def test_list_orders_by_score(self, lead_service):
        await lead_service.create(LeadCreate(name="Cold", source="website", email="cold@example.com"))
        await lead_service.create(hot_lead())
        await lead_service.create(
            LeadCreate(name="Warm", source="partner", email="warm@example.com", budget="medium", timeline="1-3_months")
        )

        page = await lead_service.list(LeadFilter(), page=1, limit=10)

        assert page["total"] == 3
        assert [l.name for l in page["items"]] == ["Ada Obi", "Warm", "Cold"]

        hot_only = await lead_service.list(LeadFilter(min_score=80))
        assert [l.name for l in hot_only["items"]] == ["Ada Obi"]

    async def test_delete_removes_activity_log(self, lead_service):
        lead = await lead_service.create(hot_lead())
        await lead_service.add_activity(lead.id, LeadActivityCreate(activity_type="email"))

        lead_id = lead.id

        assert await lead_service.delete(lead_id) is True
        with pytest.raises(HTTPException):
            await lead_service.get(lead_id)
        assert await lead_service.activity_repo.count({"lead_id": lead_id}) == 0

    async def test_stats(self, lead_service):
        await lead_service.create(hot_lead())
        await lead_service.create(LeadCreate(name="Cold", source="website", email="cold@example.com"))

        stats = await lead_service.get_stats()

        assert stats["total"] == 2
        assert stats["hot"] == 1
        assert stats["by_status"]["new"] == 2


class TestScoringService:
    async def test_analyze(self, lead_service, scoring_service):
        lead = await lead_service.create(hot_lead())

        analysis = await scoring_service.analyze(lead.id)

        assert analysis.score == 92
        assert analysis.quality == "Hot Lead"
        assert analysis.breakdown["source"].points == 20
        assert analysis.breakdown["engagement"].points == 2
        assert "Urgent: Fast-track to proposal" in analysis.suggested_actions
        assert "Executive outreach recommended" in analysis.suggested_actions

    async def test_recalculate_reports_previous_score(self, lead_service, scoring_service, session):
        lead = await lead_service.create(hot_lead())
        lead.score = 10
        session.add(lead)
        await session.commit()

        result = await scoring_service.recalculate(lead.id)

        assert result.previous_score == 10
        assert result.new_score == 92
        assert result.lead.score == 92

    async def test_recalculate_all(self, lead_service, scoring_service, session):
        hot = await lead_service.create(hot_lead())
        cold = await lead_service.create(LeadCreate(name="Cold", source="website", email="cold@example.com"))
        for lead in (hot, cold):
            lead.score = 0
            session.add(lead)
        await session.commit()

        result = await scoring_service.recalculate_all()

        assert result.total_updated == 2
        assert result.avg_score_before == 0
        # hot 92, cold 8 + 0 + 2 + 3 + 2 = 15
        assert result.avg_score_after == 53.5

    async def test_recalculate_all_with_no_leads(self, scoring_service):
        result = await scoring_service.recalculate_all()
        assert result.total_updated == 0
