"""Tests for plans, Stripe Checkout parameters, fulfilment and AI usage accounting."""

import asyncio
from datetime import datetime
from types import SimpleNamespace
from uuid import uuid4

import pytest

from curriculopro.api.payments import frontend_base_url
from curriculopro.core.config import settings
from curriculopro.core.errors import BadRequestError, InsufficientCreditsError, PaymentError
from curriculopro.models.orm import Credit, UserProfile
from curriculopro.models.schemas import UsagePeriod
from curriculopro.services import admin_service, credit_service, payment_service, pricing_service, usage_service


class TestPricing:
    def test_profit_margin(self):
        margin = pricing_service.calculate_profit_margin("single")
        assert margin.total_cost == 0.5
        assert margin.profit == 9.4
        assert margin.margin == 94.9

    def test_unknown_plan(self):
        assert pricing_service.get_plan("gold") is None
        with pytest.raises(ValueError):
            pricing_service.calculate_profit_margin("gold")

    def test_plans_listed_with_margin(self):
        plans = pricing_service.list_plans_with_margin()
        assert [p.id for p in plans] == ["single", "pack3"]
        assert plans[1].profit_margin.total_cost == 1.5

    def test_token_estimate(self):
        assert pricing_service.estimate_tokens("") == 0
        assert pricing_service.estimate_tokens("abcde") == 2

    def test_total_cost_adds_both_calls(self, monkeypatch):
        monkeypatch.setattr(settings, "usd_to_brl", 5.0)
        cost = pricing_service.calculate_total_cost("a" * 4000, "b" * 400, "c" * 4000)
        assert cost["analysis"]["inputTokens"] == 1500
        assert cost["generation"]["inputTokens"] == 1350
        assert cost["totalUSD"] == round(cost["analysis"]["costUSD"] + cost["generation"]["costUSD"], 4)


class TestCheckoutParams:
    def test_plan_amount_and_metadata(self):
        user_id = uuid4()
        params = payment_service.build_session_params("pack3", user_id, "maria@example.com", "https://app.example.com/")
        item = params["line_items"][0]
        assert item["price_data"]["unit_amount"] == 2490
        assert item["price_data"]["currency"] == "brl"
        assert params["metadata"] == {
            "userId": str(user_id),
            "planId": "pack3",
            "planName": "Pacote 3 Análises",
            "analyses": "3",
        }
        assert params["success_url"] == (
            f"https://app.example.com?session_id={{CHECKOUT_SESSION_ID}}&userId={user_id}"
        )
        assert params["cancel_url"] == "https://app.example.com/payment/cancel"
        assert params["customer_email"] == "maria@example.com"

    def test_statement_descriptor_truncated(self, monkeypatch):
        monkeypatch.setattr(settings, "stripe_statement_descriptor", "X" * 40)
        params = payment_service.build_session_params("single", uuid4(), None, "https://a.com")
        assert len(params["payment_intent_data"]["statement_descriptor"]) == 22

    def test_invalid_email_not_sent(self):
        params = payment_service.build_session_params("single", uuid4(), "not-an-email", "https://a.com")
        assert "customer_email" not in params

    def test_unknown_plan(self):
        with pytest.raises(BadRequestError):
            payment_service.build_session_params("gold", uuid4(), None, "https://a.com")

    def test_unconfigured_stripe(self, monkeypatch):
        monkeypatch.setattr(settings, "stripe_secret_key", "")
        with pytest.raises(PaymentError) as exc_info:
            asyncio.run(payment_service.create_checkout_session("single", uuid4(), None, "https://a.com"))
        assert exc_info.value.status_code == 503


class TestRedirectBase:
    def test_origin_wins(self):
        assert frontend_base_url("https://a.com", "https://b.com/x") == "https://a.com"

    def test_referer_origin(self):
        assert frontend_base_url(None, "https://b.com/planos?x=1") == "https://b.com"

    def test_settings_fallback(self):
        assert frontend_base_url(None, None) == settings.frontend_url


class FakeDb:
    def __init__(self, profile=None):
        self.profile = profile
        self.commits = 0

    async def get(self, model, key):
        return self.profile

    async def commit(self):
        self.commits += 1


class TestFulfilment:
    def _session(self, user_id, plan_id="pack3"):
        return {
            "id": "cs_test_1",
            "payment_status": "paid",
            "amount_total": 2490,
            "metadata": {"userId": str(user_id), "planId": plan_id, "planName": "Pacote 3 Análises", "analyses": "3"},
        }

    def test_already_fulfilled_session_is_not_credited_again(self, monkeypatch):
        existing = SimpleNamespace(id=uuid4())

        async def find(db, payment_id):
            return existing

        async def create(*args, **kwargs):
            raise AssertionError("purchase created twice")

        monkeypatch.setattr(credit_service, "find_purchase_by_payment_id", find)
        monkeypatch.setattr(credit_service, "create_purchase", create)
        result = asyncio.run(payment_service.fulfill_checkout_session(FakeDb(), self._session(uuid4())))
        assert result is existing

    def test_new_session_credits_plan(self, monkeypatch):
        created = {}
        profile = SimpleNamespace(plan=None)

        async def find(db, payment_id):
            return None

        async def create(db, user_id, plan_id, plan_name, credits_amount, price, **kwargs):
            created.update(plan_id=plan_id, credits=credits_amount, price=price, **kwargs)
            return SimpleNamespace(id=uuid4(), user_id=user_id)

        monkeypatch.setattr(credit_service, "find_purchase_by_payment_id", find)
        monkeypatch.setattr(credit_service, "create_purchase", create)
        db = FakeDb(profile)
        asyncio.run(payment_service.fulfill_checkout_session(db, self._session(uuid4())))
        assert created["credits"] == 3
        assert created["price"] == 24.9
        assert created["payment_method"] == "stripe"
        assert created["payment_id"] == "cs_test_1"
        assert profile.plan == "pack3"

    def test_bad_metadata(self, monkeypatch):
        async def find(db, payment_id):
            return None

        monkeypatch.setattr(credit_service, "find_purchase_by_payment_id", find)
        session = self._session(uuid4(), plan_id="gold")
        assert asyncio.run(payment_service.fulfill_checkout_session(FakeDb(), session)) is None


class LedgerResult:
    def __init__(self, rows, unused):
        self.rows = rows
        self.unused = unused

    def scalars(self):
        return self

    def all(self):
        return self.rows

    def scalar_one(self):
        return self.unused


class LedgerDb:
    """In-memory credit pool: selects return the unused rows (honouring LIMIT), counts return their number."""

    def __init__(self, credits=(), profile=None):
        self.credits = list(credits)
        self.profile = profile
        self.added = []
        self.commits = 0
        self.rollbacks = 0

    def _unused(self):
        return [c for c in self.credits if not c.used]

    async def execute(self, statement):
        unused = self._unused()
        limit = getattr(statement, "_limit", None)
        return LedgerResult(unused[:limit] if limit else unused, len(unused))

    async def get(self, model, key):
        return self.profile

    def add(self, obj):
        self.added.append(obj)

    def add_all(self, objs):
        self.added.extend(objs)

    async def flush(self):
        for obj in self.added:
            if obj.id is None:
                obj.id = uuid4()

    async def commit(self):
        self.commits += 1

    async def rollback(self):
        self.rollbacks += 1

    async def refresh(self, obj):
        pass


def _credits(user_id, count):
    return [Credit(id=uuid4(), purchase_id=uuid4(), user_id=user_id, used=False) for _ in range(count)]


class TestCreditLedger:
    def test_purchase_inserts_one_row_per_credit(self):
        user_id = uuid4()
        db = LedgerDb()
        purchase = asyncio.run(credit_service.create_purchase(db, user_id, "pack3", "Pacote 3", 3, 24.9))

        credits = [obj for obj in db.added if isinstance(obj, Credit)]
        assert len(credits) == 3
        assert all(c.purchase_id == purchase.id and c.user_id == user_id and c.used is False for c in credits)
        assert purchase.payment_id.startswith("mock_")
        assert purchase.payment_id[len("mock_"):].isdigit()
        assert purchase.status == "concluida"
        assert db.commits == 1

    def test_service_only_purchase_has_no_credits(self):
        db = LedgerDb()
        purchase = asyncio.run(
            credit_service.create_purchase(
                db, uuid4(), "english", "Currículo em Inglês", 0, 5.9,
                payment_id="cs_1", service_type="english_resume",
            )
        )
        assert [obj for obj in db.added if isinstance(obj, Credit)] == []
        assert purchase.payment_id == "cs_1"

    def test_too_few_credits_changes_nothing(self):
        user_id = uuid4()
        profile = UserProfile(id=user_id, email="maria@example.com")
        db = LedgerDb(_credits(user_id, 1), profile)

        with pytest.raises(InsufficientCreditsError) as exc_info:
            asyncio.run(credit_service.consume_credits(db, user_id, "analysis", 2))
        assert exc_info.value.credits_available == 1
        assert exc_info.value.status_code == 402
        assert db.credits[0].used is False
        assert db.credits[0].used_at is None
        assert profile.last_analysis is None
        assert db.commits == 0
        assert db.rollbacks == 1

    def test_consumes_exactly_amount(self):
        user_id = uuid4()
        site_id = uuid4()
        profile = UserProfile(id=user_id, email="maria@example.com")
        db = LedgerDb(_credits(user_id, 3), profile)

        remaining = asyncio.run(
            credit_service.consume_credits(
                db, user_id, "analysis", 2, resume_file_name="cv.pdf", job_site_id=site_id
            )
        )
        used, untouched = db.credits[:2], db.credits[2]
        assert remaining == 1
        assert all(c.used and c.action_type == "analysis" and c.resume_file_name == "cv.pdf" for c in used)
        assert all(c.job_site_id == site_id for c in used)
        assert untouched.used is False and untouched.job_site_id is None
        assert profile.last_analysis is not None
        assert profile.last_analysis == used[0].used_at
        assert db.commits == 1

    def test_consumed_site_shows_in_ranking(self):
        user_id = uuid4()
        site_id = uuid4()
        db = LedgerDb(_credits(user_id, 2), UserProfile(id=user_id, email="maria@example.com"))
        asyncio.run(credit_service.consume_credits(db, user_id, "analysis", 1, job_site_id=site_id))

        uses = [(c.job_site_id, "Catho", c.used_at) for c in db.credits if c.used and c.job_site_id]
        ranking = admin_service.rank_job_sites(uses)
        assert [(r.site_id, r.analyses) for r in ranking] == [(site_id, 1)]


class TestUsage:
    def test_gemini_cost(self):
        assert usage_service.calculate_cost("gemini", 1000, 1000) == pytest.approx(0.00075)

    def test_openai_model_cost(self):
        assert usage_service.calculate_cost("openai-gpt-4", 1000, 0) == pytest.approx(0.03)

    def test_unknown_openai_model_uses_cheapest(self):
        assert usage_service.calculate_cost("openai-gpt-9", 1000, 0) == pytest.approx(0.0015)

    def test_unknown_provider_is_free(self):
        assert usage_service.calculate_cost("local", 1000, 1000) == 0.0

    def test_period_start(self):
        now = datetime(2026, 3, 14, 15, 45)
        assert usage_service.period_start(UsagePeriod.day, now) == datetime(2026, 3, 14)
        assert usage_service.period_start(UsagePeriod.month, now) == datetime(2026, 3, 1)
        assert usage_service.period_start(UsagePeriod.hour, now) == datetime(2026, 3, 14, 14, 45)

    def test_summary(self):
        stats = usage_service.summarize_usage(
            ["resume_analysis", "resume_analysis", "cover_letter"],
            [datetime(2026, 3, 14, 10, 5), datetime(2026, 3, 14, 10, 50), datetime(2026, 3, 14, 11, 0)],
            daily_limit=3,
        )
        assert stats["today"] == {
            "used": 3,
            "limit": 3,
            "remaining": 0,
            "percentage": 100.0,
            "isNearLimit": True,
        }
        assert stats["byService"] == {"resume_analysis": 2, "cover_letter": 1}
        assert stats["hourly"] == {"2026-03-14 10:00": 2, "2026-03-14 11:00": 1}
