"""
Rule-based alerts, warnings, celebrations and recommendations.
"""
from datetime import date

import pytest

from flightdeck.engine.eta import calculate_eta
from flightdeck.engine.insights import (
    MAX_CELEBRATIONS,
    MAX_PER_BUCKET,
    MAX_WARNINGS,
    budget_warnings,
    calculate_alerts,
    calculate_trend,
    generate_insights,
    milestone_celebrations,
    recommendations,
)
from flightdeck.engine.schedule import calculate_financials
from flightdeck.engine.types import (
    CostResult,
    CreditsResult,
    ExamOverride,
    FinancialInputs,
    FinancialRules,
    PaceResult,
    PriorSnapshot,
    ReplacedProvider,
)

RULES = FinancialRules()


def credits(completed, in_progress=0, residency=0):
    return CreditsResult(
        completed=completed,
        in_progress=in_progress,
        remaining=max(0, 120 - completed - in_progress),
        total=120,
        is_over_target=False,
        overage_amount=0,
        percent_complete=completed / 120 * 100,
        residency_completed=residency,
    )


def pace(current, target=12.0, hours_per_credit=15.0):
    percent = current / target * 100
    zone = "slow" if percent < 70 else "excellent" if percent > 100 else "on_track"
    return PaceResult(
        current_hours=current,
        target_hours=target,
        percent_of_target=percent,
        zone=zone,
        hours_per_credit=hours_per_credit,
    )


def projection(sessions=2, phase1=2000.0, method="card", exam_cost=None):
    exam = None
    replaced = None
    if exam_cost is not None:
        exam = ExamOverride(use=True, exam_code="X", credits=6, exam_cost=exam_cost)
        replaced = ReplacedProvider(provider="Sophia", per_credit_est=50)
    return calculate_financials(
        FinancialInputs(
            pace_months=12,
            sessions_actual=sessions,
            phase1_cost=phase1,
            exam=exam,
            replaced_provider=replaced,
            payment_method=method,
        ),
        RULES,
        today=date(2025, 1, 1),
    )


def cost_for(proj, sessions=2):
    state = "Over Budget" if proj.over_15k else "Caution" if sessions > RULES.baseline_sessions else "On Track"
    return CostResult(
        lumiere_fee=7000,
        provider_cost=proj.breakdown.phase1_cost,
        umpi_cost=sessions * 1800,
        projected_umpi_sessions=sessions,
        umpi_session_cost=1800,
        projected_total=proj.projected_total,
        state=state,
    )


class TestTrend:
    def test_no_prior_snapshot_is_unavailable_not_zero(self):
        trend = calculate_trend(12600, None)
        assert not trend.available
        assert trend.delta_total is None
        assert trend.percent_change is None

    def test_up_and_down(self):
        assert calculate_trend(13000, 12000).direction == "up"
        assert calculate_trend(12000, 13000).direction == "down"
        assert calculate_trend(13000, 12000).percent_change == pytest.approx(100 / 12)

    def test_sub_dollar_change_is_flat(self):
        trend = calculate_trend(12600.50, 12600.00)
        assert trend.available
        assert trend.direction == "flat"


class TestAlerts:
    def test_green_when_nothing_is_wrong(self):
        eta = calculate_eta(100, 0, 12, 15)
        alerts = calculate_alerts(pace(12), eta, projection(), 1800)
        assert alerts.level == "green"
        assert alerts.one_year_warning is None

    def test_red_for_slow_pace(self):
        eta = calculate_eta(110, 0, 8, 15)
        alerts = calculate_alerts(pace(8), eta, projection(), 1800)
        assert alerts.level == "red"

    def test_red_with_one_year_warning(self):
        eta = calculate_eta(0, 0, 12, 15)
        alerts = calculate_alerts(pace(12), eta, projection(), 1800)
        assert alerts.level == "red"
        assert "$1,800" in alerts.one_year_warning

    def test_red_when_over_budget(self):
        eta = calculate_eta(110, 0, 12, 15)
        alerts = calculate_alerts(pace(12), eta, projection(sessions=4), 1800)
        assert alerts.level == "red"
        assert "Projected cost over budget" in alerts.messages


class TestBudgetWarnings:
    def test_one_warning_per_reason_when_over(self):
        proj = projection(sessions=4, exam_cost=900)
        warnings = budget_warnings(cost_for(proj, 4), proj, calculate_trend(proj.projected_total, None), RULES)
        assert len(warnings) == 3
        assert warnings[0].icon == "dollar"
        assert {w.icon for w in warnings[1:]} == {"alert"}

    def test_approaching_threshold(self):
        proj = projection(phase1=2500, sessions=3)  # 7000 + 2500 + 3 x 1800 = 14,900
        warnings = budget_warnings(cost_for(proj, 3), proj, calculate_trend(proj.projected_total, None), RULES)
        assert len(warnings) == 1
        assert "Within $100" in warnings[0].message

    def test_trend_up_more_than_five_percent(self):
        proj = projection()
        trend = calculate_trend(proj.projected_total, 11000)
        warnings = budget_warnings(cost_for(proj), proj, trend, RULES)
        assert [w.icon for w in warnings] == ["trend-up"]

    def test_capped(self):
        proj = projection(sessions=4, exam_cost=900)
        trend = calculate_trend(proj.projected_total, 10000)
        warnings = budget_warnings(cost_for(proj, 4), proj, trend, RULES)
        assert len(warnings) == MAX_WARNINGS


class TestMilestones:
    def test_highest_reached_without_prior(self):
        items = milestone_celebrations(credits(65), None)
        assert len(items) == 1
        assert items[0].message.startswith("Halfway there!")

    def test_crossing_since_prior_snapshot(self):
        items = milestone_celebrations(credits(92), PriorSnapshot(completed_credits=62))
        # crossed 75% (90 credits) only; 50% was already behind
        assert len(items) == 1
        assert items[0].message.startswith("75% complete")

    def test_no_crossing_no_celebration(self):
        assert milestone_celebrations(credits(70), PriorSnapshot(completed_credits=65)) == []

    def test_first_residency_credit(self):
        items = milestone_celebrations(credits(3, residency=3), PriorSnapshot(completed_credits=0, residency_completed=0))
        assert [i.message for i in items] == ["First UMPI credit logged - residency is underway!"]

    def test_first_residency_credit_without_prior_snapshot(self):
        items = milestone_celebrations(credits(3, residency=3), None)
        assert [i.message for i in items] == ["First UMPI credit logged - residency is underway!"]

    def test_residency_already_underway_last_week(self):
        prior = PriorSnapshot(completed_credits=3, residency_completed=3)
        assert milestone_celebrations(credits(6, residency=6), prior) == []

    def test_recomputation_is_idempotent(self):
        prior = PriorSnapshot(completed_credits=20, residency_completed=0)
        first = milestone_celebrations(credits(61, residency=3), prior)
        second = milestone_celebrations(credits(61, residency=3), prior)
        assert first == second
        assert len(first) == 3


class TestRecommendations:
    def test_slow_long_plan(self):
        p = pace(6)
        eta = calculate_eta(20, 0, 6, 15)
        proj = projection(sessions=4)
        recs = recommendations(credits(20), p, eta, cost_for(proj, 4), proj, RULES)

        assert recs.pace[0].message.startswith("Increase to 29 hrs/week to finish within 12 months")
        assert recs.credits[0].message == "Take one more course this term to lift your credit velocity."
        assert any("Consider ACH" in r.message for r in recs.budget)
        for bucket in (recs.pace, recs.credits, recs.budget):
            assert len(bucket) <= MAX_PER_BUCKET

    def test_maintain_when_on_target(self):
        p = pace(14)
        eta = calculate_eta(100, 0, 14, 15)
        proj = projection(method="ach")
        recs = recommendations(credits(100), p, eta, cost_for(proj), proj, RULES)
        assert recs.pace[0].message.startswith("Maintain your current 14.0 hrs/week")
        assert recs.budget == []


def test_generate_insights_summary_and_tip():
    p = pace(10)
    eta = calculate_eta(100, 0, 10, 15)
    proj = projection()
    insights = generate_insights(credits(100), p, eta, cost_for(proj), proj, calculate_trend(proj.projected_total, None), RULES)

    assert insights.summary == f"At this pace, you'll finish in {eta.months} months and pay $12,600."
    assert insights.smart_tip == "Increase pace by 2 hrs/week to stay on track."
    assert len(insights.celebrations) <= MAX_CELEBRATIONS
