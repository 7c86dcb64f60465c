"""Tests for the stage-transition guard and valuation document detection."""

from __future__ import annotations

import pytest

from src.dealboard.deals.stages import (
    NEEDS_VALUATION,
    STAGE_ORDER,
    DealStage,
    check_stage_transition,
    has_valuation_document,
    is_valuation_document,
)

LATER_STAGES = [s for s in DealStage if s != DealStage.ONBOARDING]


def test_stage_order_matches_board_columns():
    assert [s.value for s in STAGE_ORDER] == [
        "onboarding",
        "valuation",
        "buyer_matching",
        "due_diligence",
        "sold",
    ]


@pytest.mark.parametrize("target", LATER_STAGES)
def test_leaving_onboarding_without_valuation_is_rejected(target):
    decision = check_stage_transition(DealStage.ONBOARDING, target, has_valuation_document=False)
    assert decision.allowed is False
    assert decision.reason == NEEDS_VALUATION == "Needs Valuation"
    assert decision.current == DealStage.ONBOARDING
    assert decision.target == target


@pytest.mark.parametrize("target", LATER_STAGES)
def test_leaving_onboarding_with_valuation_is_allowed(target):
    decision = check_stage_transition(DealStage.ONBOARDING, target, has_valuation_document=True)
    assert decision.allowed is True
    assert decision.reason is None


@pytest.mark.parametrize("current", LATER_STAGES)
@pytest.mark.parametrize("target", list(DealStage))
def test_moves_from_other_stages_are_unrestricted(current, target):
    assert check_stage_transition(current, target, has_valuation_document=False).allowed


def test_staying_in_onboarding_is_allowed():
    decision = check_stage_transition(DealStage.ONBOARDING, DealStage.ONBOARDING, False)
    assert decision.allowed is True


def test_guard_accepts_raw_stage_strings():
    decision = check_stage_transition("onboarding", "valuation", False)
    assert decision.allowed is False
    assert decision.target is DealStage.VALUATION


@pytest.mark.parametrize(
    "name",
    ["Valuation.xlsx", "summit VALUATION v2.pptx", "2026-valuation-notes.pdf"],
)
def test_valuation_document_names(name):
    assert is_valuation_document(name)


@pytest.mark.parametrize("name", ["CIM.pptx", "NDA - signed.pdf", "", None])
def test_non_valuation_document_names(name):
    assert not is_valuation_document(name)


def test_custom_marker():
    assert is_valuation_document("Broker Opinion of Value.pdf", marker="opinion of value")
    assert not is_valuation_document("Valuation.xlsx", marker="opinion of value")


def test_has_valuation_document_over_names():
    assert has_valuation_document(["CIM.pptx", "Valuation.xlsx"])
    assert not has_valuation_document(["CIM.pptx", "NDA.pdf"])
    assert not has_valuation_document([])
