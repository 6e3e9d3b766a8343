"""Tests for the pipeline models."""

import pytest

from adoc_sync.sync.models import PipelineState, Strategy, SyncDecision, Verdict


def _decision(state: PipelineState) -> SyncDecision:
    return SyncDecision(
        page_key="index.adoc",
        primary_path="docs-en/index.adoc",
        secondary_path="docs-sr/index.adoc",
        direction="en-sr",
        verdict=Verdict.STRUCTURAL_ONLY,
        strategy=Strategy.STRUCTURE_ALIGN,
        state=state,
    )


class TestVerdict:
    def test_cost_order(self):
        ordered = sorted(Verdict, key=lambda v: v.rank)
        assert ordered == [
            Verdict.NO_CHANGES,
            Verdict.STRUCTURAL_ONLY,
            Verdict.CODE_ONLY,
            Verdict.TEXT_AND_STRUCTURE,
        ]

    def test_only_text_edits_rank_above_code(self):
        assert Verdict.CODE_ONLY.rank < Verdict.TEXT_AND_STRUCTURE.rank
        assert Verdict.NO_CHANGES.rank == 0


class TestSyncDecision:
    @pytest.mark.parametrize(
        "state", [PipelineState.NO_OP, PipelineState.ACCEPTED, PipelineState.ABORTED]
    )
    def test_terminal_states_finish(self, state):
        assert _decision(state).finished

    @pytest.mark.parametrize(
        "state",
        [
            PipelineState.CLASSIFYING,
            PipelineState.DETERMINISTIC_SYNC,
            PipelineState.EXTERNAL_TRANSLATE,
            PipelineState.VALIDATING,
            PipelineState.RETRY_STRICTER,
        ],
    )
    def test_intermediate_states_do_not(self, state):
        assert not _decision(state).finished

    def test_frozen(self):
        decision = _decision(PipelineState.ACCEPTED)
        with pytest.raises(ValueError):
            decision.state = PipelineState.ABORTED
