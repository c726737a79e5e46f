import pytest

from smart_assign.core.exceptions import EmptyInputError
from smart_assign.models.schemas import AssignmentCriteria
from smart_assign.services.matrix import build_assignment_matrix
from smart_assign.services.scoring import AssignmentScorer
from tests.conftest import NOW


def build(tasks, candidates):
    return build_assignment_matrix(tasks, candidates, AssignmentCriteria(), "medium", NOW, AssignmentScorer())


def test_every_pair_is_scored(sops, team):
    matrix = build(sops, team)

    assert list(matrix) == [t.id for t in sops]
    for sop_id, row in matrix.items():
        assert list(row) == [c.id for c in team]
        assert all(d.sop_id == sop_id for d in row.values())


def test_drafts_match_the_scorer(sops, team):
    matrix = build(sops, team)
    direct = AssignmentScorer().score_assignment(sops[1], team[1], AssignmentCriteria(), "medium", NOW)
    assert matrix["sop-2"]["bruno"] == direct


@pytest.mark.parametrize("tasks_empty", [True, False])
def test_empty_input_is_rejected(sops, team, tasks_empty):
    with pytest.raises(EmptyInputError):
        if tasks_empty:
            build([], team)
        else:
            build(sops, [])
