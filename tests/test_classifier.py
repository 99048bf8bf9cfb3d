import pytest

from src.classifier import ChangeClassifier
from src.models import Change, EditKind, Position


def move(node_id="1", dragging=None, x=0.0, y=0.0):
    return Change(type="position", id=node_id, position=Position(x, y), dragging=dragging)


@pytest.fixture
def classifier():
    return ChangeClassifier()


class TestChangeClassifier:
    def test_structural_changes_are_discrete(self, classifier):
        assert classifier.classify([Change(type="remove", id="1")]) is EditKind.DISCRETE
        assert classifier.classify(edge_changes=[Change(type="add", id="e1")]) is EditKind.DISCRETE

    def test_selection_is_continuous(self, classifier):
        assert classifier.classify([Change(type="select", id="1", selected=True)]) is EditKind.CONTINUOUS
        assert classifier.classify([Change(type="dimensions", id="1", width=10, height=10)]) is EditKind.CONTINUOUS

    def test_empty_batch_is_continuous(self, classifier):
        assert classifier.classify() is EditKind.CONTINUOUS

    def test_drag_gesture_yields_one_discrete_frame(self, classifier):
        kinds = [classifier.classify([move(dragging=True, x=i)]) for i in range(5)]
        kinds.append(classifier.classify([move(dragging=False, x=5)]))

        assert kinds[0] is EditKind.DISCRETE
        assert all(k is EditKind.CONTINUOUS for k in kinds[1:])
        assert not classifier.gesture_open

    def test_two_drags_give_two_entries(self, classifier):
        first = [classifier.classify([move(dragging=d)]) for d in (True, True, False)]
        second = [classifier.classify([move(dragging=d)]) for d in (True, False)]
        assert first.count(EditKind.DISCRETE) == 1
        assert second.count(EditKind.DISCRETE) == 1

    def test_keyboard_move_is_discrete(self, classifier):
        assert classifier.classify([move(dragging=None)]) is EditKind.DISCRETE

    def test_selection_during_drag_stays_continuous(self, classifier):
        classifier.classify([move(dragging=True)])
        assert classifier.classify([Change(type="select", id="2", selected=True)]) is EditKind.CONTINUOUS
        assert classifier.gesture_open

    def test_structural_change_closes_gesture(self, classifier):
        classifier.classify([move(dragging=True)])
        classifier.classify([Change(type="remove", id="1")])
        assert not classifier.gesture_open

    def test_reset_closes_gesture(self, classifier):
        classifier.classify([move(dragging=True)])
        classifier.reset()
        assert classifier.classify([move(dragging=True)]) is EditKind.DISCRETE
