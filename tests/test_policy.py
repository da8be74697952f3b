"""Tests for the accept/reject policy."""

import numpy as np
import pytest

from helpers import FakeEngine, make_shape

from facefit.policy import decide, resolve
from facefit.tracking import TrackerParams, TrackingSession


def _session():
    return TrackingSession(FakeEngine([(7, make_shape(5))]), TrackerParams())


class TestDecide:
    @pytest.mark.parametrize("confidence,threshold,accepted", [
        (7, 5, True),
        (5, 5, True),
        (4, 5, False),
        (0, 0, True),
        (9, 10, False),
        (10, 10, True),
    ])
    def test_accepts_iff_confidence_reaches_threshold(self, confidence, threshold, accepted):
        decision = decide(confidence, threshold)
        assert decision.accepted is accepted
        assert decision.rejected is not accepted

    def test_records_inputs(self):
        decision = decide(3, 6)
        assert decision.confidence == 3
        assert decision.threshold == 6


class TestResolve:
    def test_accept_keeps_shape(self):
        session = _session()
        shape = np.array([[1.0, 2.0], [3.0, 4.0]])

        decision, result = resolve(session, 8, shape, 5)

        assert decision.accepted
        np.testing.assert_array_equal(result, shape)
        assert session.resets == 0

    def test_reject_discards_shape_and_resets(self):
        session = _session()
        shape = np.array([[1.0, 2.0], [3.0, 4.0]])

        decision, result = resolve(session, 2, shape, 5)

        assert decision.rejected
        assert result.shape == (0, 2)
        assert session.resets == 1

    def test_reject_without_reset(self):
        session = _session()

        _, result = resolve(session, 2, [[1.0, 2.0]], 5, reset_on_reject=False)

        assert len(result) == 0
        assert session.resets == 0

    def test_accept_takes_point_sequences(self):
        _, result = resolve(_session(), 6, [(1.5, 2.5), (3.5, 4.5)], 5)

        assert result.dtype == np.float64
        np.testing.assert_array_equal(result, [[1.5, 2.5], [3.5, 4.5]])

    def test_reject_resets_engine(self):
        engine = FakeEngine([(7, make_shape(5))])
        session = TrackingSession(engine, TrackerParams())
        session.process(np.zeros((10, 10), dtype=np.uint8))

        resolve(session, 1, session.process(np.zeros((10, 10), dtype=np.uint8))[1], 5)

        assert engine.resets == 1
        assert engine.get_shape().shape == (0, 2)
