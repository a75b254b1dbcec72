"""
Tests for the orbit camera rig.
"""

import math

import numpy as np
import pytest

from particlescape.config import YAW_STEP, AUTO_ROTATE_RATE, ZOOM_MIN, ZOOM_MAX
from particlescape.control import MappedParameters
from particlescape.sim.camera import CameraRig, CameraState, look_at


@pytest.fixture
def rig():
    return CameraRig(CameraState())


class TestZoom:

    def test_clamped_low(self, rig):
        assert rig.scroll(-100000) == ZOOM_MIN

    def test_clamped_high(self, rig):
        assert rig.scroll(100000) == ZOOM_MAX

    def test_position_distance_is_zoom(self, rig):
        rig.state.yaw, rig.state.pitch, rig.state.roll = 0.7, -0.3, 0.2
        rig.scroll(200)
        assert np.linalg.norm(rig.position()) == pytest.approx(rig.state.zoom_radius)


class TestRotation:

    def test_auto_rotate(self, rig):
        for _ in range(10):
            rig.step()
        assert rig.state.yaw == pytest.approx(10 * AUTO_ROTATE_RATE)

    def test_auto_rotate_disabled(self):
        rig = CameraRig(CameraState(auto_rotate=False))
        rig.step()
        assert rig.state.yaw == 0.0

    def test_drag_ignored_when_disabled(self, rig):
        assert rig.pointer_drag(50) is False
        assert rig.state.target_yaw == 0.0

    def test_drag_lags_toward_target(self, rig):
        rig.set_pointer_control(True)
        assert rig.pointer_drag(100) is True
        target = rig.state.target_yaw
        rig.step()
        assert rig.state.yaw == pytest.approx(target * 0.1)
        for _ in range(200):
            rig.step()
        assert rig.state.yaw == pytest.approx(target, abs=1e-6)

    def test_end_drag_resumes_auto(self, rig):
        rig.set_pointer_control(True)
        rig.pointer_drag(10)
        rig.end_drag()
        yaw = rig.state.yaw
        rig.step()
        assert rig.state.yaw == pytest.approx(yaw + AUTO_ROTATE_RATE)

    def test_yaw_stays_bounded(self, rig):
        rig.state.yaw = 4 * math.pi
        rig.step()
        assert abs(rig.state.yaw) <= 4 * math.pi


class TestGestures:

    def test_tilt_and_lift(self, rig):
        rig.apply_gestures(MappedParameters(tilt=0.3, lift=-0.2))
        assert rig.state.pitch == 0.3
        assert rig.state.roll == -0.2

    def test_yaw_detent_edge_triggered(self, rig):
        """Holding the rotate pair out of the deadzone steps once."""
        held = MappedParameters(yaw_step=1)
        rig.apply_gestures(held)
        rig.apply_gestures(held)
        rig.apply_gestures(held)
        assert rig.state.yaw == pytest.approx(YAW_STEP)

        rig.apply_gestures(MappedParameters(yaw_step=0))
        rig.apply_gestures(held)
        assert rig.state.yaw == pytest.approx(2 * YAW_STEP)

    def test_yaw_detent_reverse(self, rig):
        rig.apply_gestures(MappedParameters(yaw_step=1))
        rig.apply_gestures(MappedParameters(yaw_step=-1))
        assert rig.state.yaw == pytest.approx(0.0)


class TestViewMatrix:

    def test_eye_maps_to_origin(self, rig):
        rig.state.yaw = 1.1
        rig.state.pitch = 0.4
        view = rig.view_matrix()
        eye = np.append(rig.position(), 1.0)
        np.testing.assert_allclose(view @ eye, [0, 0, 0, 1], atol=1e-9)

    def test_target_straight_ahead(self, rig):
        view = rig.view_matrix()
        np.testing.assert_allclose(view @ np.array([0, 0, 0, 1.0]),
                                   [0, 0, -rig.state.zoom_radius, 1], atol=1e-9)

    def test_look_at_default(self):
        view = look_at([0, 0, 5], [0, 0, 0], [0, 1, 0])
        np.testing.assert_allclose(view[:3, :3], np.identity(3), atol=1e-12)
