"""Unit tests for capture backends (OpenCV and mss mocked)."""

from unittest.mock import MagicMock, patch

import numpy as np
import pytest

from image_ocr.capture import backends
from image_ocr.capture.backends import CameraHandle, ScreenHandle, create_handle
from image_ocr.core.errors import StreamOpenError


@pytest.fixture
def mock_cv2():
    """Mock cv2 module with the constants the camera handle uses."""
    mock = MagicMock()
    mock.CAP_PROP_FRAME_WIDTH = 3
    mock.CAP_PROP_FRAME_HEIGHT = 4
    mock.CAP_V4L2 = 200
    mock.COLOR_BGRA2BGR = 5

    cap = MagicMock()
    cap.isOpened.return_value = True
    cap.read.return_value = (True, np.zeros((720, 1280, 3), dtype=np.uint8))
    cap.get.side_effect = lambda prop: {3: 1280.0, 4: 720.0}.get(prop, 0.0)
    mock.VideoCapture.return_value = cap

    with patch.object(backends, "cv2", mock), patch.object(backends.time, "sleep"):
        yield mock


class TestCreateHandle:

    def test_camera_prefix(self):
        handle = create_handle("camera:/dev/video2", (1920, 1080))
        assert isinstance(handle, CameraHandle)
        assert handle.device_id == "camera:/dev/video2"

    def test_screen_prefix(self):
        handle = create_handle("screen:1", (1920, 1080))
        assert isinstance(handle, ScreenHandle)

    def test_bad_screen_number(self):
        with pytest.raises(StreamOpenError):
            create_handle("screen:primary", (1920, 1080))

    def test_bare_identifier_is_camera(self):
        assert isinstance(create_handle("0", (640, 480)), CameraHandle)


class TestCameraHandle:

    def test_open_requests_ideal_resolution(self, mock_cv2):
        handle = CameraHandle("camera:0", "0", (1920, 1080))

        handle.open()

        cap = mock_cv2.VideoCapture.return_value
        assert mock_cv2.VideoCapture.call_args[0][0] == 0
        cap.set.assert_any_call(3, 1920)
        cap.set.assert_any_call(4, 1080)
        # Degrades to what the device supports
        assert handle.resolution == (1280, 720)

    def test_open_failure_raises(self, mock_cv2):
        mock_cv2.VideoCapture.return_value.isOpened.return_value = False
        handle = CameraHandle("camera:5", "5", (1920, 1080))

        with pytest.raises(StreamOpenError, match="could not be opened"):
            handle.open()
        mock_cv2.VideoCapture.return_value.release.assert_called_once()

    def test_no_frames_after_warmup_raises(self, mock_cv2):
        cap = mock_cv2.VideoCapture.return_value
        cap.read.return_value = (False, None)
        handle = CameraHandle("camera:0", "0", (1920, 1080))

        with pytest.raises(StreamOpenError, match="no frames"):
            handle.open()
        assert cap.read.call_count == CameraHandle.WARMUP_ATTEMPTS

    def test_read_and_stop(self, mock_cv2):
        handle = CameraHandle("camera:0", "0", (1920, 1080))
        handle.open()

        assert handle.read().shape == (720, 1280, 3)
        handle.stop()

        mock_cv2.VideoCapture.return_value.release.assert_called_once()
        assert handle.read() is None


class TestScreenHandle:

    @pytest.fixture
    def grabber(self):
        grabber = MagicMock()
        grabber.monitors = [
            {"left": 0, "top": 0, "width": 800, "height": 600},
            {"left": 0, "top": 0, "width": 800, "height": 600},
        ]
        grabber.grab.return_value = np.zeros((600, 800, 4), dtype=np.uint8)
        with patch.object(backends.mss, "mss", return_value=grabber):
            yield grabber

    def test_open_and_read(self, grabber):
        handle = ScreenHandle("screen:1", 1)

        handle.open()
        frame = handle.read()

        assert handle.resolution == (800, 600)
        assert frame.shape == (600, 800, 3)
        grabber.grab.assert_called_once_with(grabber.monitors[1])

    def test_unknown_monitor(self, grabber):
        handle = ScreenHandle("screen:4", 4)

        with pytest.raises(StreamOpenError, match="no screen number 4"):
            handle.open()
        grabber.close.assert_called_once()

    def test_stop_closes_grabber(self, grabber):
        handle = ScreenHandle("screen:1", 1)
        handle.open()

        handle.stop()

        grabber.close.assert_called_once()
        assert handle.read() is None
