"""Unit tests for capture device discovery."""

from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from mss.exception import ScreenShotError

from image_ocr.capture import devices
from image_ocr.capture.devices import (
    DeviceDescriptor,
    LinuxCameraScanner,
    OpenCVCameraScanner,
    discover_devices,
    list_devices,
    scan_screens,
)


def _make_video_node(root: Path, name: str, label: str, index: int = 0) -> None:
    node = root / name
    node.mkdir(parents=True)
    (node / "name").write_text(f"{label}\n", encoding="utf-8")
    (node / "index").write_text(f"{index}\n", encoding="utf-8")


class TestDeviceDescriptor:

    def test_screen_and_target(self):
        screen = DeviceDescriptor("screen:2", "Screen 2")
        camera = DeviceDescriptor("camera:/dev/video0", "Webcam")

        assert screen.is_screen
        assert screen.target == "2"
        assert not camera.is_screen
        assert camera.target == "/dev/video0"


class TestLinuxCameraScanner:

    def test_lists_capture_nodes_in_order(self, tmp_path):
        _make_video_node(tmp_path, "video10", "Capture Card")
        _make_video_node(tmp_path, "video0", "HD Webcam")
        _make_video_node(tmp_path, "video1", "HD Webcam", index=1)

        found = LinuxCameraScanner(tmp_path).scan()

        assert found == [
            DeviceDescriptor("camera:/dev/video0", "HD Webcam"),
            DeviceDescriptor("camera:/dev/video10", "Capture Card"),
        ]

    def test_missing_name_gets_generic_label(self, tmp_path):
        (tmp_path / "video3").mkdir()

        found = LinuxCameraScanner(tmp_path).scan()

        assert found == [DeviceDescriptor("camera:/dev/video3", "Camera (/dev/video3)")]

    def test_missing_sysfs_dir(self, tmp_path):
        assert LinuxCameraScanner(tmp_path / "nope").scan() == []


class TestOpenCVCameraScanner:

    def test_probes_until_first_failure(self):
        opened = [True, True, False, True]

        def fake_capture(index, *args):
            cap = MagicMock()
            cap.isOpened.return_value = opened[index]
            return cap

        with patch.object(devices.cv2, "VideoCapture", side_effect=fake_capture) as capture:
            found = OpenCVCameraScanner(max_devices=4).scan()

        assert [d.id for d in found] == ["camera:0", "camera:1"]
        assert found[1].label == "Camera 1"
        assert capture.call_count == 3


class TestScreens:

    def test_scan_screens_skips_virtual_union(self):
        grabber = MagicMock()
        grabber.monitors = [
            {"left": 0, "top": 0, "width": 3840, "height": 1080},
            {"left": 0, "top": 0, "width": 1920, "height": 1080},
            {"left": 1920, "top": 0, "width": 1920, "height": 1080},
        ]
        grabber.__enter__.return_value = grabber

        with patch.object(devices.mss, "mss", return_value=grabber):
            found = scan_screens()

        assert [d.id for d in found] == ["screen:1", "screen:2"]
        assert found[0].label == "Screen 1 (1920x1080)"


class TestListDevices:

    def test_combines_cameras_and_screens(self):
        camera = DeviceDescriptor("camera:0", "Camera 0")
        screen = DeviceDescriptor("screen:1", "Screen 1 (800x600)")
        scanner = MagicMock()
        scanner.scan.return_value = [camera]

        with patch.object(devices, "_camera_scanner", return_value=scanner), \
                patch.object(devices, "scan_screens", return_value=[screen]):
            assert list_devices() == [camera, screen]
            assert list_devices(include_screens=False) == [camera]

    def test_failures_are_logged_not_raised(self):
        scanner = MagicMock()
        scanner.scan.side_effect = OSError("no video subsystem")

        with patch.object(devices, "_camera_scanner", return_value=scanner), \
                patch.object(devices, "scan_screens", side_effect=ScreenShotError("no display")):
            assert list_devices() == []

    @pytest.mark.asyncio
    async def test_discover_devices_runs_off_loop(self):
        camera = DeviceDescriptor("camera:0", "Camera 0")
        with patch.object(devices, "list_devices", return_value=[camera]) as listing:
            assert await discover_devices(include_screens=False) == [camera]
        listing.assert_called_once_with(include_screens=False)
