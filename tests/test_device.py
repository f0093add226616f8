from unittest.mock import MagicMock, patch

import pytest

from bootimagetool.device import DeviceState, detect_slot_suffix
from bootimagetool.errors import DeviceStateUnusable, ShellError, ToolError
from bootimagetool.models import PatchStatus, SlotPhase
from bootimagetool.shell import AdbRootShell

from fakes import BLOCK_DIR, FakeRootShell, make_boot_image


class TestDeviceState:
    def test_ab_device(self, shell, store, config):
        listener = MagicMock()
        with DeviceState(shell, store, config, listener) as device:
            assert list(device.slots) == ["boot_a", "boot_b"]
            assert device.active_slot == "boot_a"
            assert device.slots["boot_a"].record.patch_status == PatchStatus.PATCHED
            assert device.slots["boot_b"].record.patch_status == PatchStatus.STOCK
            assert all(s.record.phase == SlotPhase.READY for s in device.slots.values())
        assert listener.call_count == 2

    def test_non_ab_device(self, store, config):
        shell = FakeRootShell({f"{BLOCK_DIR}/boot": make_boot_image()}, props={})

        with DeviceState(shell, store, config) as device:
            assert list(device.slots) == ["boot"]
            assert device.active_slot == "boot"
            assert device.get_slot("boot").record.patch_status == PatchStatus.STOCK

    def test_unclassifiable_device_is_unusable(self, store, config):
        with pytest.raises(DeviceStateUnusable):
            DeviceState(FakeRootShell(), store, config)

    @pytest.mark.parametrize("key, expected", [("a", "boot_a"), ("_b", "boot_b"), ("BOOT_B", "boot_b")])
    def test_get_slot(self, shell, store, config, key, expected):
        with DeviceState(shell, store, config) as device:
            assert device.get_slot(key).name == expected

    def test_get_unknown_slot(self, shell, store, config):
        with DeviceState(shell, store, config) as device:
            with pytest.raises(ToolError):
                device.get_slot("c")

    def test_refresh_returns_all_records(self, shell, store, config):
        with DeviceState(shell, store, config) as device:
            records = device.refresh()
        assert set(records) == {"boot_a", "boot_b"}
        assert records["boot_a"].sha1 != records["boot_b"].sha1


@pytest.mark.parametrize("value, expected", [("_a", "_a"), ("_b", "_b"), ("", None), ("_c", None)])
def test_detect_slot_suffix(value, expected):
    assert detect_slot_suffix(FakeRootShell(props={"ro.boot.slot_suffix": value})) == expected


class TestAdbConnect:
    def test_retries_until_device_ready(self):
        mock_device = MagicMock()
        mock_device.serial = "ABC123"
        mock_device.get_state.return_value = "device"

        with patch(
            "adbutils.adb.device_list", side_effect=[[], [], [mock_device]]
        ), patch("bootimagetool.shell.time.sleep", return_value=None) as sleep:
            shell = AdbRootShell.connect(retries=5)

        assert shell.device is mock_device
        assert sleep.call_count == 2

    def test_serial_filter(self):
        other = MagicMock()
        other.serial = "OTHER"
        other.get_state.return_value = "device"

        with patch("adbutils.adb.device_list", return_value=[other]), patch(
            "bootimagetool.shell.time.sleep", return_value=None
        ):
            with pytest.raises(ShellError):
                AdbRootShell.connect("ABC123", retries=3)

    def test_unauthorized_device_is_skipped(self):
        mock_device = MagicMock()
        mock_device.serial = "ABC123"
        mock_device.get_state.return_value = "unauthorized"

        with patch("adbutils.adb.device_list", return_value=[mock_device]), patch(
            "bootimagetool.shell.time.sleep", return_value=None
        ):
            with pytest.raises(ShellError):
                AdbRootShell.connect(retries=2)
