import json
import logging
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from bootimagetool import main
from bootimagetool.context import TaskContext
from bootimagetool.errors import ToolError
from bootimagetool.registry import CommandRegistry

from fakes import BLOCK_DIR, FakeRootShell, sha1_hex


@pytest.fixture
def log_file(tmp_path):
    return tmp_path / "log" / "run.log"


def _main(log_file, export_dir, *args):
    return main.main(["--log-file", str(log_file), "--export-dir", str(export_dir), *args])


class TestRunTask:
    @pytest.fixture
    def ctx(self, store):
        return TaskContext(store=store, shell_factory=MagicMock())

    def test_unknown_command(self, ctx):
        assert main.run_task("nope", CommandRegistry(), ctx) == 2

    def test_offline_command_does_not_connect(self, ctx):
        reg = CommandRegistry()
        reg.add("hello", lambda c, name="x": f"hi {name}", "Hello", require_device=False)

        assert main.run_task("hello", reg, ctx, extra_kwargs={"name": "y"}) == 0
        ctx.shell_factory.assert_not_called()

    def test_tool_error_is_reported(self, ctx, caplog):
        reg = CommandRegistry()

        def failing(c):
            raise ToolError("broken pipe")

        reg.add("fail", failing, "Fail", require_device=False)

        with caplog.at_level(logging.INFO, logger="bootimagetool"):
            assert main.run_task("fail", reg, ctx) == 1
        assert "broken pipe" in caplog.text

    def test_handler_receives_result(self, ctx):
        reg = CommandRegistry()
        handler = MagicMock()
        reg.add("lines", lambda c: ["a", "b"], "Lines", require_device=False, result_handler=handler)

        main.run_task("lines", reg, ctx)
        handler.assert_called_once_with(["a", "b"])


class TestMain:
    def test_exports_lists_files(self, log_file, export_dir, caplog):
        (export_dir / "boot_0a1b2c3d.img").write_bytes(b"x")
        (export_dir / "notes.txt").write_text("skip")

        with caplog.at_level(logging.INFO, logger="bootimagetool"):
            assert _main(log_file, export_dir, "exports") == 0

        assert "boot_0a1b2c3d.img" in caplog.text
        assert "notes.txt" not in caplog.text
        assert log_file.exists()

    def test_status(self, log_file, export_dir, shell, stock_image, caplog):
        with patch("bootimagetool.main.create_shell", return_value=shell), caplog.at_level(
            logging.INFO, logger="bootimagetool"
        ):
            assert _main(log_file, export_dir, "status") == 0

        assert sha1_hex(stock_image) in caplog.text
        assert "boot_b" in caplog.text

    def test_export(self, log_file, export_dir, shell, stock_image, patched_image):
        with patch("bootimagetool.main.create_shell", return_value=shell):
            assert _main(log_file, export_dir, "export", "a") == 0

        exported = export_dir / f"boot_{sha1_hex(stock_image)[:8]}-patched.img"
        assert exported.read_bytes() == patched_image

    def test_restore(self, log_file, export_dir, shell, stock_image, tmp_path):
        image = tmp_path / "stock.img"
        image.write_bytes(stock_image)

        with patch("bootimagetool.main.create_shell", return_value=shell):
            assert _main(log_file, export_dir, "restore", "a", str(image)) == 0

        assert f"/data/magisk_backup_{sha1_hex(stock_image)}/boot.img.gz" in shell.files

    def test_unknown_slot(self, log_file, export_dir, shell):
        with patch("bootimagetool.main.create_shell", return_value=shell):
            assert _main(log_file, export_dir, "export", "c") == 1

    def test_unusable_device(self, log_file, export_dir):
        with patch("bootimagetool.main.create_shell", return_value=FakeRootShell()):
            assert _main(log_file, export_dir, "status") == 1

    def test_menu_exit(self, log_file, export_dir, shell):
        with patch("bootimagetool.main.create_shell", return_value=shell), patch(
            "bootimagetool.menu.ask_action", return_value=("exit", None)
        ):
            assert _main(log_file, export_dir, "menu") == 0


def test_menu_runs_selected_action(shell, store, tmp_path):
    from bootimagetool import menu

    ctx = TaskContext(store=store, shell_factory=lambda: shell)
    run_task = MagicMock(return_value=0)
    image = tmp_path / "stock.img"

    with patch(
        "bootimagetool.menu.ask_action", side_effect=[("export", "boot_a"), ("restore", "boot_b"), None]
    ), patch("bootimagetool.menu.questionary.path") as path_prompt:
        path_prompt.return_value.ask.return_value = str(image)
        assert menu.main_loop(CommandRegistry(), ctx, run_task) == 0

    assert run_task.call_args_list[0][1]["extra_kwargs"] == {"slot": "boot_a"}
    assert run_task.call_args_list[1][1]["extra_kwargs"] == {"slot": "boot_b", "image": Path(str(image))}


def test_json_validity():
    d = Path(__file__).parent.parent / "bootimagetool"
    for f in d.rglob("*.json"):
        with open(f, "r", encoding="utf-8") as fp:
            json.load(fp)


def test_menu_offers_actions_per_slot(shell, store):
    from bootimagetool import menu

    ctx = TaskContext(store=store, shell_factory=lambda: shell)
    try:
        values = [c.value for c in menu.build_choices(ctx) if getattr(c, "value", None)]
    finally:
        ctx.close()

    assert ("export", "boot_a") in values
    assert ("restore", "boot_b") in values
    assert values[-1] == ("exit", None)
