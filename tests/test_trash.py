"""Tests for the trash adapter."""

from unittest.mock import patch

from diskscope.trash import move_to_trash


class TestMoveToTrash:
    def test_success(self, tmp_path):
        target = tmp_path / "file"
        with patch("diskscope.trash.send2trash") as send:
            assert move_to_trash(str(target)) == (True, None)
        send.assert_called_once_with(str(target))

    def test_failure_returns_message(self, tmp_path):
        with patch("diskscope.trash.send2trash", side_effect=PermissionError("Operation not permitted")):
            success, error = move_to_trash(str(tmp_path / "file"))

        assert not success
        assert error == "Operation not permitted"

    def test_missing_file(self, tmp_path):
        success, error = move_to_trash(str(tmp_path / "does-not-exist"))
        assert not success
        assert error
