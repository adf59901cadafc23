from __future__ import annotations

import os
from pathlib import Path

import pytest

from pathreg.core import AnchorNotFound, BlockPatcher, PathBlock, PersistError

SAMPLE = (
    "logLevel: info\n"
    "rtspAddress: :8554\n"
    "\n"
    "paths:\n"
    "  cam2:\n"
    "    source: rtsp://10.0.0.2/live\n"
    "    sourceOnDemand: yes\n"
    "  all:\n"
    "    source: publisher\n"
)


def _config(tmp_path: Path, text: str = SAMPLE) -> Path:
    path = tmp_path / "relay.yml"
    with open(path, "w", encoding="utf-8", newline="") as f:
        f.write(text)
    return path


def _read(path: Path) -> str:
    with open(path, "r", encoding="utf-8", newline="") as f:
        return f.read()


def test_block_renders_three_lines_in_relay_format() -> None:
    block = PathBlock(name="cam1", source="rtsp://1.2.3.4/live")
    assert block.render() == "  cam1:\n    source: rtsp://1.2.3.4/live\n    sourceOnDemand: yes\n"
    assert len(block.lines()) == PathBlock.LINE_COUNT


def test_insert_goes_directly_after_anchor(tmp_path: Path) -> None:
    path = _config(tmp_path)
    patcher = BlockPatcher(path)

    patcher.insert_after_anchor(PathBlock(name="cam1", source="rtsp://1.2.3.4/live"))

    lines = _read(path).splitlines()
    anchor = lines.index("paths:")
    assert lines[anchor + 1 : anchor + 4] == [
        "  cam1:",
        "    source: rtsp://1.2.3.4/live",
        "    sourceOnDemand: yes",
    ]
    # Untouched entries keep their order below the new block.
    assert lines[anchor + 4] == "  cam2:"
    assert _read(path).replace(PathBlock(name="cam1", source="rtsp://1.2.3.4/live").render(), "") == SAMPLE


def test_insert_without_anchor_fails_and_leaves_file(tmp_path: Path) -> None:
    text = "logLevel: info\nrtspAddress: :8554\n"
    path = _config(tmp_path, text)

    with pytest.raises(AnchorNotFound):
        BlockPatcher(path).insert_after_anchor(PathBlock(name="cam1", source="rtsp://x"))

    assert _read(path) == text


def test_anchor_must_be_the_whole_line(tmp_path: Path) -> None:
    # "somepaths:" would match a naive substring search.
    text = "somepaths: 1\npaths:\n"
    path = _config(tmp_path, text)

    BlockPatcher(path).insert_after_anchor(PathBlock(name="cam1", source="rtsp://x"))

    assert _read(path) == "somepaths: 1\npaths:\n  cam1:\n    source: rtsp://x\n    sourceOnDemand: yes\n"


def test_insert_after_unterminated_anchor(tmp_path: Path) -> None:
    path = _config(tmp_path, "paths:")

    BlockPatcher(path).insert_after_anchor(PathBlock(name="cam1", source="rtsp://x"))

    assert _read(path) == "paths:\n  cam1:\n    source: rtsp://x\n    sourceOnDemand: yes\n"


def test_crlf_files_keep_crlf(tmp_path: Path) -> None:
    path = _config(tmp_path, "a: 1\r\npaths:\r\n  all:\r\n")

    patcher = BlockPatcher(path)
    patcher.insert_after_anchor(PathBlock(name="cam1", source="rtsp://x"))

    assert _read(path) == "a: 1\r\npaths:\r\n  cam1:\r\n    source: rtsp://x\r\n    sourceOnDemand: yes\r\n  all:\r\n"

    assert patcher.delete_named_block("cam1") is True
    assert _read(path) == "a: 1\r\npaths:\r\n  all:\r\n"


def test_delete_removes_exactly_the_named_block(tmp_path: Path) -> None:
    path = _config(tmp_path)
    patcher = BlockPatcher(path)
    patcher.insert_after_anchor(PathBlock(name="cam1", source="rtsp://1.2.3.4/live"))

    assert patcher.delete_named_block("cam1") is True
    assert _read(path) == SAMPLE


def test_delete_unknown_name_is_a_noop(tmp_path: Path) -> None:
    path = _config(tmp_path)
    before = os.stat(path).st_mtime_ns

    assert BlockPatcher(path).delete_named_block("nope") is False

    assert _read(path) == SAMPLE
    assert os.stat(path).st_mtime_ns == before


def test_delete_does_not_match_name_inside_source(tmp_path: Path) -> None:
    path = _config(tmp_path)
    patcher = BlockPatcher(path)
    patcher.insert_after_anchor(PathBlock(name="other", source="rtsp://host/cam9"))

    # "cam9" only appears inside a source url, never as a block name.
    assert patcher.delete_named_block("cam9") is False
    assert patcher.has_named_block("other")


def test_delete_ignores_keys_above_the_anchor(tmp_path: Path) -> None:
    text = "  cam1:\npaths:\n"
    path = _config(tmp_path, text)

    assert BlockPatcher(path).delete_named_block("cam1") is False
    assert _read(path) == text


def test_duplicate_names_delete_first_match_only(tmp_path: Path) -> None:
    text = (
        "paths:\n"
        "  cam1:\n    source: rtsp://a\n    sourceOnDemand: yes\n"
        "  cam1:\n    source: rtsp://b\n    sourceOnDemand: yes\n"
    )
    path = _config(tmp_path, text)

    assert BlockPatcher(path).delete_named_block("cam1") is True

    assert _read(path) == "paths:\n  cam1:\n    source: rtsp://b\n    sourceOnDemand: yes\n"


def test_delete_near_end_of_file_is_clamped(tmp_path: Path) -> None:
    path = _config(tmp_path, "paths:\n  cam1:\n    source: rtsp://a\n")

    assert BlockPatcher(path).delete_named_block("cam1") is True
    assert _read(path) == "paths:\n"


def test_failed_replace_leaves_file_untouched(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    path = _config(tmp_path)
    patcher = BlockPatcher(path)

    def _boom(src: str, dst: object) -> None:
        raise OSError("disk full")

    monkeypatch.setattr("pathreg.core.patcher.os.replace", _boom)

    with pytest.raises(PersistError):
        patcher.insert_after_anchor(PathBlock(name="cam1", source="rtsp://x"))
    with pytest.raises(PersistError):
        patcher.delete_named_block("cam2")

    assert _read(path) == SAMPLE
    # No temporary files are left behind.
    assert sorted(p.name for p in tmp_path.iterdir()) == ["relay.yml"]


def test_failed_fsync_mid_write_leaves_file_untouched(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    path = _config(tmp_path)

    def _boom(fd: int) -> None:
        raise OSError("I/O error")

    monkeypatch.setattr("pathreg.core.patcher.os.fsync", _boom)

    with pytest.raises(PersistError):
        BlockPatcher(path).insert_after_anchor(PathBlock(name="cam1", source="rtsp://x"))

    assert _read(path) == SAMPLE
    assert sorted(p.name for p in tmp_path.iterdir()) == ["relay.yml"]


def test_missing_file_is_a_persist_error(tmp_path: Path) -> None:
    patcher = BlockPatcher(tmp_path / "missing.yml")

    with pytest.raises(PersistError):
        patcher.insert_after_anchor(PathBlock(name="cam1", source="rtsp://x"))
    with pytest.raises(PersistError):
        patcher.delete_named_block("cam1")


def test_rewrite_keeps_file_mode(tmp_path: Path) -> None:
    path = _config(tmp_path)
    os.chmod(path, 0o640)

    BlockPatcher(path).insert_after_anchor(PathBlock(name="cam1", source="rtsp://x"))

    assert os.stat(path).st_mode & 0o777 == 0o640


def test_custom_anchor_pattern(tmp_path: Path) -> None:
    path = _config(tmp_path, "streams:  # managed\n")

    BlockPatcher(path, anchor_pattern=r"^streams:").insert_after_anchor(PathBlock(name="cam1", source="rtsp://x"))

    assert _read(path).startswith("streams:  # managed\n  cam1:\n")


def test_unicode_line_separators_do_not_split_lines(tmp_path: Path) -> None:
    # \u2028, \x85 and \x0c are line breaks for str.splitlines but not for the file.
    text = "paths:\n  all:\n    source: rtsp://a\u2028b\x85c\x0cd\n"
    path = _config(tmp_path, text)
    patcher = BlockPatcher(path)

    patcher.insert_after_anchor(PathBlock(name="cam2", source="rtsp://y"))
    # The block itself carries a separator; it must still span exactly three lines.
    patcher.insert_after_anchor(PathBlock(name="cam1", source="rtsp://x/a\u2028b"))
    assert patcher.delete_named_block("cam1") is True

    assert _read(path) == "paths:\n  cam2:\n    source: rtsp://y\n    sourceOnDemand: yes\n" + text[len("paths:\n") :]

    assert patcher.delete_named_block("cam2") is True
    assert _read(path) == text


def test_symlinked_config_stays_a_symlink(tmp_path: Path) -> None:
    real = _config(tmp_path)
    link = tmp_path / "link.yml"
    link.symlink_to(real)

    patcher = BlockPatcher(link)
    patcher.insert_after_anchor(PathBlock(name="cam1", source="rtsp://x"))

    assert link.is_symlink()
    assert "  cam1:\n" in _read(real)

    assert patcher.delete_named_block("cam1") is True
    assert link.is_symlink()
    assert _read(real) == SAMPLE
