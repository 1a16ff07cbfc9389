import pytest

from deltalocate.discover import discover_patches, patch_name


def _touch(path, data=b"x"):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)


def test_only_files_under_f_directories(tmp_path):
    _touch(tmp_path / "amd64_comp" / "f" / "a.dll", b"aaa")
    _touch(tmp_path / "amd64_comp" / "f" / "sub" / "c.dll")
    _touch(tmp_path / "amd64_comp" / "r" / "b.dll")
    _touch(tmp_path / "top.dll")

    found = {(d.parent_label, d.filename): d.raw for d in discover_patches(tmp_path)}
    assert set(found) == {("amd64_comp", "a.dll"), ("amd64_comp/f", "c.dll")}
    assert found[("amd64_comp", "a.dll")] == b"aaa"


def test_mui_resources_are_skipped(tmp_path):
    _touch(tmp_path / "x" / "f" / "a.dll.mui")
    _touch(tmp_path / "x" / "f" / "a.dll.mui.dd.txt")
    _touch(tmp_path / "x" / "f" / "a.dll")
    assert [d.filename for d in discover_patches(tmp_path)] == ["a.dll"]


def test_reports_are_named_after_their_patch(tmp_path):
    _touch(tmp_path / "x" / "f" / "ntoskrnl.exe.dd.txt")
    assert [d.filename for d in discover_patches(tmp_path)] == ["ntoskrnl.exe"]
    assert patch_name("plain.dll") == "plain.dll"
    assert patch_name(".dd.txt") == ".dd.txt"


def test_missing_root_is_fatal(tmp_path):
    with pytest.raises(FileNotFoundError):
        list(discover_patches(tmp_path / "missing"))
