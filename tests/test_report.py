import pytest

from deltalocate.delta_header import DeltaInfo, FileTypeHeader
from deltalocate.errors import AdapterDecodeFailure
from deltalocate.report import format_header_report, parse_header_report, write_sidecar_reports


def _info():
    return DeltaInfo(
        file_time=133497600000000000,
        version=1,
        code=0x8,
        flags=0,
        target_size=0x5400,
        hash_algorithm=0x800C,
        hash=bytes.fromhex("00ff10ab"),
        header_info_size=96,
        is_pa31=True,
        file_type_header=FileTypeHeader(
            image_base=0x180000000,
            global_pointer=0,
            time_stamp=0x5F5E1000,
            rift_table=[(4096, 1024), (12288, 9216)],
            cli_metadata={"StartOffset": 512, "Size": 4096},
        ),
    )


def test_report_layout():
    text = format_header_report(_info())
    assert text.startswith("### Header\n")
    assert "TargetSize: 21504" in text
    assert "Hash: 00FF10AB" in text
    assert "### FileTypeHeader" in text
    assert "RiftTable: 4096,1024;12288,9216" in text
    assert "### CliMetadata" in text
    assert "StartOffset: 512" in text


def test_report_without_file_type_header_stops_after_header():
    text = format_header_report(DeltaInfo(code=0x1, target_size=10))
    assert "### FileTypeHeader" not in text
    assert "Code: 0x1" in text


def test_missing_rift_table_reads_none():
    info = DeltaInfo(target_size=10, file_type_header=FileTypeHeader(time_stamp=5))
    text = format_header_report(info)
    assert "RiftTable: (none)" in text
    assert parse_header_report(text.encode()).file_type_header.rift_table is None


def test_parse_reads_back_what_format_writes():
    info = _info()
    assert parse_header_report(format_header_report(info).encode("utf-8")) == info


def test_parse_rejects_other_files():
    with pytest.raises(AdapterDecodeFailure):
        parse_header_report(b"PA30\x00\x01\x02")
    with pytest.raises(AdapterDecodeFailure):
        parse_header_report(b"\xff\xfe\x00")
    with pytest.raises(AdapterDecodeFailure):
        parse_header_report(b"### Header\nTargetSize: lots\n")


def test_write_sidecar_reports(tmp_path):
    patch_dir = tmp_path / "amd64_comp" / "f"
    patch_dir.mkdir(parents=True)
    (patch_dir / "a.dll").write_bytes(format_header_report(_info()).encode())
    (patch_dir / "junk.bin").write_bytes(b"not a delta")
    (tmp_path / "amd64_comp" / "r").mkdir()
    (tmp_path / "amd64_comp" / "r" / "b.dll").write_bytes(format_header_report(_info()).encode())

    assert write_sidecar_reports(tmp_path, parse_header_report) == 1
    report = patch_dir / "a.dll.dd.txt"
    assert report.read_text(encoding="utf-8") == format_header_report(_info())
    assert not (patch_dir / "junk.bin.dd.txt").exists()
    assert not (tmp_path / "amd64_comp" / "r" / "b.dll.dd.txt").exists()

    with pytest.raises(FileExistsError):
        write_sidecar_reports(tmp_path, parse_header_report)


def test_write_sidecar_reports_missing_root(tmp_path):
    with pytest.raises(FileNotFoundError):
        write_sidecar_reports(tmp_path / "nope", parse_header_report)


def test_empty_rift_table_reads_back_empty():
    info = DeltaInfo(target_size=10, file_type_header=FileTypeHeader(time_stamp=5, rift_table=[]))
    parsed = parse_header_report(format_header_report(info).encode())
    assert parsed.file_type_header.rift_table == []
    assert parsed == info
