from __future__ import annotations

"""
Plain-text header reports for delta patches.

A report lists the container header, then the PE file-type header (with
the rift table) and the CLI metadata when the patch has them::

    ### Header
    FileTime: 133497600000000000
    ...
    ### FileTypeHeader
    TimeStamp: 1700000000
    RiftTable: 4096,1024;8192,5120

Reports are written next to patches (``<file>.dd.txt``) for inspection.
They also carry everything the locator needs, so :func:`parse_header_report`
doubles as a decoder: a tree of reports can be resolved without a codec.
"""

from pathlib import Path
from typing import Dict, List, Optional, Tuple

from loguru import logger

from .config import REPORT_SUFFIX
from .constants import PATCH_DIR_NAME
from .delta_header import Decoder, DeltaInfo, FileTypeHeader
from .errors import AdapterDecodeFailure

HEADER_SECTION = "Header"
FILE_TYPE_SECTION = "FileTypeHeader"
CLI_SECTION = "CliMetadata"

# (label, DeltaInfo attribute, kind)
_HEADER_FIELDS: List[Tuple[str, str, str]] = [
    ("FileTime", "file_time", "int"),
    ("Version", "version", "int"),
    ("Code", "code", "hex"),
    ("Flags", "flags", "hex"),
    ("TargetSize", "target_size", "int"),
    ("HashAlgorithm", "hash_algorithm", "int"),
    ("Hash", "hash", "bytes"),
    ("HeaderInfoSize", "header_info_size", "int"),
    ("IsPa31", "is_pa31", "bool"),
    ("DeltaClientMinVersion", "delta_client_min_version", "int"),
    ("AdditionalHash", "additional_hash", "bytes"),
]

_FILE_TYPE_FIELDS: List[Tuple[str, str, str]] = [
    ("ImageBase", "image_base", "int"),
    ("GlobalPointer", "global_pointer", "int"),
    ("TimeStamp", "time_stamp", "int"),
    ("RiftTable", "rift_table", "rift"),
]


def _format_value(value, kind: str) -> str:
    if kind == "hex":
        return hex(value)
    if kind == "bytes":
        return value.hex().upper()
    if kind == "rift":
        if value is None:
            return "(none)"
        return ";".join(f"{k},{v}" for k, v in value)
    return str(value)


def _parse_value(text: str, kind: str):
    if kind in ("int", "hex"):
        return int(text, 0)
    if kind == "bytes":
        return bytes.fromhex(text)
    if kind == "bool":
        if text not in ("True", "False"):
            raise ValueError(f"Not a boolean: {text!r}")
        return text == "True"
    if kind == "rift":
        if text == "(none)":
            return None
        if not text:
            return []
        pairs = []
        for entry in text.split(";"):
            k, _, v = entry.partition(",")
            pairs.append((int(k), int(v)))
        return pairs
    return text


def format_header_report(info: DeltaInfo) -> str:
    lines = [f"### {HEADER_SECTION}"]
    for label, attr, kind in _HEADER_FIELDS:
        lines.append(f"{label}: {_format_value(getattr(info, attr), kind)}")

    fth = info.file_type_header
    if fth is not None:
        lines += ["", f"### {FILE_TYPE_SECTION}"]
        for label, attr, kind in _FILE_TYPE_FIELDS:
            lines.append(f"{label}: {_format_value(getattr(fth, attr), kind)}")

        if fth.cli_metadata is not None:
            lines += ["", f"### {CLI_SECTION}"]
            for key, value in fth.cli_metadata.items():
                lines.append(f"{key}: {value}")

    return "\n".join(lines) + "\n"


def _split_sections(text: str) -> Dict[str, Dict[str, str]]:
    sections: Dict[str, Dict[str, str]] = {}
    current: Optional[Dict[str, str]] = None
    for line in text.splitlines():
        line = line.strip()
        if not line:
            continue
        if line.startswith("### "):
            current = sections.setdefault(line[4:].strip(), {})
            continue
        if current is None:
            raise ValueError(f"Field outside of a section: {line!r}")
        key, sep, value = line.partition(":")
        if not sep:
            raise ValueError(f"Malformed line: {line!r}")
        current[key.strip()] = value.strip()
    return sections


def parse_header_report(raw: bytes) -> DeltaInfo:
    """Decoder for header reports; anything else raises AdapterDecodeFailure."""
    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise AdapterDecodeFailure("Not a header report") from e
    if not text.startswith(f"### {HEADER_SECTION}"):
        raise AdapterDecodeFailure("Not a header report")

    try:
        sections = _split_sections(text)
        header = sections[HEADER_SECTION]
        fields = {attr: _parse_value(header[label], kind) for label, attr, kind in _HEADER_FIELDS if label in header}

        fth = None
        if FILE_TYPE_SECTION in sections:
            ft = sections[FILE_TYPE_SECTION]
            ft_fields = {attr: _parse_value(ft[label], kind) for label, attr, kind in _FILE_TYPE_FIELDS if label in ft}
            if CLI_SECTION in sections:
                ft_fields["cli_metadata"] = {k: int(v, 0) for k, v in sections[CLI_SECTION].items()}
            fth = FileTypeHeader(**ft_fields)
        return DeltaInfo(file_type_header=fth, **fields)
    except ValueError as e:
        # pydantic's ValidationError is a ValueError as well
        raise AdapterDecodeFailure(f"Malformed header report: {e}") from e


def header_report_for_file(path: Path, decoder: Decoder) -> str:
    return format_header_report(decoder(Path(path).read_bytes()))


def _write_reports_under(directory: Path, decoder: Decoder) -> int:
    written = 0
    for path in sorted(p for p in directory.rglob("*") if p.is_file()):
        if path.name.endswith(REPORT_SUFFIX):
            continue
        report_path = path.with_name(path.name + REPORT_SUFFIX)
        if report_path.exists():
            raise FileExistsError(f"{report_path} already exists")
        try:
            report = header_report_for_file(path, decoder)
        except Exception as e:
            logger.warning("Cannot decode {}: {}", path, e)
            continue
        report_path.write_text(report, encoding="utf-8")
        written += 1
    return written


def write_sidecar_reports(root: Path, decoder: Decoder) -> int:
    """
    Write ``<file>.dd.txt`` next to every file under ``<root>/<component>/f``.

    Returns the number of reports written.  An existing report aborts the run.
    """
    root = Path(root)
    if not root.is_dir():
        raise FileNotFoundError(f"Directory not found: {root}")

    written = 0
    for component in sorted(p for p in root.iterdir() if p.is_dir()):
        patch_dir = component / PATCH_DIR_NAME
        if patch_dir.is_dir():
            written += _write_reports_under(patch_dir, decoder)

    logger.info("{} information files were created", written)
    return written
