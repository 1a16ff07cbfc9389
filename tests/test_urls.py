from deltalocate.config import SizeCandidate
from deltalocate.utils.urls import build_symbol_url, candidate_url


def test_build_symbol_url_layout():
    url = build_symbol_url("ntdll.dll", 0x1A2B3C4D, 0x1F0000)
    assert url == "https://msdl.microsoft.com/download/symbols/ntdll.dll/1a2b3c4d1f0000/ntdll.dll"


def test_timestamp_is_padded_size_is_not():
    url = build_symbol_url("a.efi", 0xABC, 0x3000)
    assert url.endswith("/a.efi/00000abc3000/a.efi")


def test_build_symbol_url_is_pure():
    args = ("cdboot_noprompt.efi", 0x5F5E1000, 0x1C000)
    assert build_symbol_url(*args) == build_symbol_url(*args)


def test_candidate_url_matches_build():
    c = SizeCandidate(filename="hal.dll", timestamp=0x12345678, image_size=0x7F000)
    assert candidate_url(c) == build_symbol_url("hal.dll", 0x12345678, 0x7F000)
