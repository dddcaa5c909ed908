"""Tests for the codec, unit conversion, id validation and file helpers."""

from decimal import Decimal
from pathlib import Path

import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from weavegate.codec import (
    Tag,
    encode_base64url,
    decode_base64url,
    buffer_to_base64url,
    base64url_to_buffer,
    encode_tags,
    decode_tags,
    merge_tags,
)
from weavegate.errors import ConversionError, EncodingError, ValidationError
from weavegate.files import (
    calculate_data_size,
    content_type_from_extension,
    create_arweave_url,
    format_file_size,
)
from weavegate.manifest import build_manifest, index_id, manifest_json, parse_manifest, resolve_path
from weavegate.units import ar_to_winston, winston_to_ar
from weavegate.validation import (
    is_valid_address,
    is_valid_transaction_id,
    require_transaction_id,
    transaction_id_issues,
)


VALID_ID = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopq"
OTHER_ID = "B" * 43


def test_base64url_known_vector():
    """Encode/decode a known string."""
    assert encode_base64url("Hello World") == "SGVsbG8gV29ybGQ"
    assert decode_base64url("SGVsbG8gV29ybGQ") == "Hello World"
    print("  [PASS] Base64URL known vector")


def test_base64url_empty_string():
    assert encode_base64url("") == ""
    assert decode_base64url("") == ""
    assert base64url_to_buffer("") == b""
    print("  [PASS] Base64URL empty input")


def test_base64url_roundtrip_special_and_multibyte():
    """Round-trip text that needs URL-safe substitution and multi-byte UTF-8."""
    for text in ["Hello+World/Test=", "héllo wörld ✓", "日本語のテキスト", "🙂 emoji", "a", "ab", "abc"]:
        encoded = encode_base64url(text)
        assert "+" not in encoded and "/" not in encoded and "=" not in encoded
        assert decode_base64url(encoded) == text, f"Round-trip failed for {text!r}"
    print("  [PASS] Base64URL round-trip (special + multi-byte)")


def test_buffer_uses_url_alphabet():
    """Bytes that map to + and / in standard Base64 map to - and _."""
    assert buffer_to_base64url(b"\xfb\xff") == "-_8"
    assert base64url_to_buffer("-_8") == b"\xfb\xff"

    data = bytes(range(256))
    assert base64url_to_buffer(buffer_to_base64url(data)) == data
    print("  [PASS] Buffer Base64URL alphabet")


def test_decode_malformed_input():
    """Impossible lengths and non-UTF-8 payloads raise EncodingError."""
    try:
        decode_base64url("A")
        assert False, "should raise EncodingError"
    except EncodingError:
        pass

    try:
        decode_base64url(buffer_to_base64url(b"\xff\xfe\xfd"))
        assert False, "should raise EncodingError"
    except EncodingError:
        pass

    # EncodingError is still a ValueError for plain callers
    try:
        base64url_to_buffer("Q")
        assert False, "should raise"
    except ValueError:
        pass
    print("  [PASS] Malformed Base64URL rejected")


def test_encode_tags():
    tags = [Tag("Content-Type", "application/json"), Tag("App-Name", "MyApp")]
    encoded = encode_tags(tags)
    assert len(encoded) == 2
    assert encoded[0].name != "Content-Type"
    assert encoded[0].value != "application/json"
    assert encoded[0] == Tag("Q29udGVudC1UeXBl", "YXBwbGljYXRpb24vanNvbg")
    print("  [PASS] Tag encoding")


def test_decode_tags_from_wire_mappings():
    """Gateway responses carry tags as plain mappings."""
    decoded = decode_tags([{"name": "Q29udGVudC1UeXBl", "value": "YXBwbGljYXRpb24vanNvbg"}])
    assert decoded == [Tag("Content-Type", "application/json")]
    assert decoded[0].to_dict() == {"name": "Content-Type", "value": "application/json"}
    print("  [PASS] Tag decoding from mappings")


def test_tags_roundtrip_preserves_order():
    tags = [Tag("b", "2"), Tag("a", "1"), Tag("Ünïcode", "välue ✓"), Tag("", "")]
    assert decode_tags(encode_tags(tags)) == tags
    assert encode_tags([]) == []
    assert decode_tags([]) == []
    print("  [PASS] Tag round-trip and empty lists")


def test_tag_is_immutable():
    tag = Tag("a", "b")
    try:
        tag.name = "c"
        assert False, "Tag should be frozen"
    except AttributeError:
        pass

    try:
        Tag.coerce({"name": "only-name"})
        assert False, "should raise"
    except ValueError:
        pass
    print("  [PASS] Tag immutability")


def test_merge_tags_drops_duplicates():
    merged = merge_tags(
        [Tag("a", "1"), Tag("b", "2")],
        [{"name": "a", "value": "1"}, Tag("a", "3")],
    )
    assert merged == [Tag("a", "1"), Tag("b", "2"), Tag("a", "3")]
    print("  [PASS] Tag merge")


def test_winston_to_ar():
    assert winston_to_ar("1000000000000") == "1.000000000000"
    assert winston_to_ar("500000000000") == "0.500000000000"
    assert winston_to_ar("1") == "0.000000000001"
    assert winston_to_ar("0") == "0.000000000000"
    assert winston_to_ar(2_500_000_000_000) == "2.500000000000"
    print("  [PASS] Winston -> AR")


def test_winston_to_ar_beyond_float_precision():
    """Values past 2^53 stay exact."""
    assert winston_to_ar("123456789012345678901234") == "123456789012.345678901234"
    assert winston_to_ar(str(2 ** 53 + 1)) == "9007.199254740993"
    print("  [PASS] Winston -> AR (big integers)")


def test_ar_to_winston():
    assert ar_to_winston("1") == "1000000000000"
    assert ar_to_winston("0.5") == "500000000000"
    assert ar_to_winston("0.000000000001") == "1"
    assert ar_to_winston("0") == "0"
    assert ar_to_winston(".5") == "500000000000"
    assert ar_to_winston("5.") == "5000000000000"
    assert ar_to_winston(Decimal("0.25")) == "250000000000"
    assert ar_to_winston(3) == "3000000000000"
    print("  [PASS] AR -> Winston")


def test_ar_to_winston_floors_extra_digits():
    assert ar_to_winston("1.0000000000019") == "1000000000001"
    assert ar_to_winston("0.0000000000009") == "0"
    print("  [PASS] AR -> Winston floors sub-winston fractions")


def test_conversion_roundtrip():
    for w in ["0", "1", "999999999999", "1000000000000", "66000000000000000000", str(2 ** 64 + 7)]:
        assert ar_to_winston(winston_to_ar(w)) == w, f"Round-trip failed for {w}"
    print("  [PASS] Winston/AR round-trip")


def test_conversion_rejects_bad_input():
    for bad in ["-1", "abc", "", "1.5", "1e5", None, -3, True]:
        try:
            winston_to_ar(bad)
            assert False, f"winston_to_ar({bad!r}) should raise"
        except ConversionError:
            pass

    for bad in ["-0.5", "abc", "", ".", "1e5", "1.2.3", None, Decimal("NaN"), -1, False]:
        try:
            ar_to_winston(bad)
            assert False, f"ar_to_winston({bad!r}) should raise"
        except ConversionError:
            pass
    print("  [PASS] Conversion rejects non-numeric and negative input")


def test_validate_transaction_ids():
    assert is_valid_transaction_id(VALID_ID)
    assert is_valid_transaction_id("0123456789-_ABCDEFGHIJKLMNOPQRSTUVWXYZabcde")
    assert is_valid_address(VALID_ID)

    assert not is_valid_transaction_id("ABC")
    assert not is_valid_transaction_id(VALID_ID + "r")
    assert not is_valid_transaction_id("ABCDEFGHIJKLMNOPQRSTUVWXYZ!@#$%^&*()+=[]abc")
    assert not is_valid_transaction_id("")
    assert not is_valid_transaction_id(None)
    assert not is_valid_transaction_id(12345)
    assert not is_valid_transaction_id(VALID_ID[:42] + "\n")
    print("  [PASS] Transaction id validation")


def test_transaction_id_issues():
    assert transaction_id_issues(VALID_ID) == []
    assert transaction_id_issues("") == ["Transaction ID is empty"]
    assert transaction_id_issues("ABC") == ["Length should be 43, got 3"]
    assert transaction_id_issues("ABCDEFGHIJKLMNOPQRSTUVWXYZ!@#$%^&*()+=[]abc") == [
        "Contains invalid Base64URL characters"
    ]

    assert require_transaction_id(VALID_ID) == VALID_ID
    try:
        require_transaction_id("nope", "wallet address")
        assert False, "should raise"
    except ValidationError as e:
        assert "wallet address" in str(e)
    print("  [PASS] Transaction id issue reporting")


def test_format_file_size():
    assert format_file_size(0) == "0 Bytes"
    assert format_file_size(500) == "500 Bytes"
    assert format_file_size(1024) == "1 KB"
    assert format_file_size(2048) == "2 KB"
    assert format_file_size(1536) == "1.5 KB"
    assert format_file_size(1024 * 1024) == "1 MB"
    assert format_file_size(1024 ** 3) == "1 GB"
    print("  [PASS] File size formatting")


def test_file_helpers():
    assert calculate_data_size("héllo") == 6
    assert calculate_data_size(b"\x00\x01") == 2
    assert content_type_from_extension("photo.JPG") == "image/jpeg"
    assert content_type_from_extension("data.json") == "application/json"
    assert content_type_from_extension("README") == "application/octet-stream"
    assert create_arweave_url(VALID_ID, "https://g.example/") == f"https://g.example/{VALID_ID}"
    print("  [PASS] File helpers")


def test_manifest_build_and_resolve():
    manifest = build_manifest({"index.html": VALID_ID, "css/site.css": OTHER_ID}, fallback_path="nope")
    assert "fallback" not in manifest
    assert index_id(manifest) == VALID_ID
    assert resolve_path(manifest, "/css/site.css") == ("css/site.css", OTHER_ID)
    assert resolve_path(manifest, "") == ("index.html", VALID_ID)
    try:
        resolve_path(manifest, "missing")
        assert False, "should raise ValidationError"
    except ValidationError:
        pass

    for bad in [[], [{"path": "a"}], {"a": "short"}, ["not a mapping"]]:
        try:
            build_manifest(bad)
            assert False, f"build_manifest({bad!r}) should raise"
        except ValidationError:
            pass

    assert parse_manifest(manifest_json(manifest)) == manifest
    for raw in ["{not json", "[]", '{"paths": {"a": "b"}}']:
        try:
            parse_manifest(raw)
            assert False, f"parse_manifest({raw!r}) should raise"
        except ValidationError:
            pass
    print("  [PASS] Path manifests")


if __name__ == "__main__":
    print("Testing weavegate helpers...\n")
    test_base64url_known_vector()
    test_base64url_empty_string()
    test_base64url_roundtrip_special_and_multibyte()
    test_buffer_uses_url_alphabet()
    test_decode_malformed_input()
    test_encode_tags()
    test_decode_tags_from_wire_mappings()
    test_tags_roundtrip_preserves_order()
    test_tag_is_immutable()
    test_merge_tags_drops_duplicates()
    test_winston_to_ar()
    test_winston_to_ar_beyond_float_precision()
    test_ar_to_winston()
    test_ar_to_winston_floors_extra_digits()
    test_conversion_roundtrip()
    test_conversion_rejects_bad_input()
    test_validate_transaction_ids()
    test_transaction_id_issues()
    test_format_file_size()
    test_file_helpers()
    test_manifest_build_and_resolve()
    print(f"\n{'='*50}")
    print("All 21 helper tests passed!")
