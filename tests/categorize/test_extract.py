import pytest

from tab_grouper.categorize.errors import DecodeError, ExtractionError
from tab_grouper.categorize.extract import extract_json_block, find_fenced_block


def test_json_tagged_and_bare_fences_extract_identically():
    tagged = 'Analysis...\n```json\n{"Work": [0, 2], "Fun": [1]}\n```\nSummary.'
    bare = 'Analysis...\n```\n{"Work": [0, 2], "Fun": [1]}\n```\nSummary.'

    assert extract_json_block(tagged) == extract_json_block(bare) == {"Work": [0, 2], "Fun": [1]}


def test_missing_fence_raises_extraction_error():
    with pytest.raises(ExtractionError):
        extract_json_block('{"Work": [0]} with no fences at all')


def test_invalid_json_in_fence_raises_decode_error():
    with pytest.raises(DecodeError) as exc:
        extract_json_block('```json\n{"a":}\n```')

    assert '{"a":}' in str(exc.value)


def test_first_fenced_block_wins():
    text = '```json\n{"first": [0]}\n```\nthen\n```json\n{"second": [0]}\n```'

    assert extract_json_block(text) == {"first": [0]}


def test_multiline_block_and_crlf_line_endings():
    text = '```json\r\n{\r\n  "A": [0],\r\n  "B": [1]\r\n}\r\n```'

    assert extract_json_block(text) == {"A": [0], "B": [1]}


def test_tag_is_case_insensitive():
    assert find_fenced_block('```JSON\n[]\n```') == "[]"


def test_non_string_input_is_not_a_fence():
    assert find_fenced_block(None) is None


def test_repeated_keys_are_kept_as_pairs():
    out = extract_json_block('```json\n{"Work": [], "Work": [0, 1]}\n```')

    assert out == {"Work": [0, 1]}
    assert out.pairs == [("Work", []), ("Work", [0, 1])]
