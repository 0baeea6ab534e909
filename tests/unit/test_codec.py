"""Unit tests for document codecs and the field split/merge pair."""

from dataclasses import dataclass, field

import pytest

from jsondb.components.codec import DataclassCodec, DictCodec, merge_fields, split_fields
from jsondb.core.errors import DocumentCodecError


@dataclass
class Item:
    a: str
    b: int
    c: int | None = None


@dataclass
class Tagged:
    name: str
    tags: list[str] = field(default_factory=list)


def test_split_fields_removes_reserved_keys():
    """Test that split keeps only document fields, in order."""
    fields = split_fields({"id": 1, "z": 1, "deleted": False, "a": 2})

    assert fields == {"z": 1, "a": 2}
    assert list(fields) == ["z", "a"]


def test_merge_fields_injects_identifier():
    """Test that merge builds the persisted object."""
    assert merge_fields(3, {"a": 1}) == {"id": 3, "a": 1}


def test_merge_then_split_is_identity():
    """Test that split undoes merge."""
    fields = {"a": "x", "nested": {"b": [1, 2]}}

    assert split_fields(merge_fields(9, fields)) == fields


def test_dict_codec_copies():
    """Test that the dict codec never shares state with the caller."""
    codec = DictCodec()
    doc = {"a": {"b": 1}}

    fields = codec.to_fields(doc)
    doc["a"]["b"] = 2
    assert fields == {"a": {"b": 1}}

    out = codec.from_fields(fields)
    out["a"]["b"] = 3
    assert fields == {"a": {"b": 1}}


def test_dict_codec_rejects_non_mappings():
    """Test that only JSON objects are accepted as documents."""
    with pytest.raises(DocumentCodecError, match="mapping"):
        DictCodec().to_fields(["not", "an", "object"])


def test_dataclass_codec_defaults():
    """Test that absent optional fields take their defaults."""
    codec = DataclassCodec(Tagged)

    assert codec.from_fields({"name": "x"}) == Tagged("x", [])
    assert codec.to_fields(Tagged("y", ["t"])) == {"name": "y", "tags": ["t"]}


def test_dataclass_codec_rejects_unknown_fields():
    """Test that fields outside the dataclass are an error."""
    with pytest.raises(DocumentCodecError, match="Unknown fields"):
        DataclassCodec(Item).from_fields({"a": "x", "b": 1, "extra": True})


def test_dataclass_codec_rejects_missing_required_fields():
    """Test that required fields must be present."""
    with pytest.raises(DocumentCodecError, match="Cannot build Item"):
        DataclassCodec(Item).from_fields({"a": "x"})


def test_dataclass_codec_rejects_wrong_type():
    """Test that documents must be instances of the codec's dataclass."""
    with pytest.raises(DocumentCodecError, match="Expected Item"):
        DataclassCodec(Item).to_fields(Tagged("x"))


def test_dataclass_codec_requires_dataclass():
    """Test that the codec is only built for dataclass types."""
    with pytest.raises(TypeError):
        DataclassCodec(dict)
