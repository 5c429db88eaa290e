import pytest
from app.core.config import parse_signing_keys


def test_parse_signing_keys_reads_pairs():
    keys = parse_signing_keys(" k1=alpha , k2=beta ")

    assert keys == {"k1": "alpha", "k2": "beta"}


@pytest.mark.parametrize("raw", [None, "", " , "])
def test_parse_signing_keys_empty_input_returns_empty(raw):
    assert parse_signing_keys(raw) == {}


@pytest.mark.parametrize("raw", ["k1", "k1=", "=secret"])
def test_parse_signing_keys_malformed_entry_raises(raw):
    with pytest.raises(ValueError):
        parse_signing_keys(raw)
