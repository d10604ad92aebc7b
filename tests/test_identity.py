import re

import pytest

from vault_vector_server.vault.identity import chunk_id, vector_ids_key


def test_chunk_id_is_deterministic():
    assert chunk_id("vault-1", "notes/a.md", 3) == chunk_id("vault-1", "notes/a.md", 3)


def test_chunk_id_is_fixed_length_hex():
    value = chunk_id("vault-1", "a/very/long/" * 40 + "path.md", 12345)

    assert re.fullmatch(r"[0-9a-f]{40}", value)


@pytest.mark.parametrize(
    "other",
    [
        ("vault-2", "notes/a.md", 0),
        ("vault-1", "notes/b.md", 0),
        ("vault-1", "notes/a.md", 1),
        ("vault-1", "notes/a.md:1", 0),
    ],
)
def test_chunk_id_differs_per_tuple(other):
    assert chunk_id("vault-1", "notes/a.md", 0) != chunk_id(*other)


def test_chunk_id_rejects_negative_index():
    with pytest.raises(ValueError):
        chunk_id("vault-1", "notes/a.md", -1)


def test_vector_ids_key_is_namespaced_by_tenant():
    assert vector_ids_key("vault-1", "a.md") == "vault-1_vector-ids_a.md"
    assert vector_ids_key("vault-1", "a.md") != vector_ids_key("vault-2", "a.md")
