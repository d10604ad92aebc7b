import pytest

from vault_vector_server.tenants import InvalidTenantError, resolve_tenant


def test_valid_tenant_key_is_trimmed():
    assert resolve_tenant("  my-vault_01 ").tenant_key == "my-vault_01"


@pytest.mark.parametrize("key", ["", "../x", "a/b", "a" * 65, "white space"])
def test_invalid_tenant_keys_rejected(key):
    with pytest.raises(InvalidTenantError):
        resolve_tenant(key)
