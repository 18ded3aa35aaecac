"""
Tests for secret and machine models — validation and envelopes.
"""

import pytest

from flatdeploy.core.errors import SecretValidationError
from flatdeploy.core.models import MachineResult, SecretMount, SecretSpec
from flatdeploy.core.models.secret import validate_secrets_and_mounts


class TestSecretSpec:
    def test_equals(self):
        a = SecretSpec(name="test-secret")
        b = SecretSpec(name="test-secret")
        c = SecretSpec(name="test-secret", content=b"some content")
        assert a.equals(b)
        assert not a.equals(c)

    def test_name_required(self):
        with pytest.raises(SecretValidationError, match="secret name is required"):
            SecretSpec(name="").validate_spec()


class TestSecretMount:
    def test_valid(self):
        SecretMount(secret_name="s", container_path="/run/secrets/s", uid="0", gid="65534").validate_mount()

    def test_source_required(self):
        with pytest.raises(SecretValidationError, match="source is required"):
            SecretMount(secret_name="").validate_mount()

    def test_relative_path(self):
        with pytest.raises(SecretValidationError, match="must be absolute"):
            SecretMount(secret_name="s", container_path="run/secrets/s").validate_mount()

    def test_empty_path_allowed(self):
        SecretMount(secret_name="s").validate_mount()

    def test_numeric_ids(self):
        mount = SecretMount(secret_name="s", uid="1000", gid="")
        assert mount.numeric_uid() == 1000
        assert mount.numeric_gid() is None

    @pytest.mark.parametrize("uid", ["abc", "-1", "1.5", " 1", "１"])
    def test_invalid_uid(self, uid):
        with pytest.raises(SecretValidationError, match="not a decimal number"):
            SecretMount(secret_name="s", uid=uid).validate_mount()

    @pytest.mark.parametrize("value", [str(2**63), str(2**64 - 1), str(2**64)])
    def test_id_too_high(self, value):
        with pytest.raises(SecretValidationError, match="value too high"):
            SecretMount(secret_name="s", uid=value).validate_mount()
        with pytest.raises(SecretValidationError, match="invalid Gid .*value too high"):
            SecretMount(secret_name="s", gid=value).validate_mount()

    def test_id_max(self):
        mount = SecretMount(secret_name="s", uid=str(2**63 - 1), gid=str(2**63 - 1))
        mount.validate_mount()
        assert mount.numeric_uid() == 2**63 - 1


class TestValidateSecretsAndMounts:
    def test_valid(self):
        validate_secrets_and_mounts(
            [SecretSpec(name="a"), SecretSpec(name="b")],
            [SecretMount(secret_name="a", container_path="/run/secrets/a")],
        )

    def test_empty(self):
        validate_secrets_and_mounts([], [])

    def test_invalid_secret(self):
        with pytest.raises(SecretValidationError, match="invalid secret: secret name is required"):
            validate_secrets_and_mounts([SecretSpec(name="")], [])

    def test_duplicate(self):
        with pytest.raises(SecretValidationError, match="duplicate secret name: 'a'"):
            validate_secrets_and_mounts([SecretSpec(name="a"), SecretSpec(name="a")], [])

    def test_invalid_mount(self):
        with pytest.raises(SecretValidationError, match="invalid secret mount: invalid Uid 'x'"):
            validate_secrets_and_mounts(
                [SecretSpec(name="a")],
                [SecretMount(secret_name="a", uid="x")],
            )

    def test_dangling_mount(self):
        with pytest.raises(SecretValidationError, match="'ghost' does not refer to any defined secret"):
            validate_secrets_and_mounts(
                [SecretSpec(name="a")],
                [SecretMount(secret_name="ghost")],
            )


class TestMachineResult:
    def test_success(self):
        r = MachineResult.success("m-1", ["done"])
        assert r.ok
        assert r.payload == ["done"]

    def test_failure(self):
        r = MachineResult.failure("m-1", "boom")
        assert not r.ok
        assert r.error == "boom"
