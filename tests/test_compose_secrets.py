"""
Tests for secret resolution — compose references → specs + mounts.
"""

import logging
from pathlib import Path

import pytest

from flatdeploy.core.errors import (
    ExternalSecretError,
    SecretFileError,
    SecretNotFoundError,
    SecretResolutionError,
)
from flatdeploy.core.models.compose import (
    FileSecretSource,
    InlineSecretSource,
    SecretConfig,
    ServiceSecretConfig,
)
from flatdeploy.core.models.secret import SecretMount, SecretSpec
from flatdeploy.core.services.compose_secrets import (
    default_secret_target,
    secret_specs_from_compose,
)

SECRET_CONTENT = b"test secret content\n"


@pytest.fixture
def secret_file(tmp_path: Path) -> Path:
    path = tmp_path / "testdata" / "secret1.txt"
    path.parent.mkdir()
    path.write_bytes(SECRET_CONTENT)
    return path


def _file_secret(name: str, path: str, content: bytes = b"") -> SecretConfig:
    return SecretConfig(name=name, source=FileSecretSource(path=path, content=content))


def _inline_secret(name: str, content: bytes) -> SecretConfig:
    return SecretConfig(name=name, source=InlineSecretSource(content=content))


class TestSecretSpecsFromCompose:
    def test_file_secret_with_owner(self, secret_file: Path, tmp_path: Path):
        secrets = {"app-secret": _file_secret("app-secret", "testdata/secret1.txt")}
        refs = [ServiceSecretConfig(
            source="app-secret", target="/run/secrets/app-secret", uid="1000", gid="1000",
        )]

        specs, mounts = secret_specs_from_compose(secrets, refs, tmp_path)

        assert specs == [SecretSpec(name="app-secret", content=SECRET_CONTENT)]
        assert mounts == [SecretMount(
            secret_name="app-secret",
            container_path="/run/secrets/app-secret",
            uid="1000",
            gid="1000",
        )]

    def test_file_secret_with_mode(self, secret_file: Path, tmp_path: Path):
        secrets = {"db-password": _file_secret("db-password", "./testdata/secret1.txt")}
        refs = [ServiceSecretConfig(
            source="db-password", target="/run/secrets/db-password", mode=0o400,
        )]

        specs, mounts = secret_specs_from_compose(secrets, refs, tmp_path)

        assert specs[0].content == SECRET_CONTENT
        assert mounts[0].mode == 0o400
        assert mounts[0].uid == ""

    def test_absolute_file_path(self, secret_file: Path):
        secrets = {"s": _file_secret("s", str(secret_file))}
        specs, _ = secret_specs_from_compose(secrets, [ServiceSecretConfig(source="s")], "/elsewhere")
        assert specs[0].content == SECRET_CONTENT

    def test_inline_secret(self, tmp_path: Path):
        secrets = {"token": _inline_secret("token", b"abc")}
        specs, mounts = secret_specs_from_compose(
            secrets, [ServiceSecretConfig(source="token")], tmp_path,
        )
        assert specs == [SecretSpec(name="token", content=b"abc")]
        assert mounts[0].container_path == "/run/secrets/token"

    def test_empty_inline_secret(self, tmp_path: Path):
        secrets = {"empty": _inline_secret("empty", b"")}
        specs, _ = secret_specs_from_compose(secrets, [ServiceSecretConfig(source="empty")], tmp_path)
        assert specs[0].content == b""

    def test_file_wins_over_inline(self, secret_file: Path, tmp_path: Path, caplog):
        secrets = {"s": _file_secret("s", "testdata/secret1.txt", content=b"inline")}

        with caplog.at_level(logging.WARNING):
            specs, _ = secret_specs_from_compose(secrets, [ServiceSecretConfig(source="s")], tmp_path)

        assert specs[0].content == SECRET_CONTENT
        assert "using the file" in caplog.text

    def test_preserves_reference_order(self, tmp_path: Path):
        secrets = {
            "a": _inline_secret("a", b"1"),
            "b": _inline_secret("b", b"2"),
        }
        refs = [ServiceSecretConfig(source="b"), ServiceSecretConfig(source="a")]
        specs, mounts = secret_specs_from_compose(secrets, refs, tmp_path)
        assert [s.name for s in specs] == ["b", "a"]
        assert [m.secret_name for m in mounts] == ["b", "a"]

    def test_duplicate_reference_yields_two_specs(self, tmp_path: Path):
        secrets = {"a": _inline_secret("a", b"1")}
        refs = [ServiceSecretConfig(source="a"), ServiceSecretConfig(source="a", target="/x")]
        specs, mounts = secret_specs_from_compose(secrets, refs, tmp_path)
        assert len(specs) == 2
        assert specs[0].equals(specs[1])
        assert [m.container_path for m in mounts] == ["/run/secrets/a", "/x"]

    def test_no_references(self, tmp_path: Path):
        assert secret_specs_from_compose({}, [], tmp_path) == ([], [])


class TestSecretResolutionErrors:
    def test_not_found(self, tmp_path: Path):
        with pytest.raises(SecretNotFoundError, match="secret 'missing' not found"):
            secret_specs_from_compose({}, [ServiceSecretConfig(source="missing")], tmp_path)

    def test_external(self, tmp_path: Path):
        secrets = {"vault": SecretConfig(name="vault", external=True)}
        with pytest.raises(ExternalSecretError, match="external secrets are not supported: vault"):
            secret_specs_from_compose(secrets, [ServiceSecretConfig(source="vault")], tmp_path)

    def test_unreadable_file(self, tmp_path: Path):
        secrets = {"s": _file_secret("s", "nope.txt")}
        with pytest.raises(SecretFileError, match="read secret from file 'nope.txt'") as exc_info:
            secret_specs_from_compose(secrets, [ServiceSecretConfig(source="s")], tmp_path)
        assert isinstance(exc_info.value.__cause__, OSError)

    def test_errors_share_base(self, tmp_path: Path):
        with pytest.raises(SecretResolutionError):
            secret_specs_from_compose({}, [ServiceSecretConfig(source="x")], tmp_path)

    def test_all_or_nothing(self, tmp_path: Path):
        secrets = {"ok": _inline_secret("ok", b"1")}
        refs = [ServiceSecretConfig(source="ok"), ServiceSecretConfig(source="missing")]
        with pytest.raises(SecretNotFoundError):
            secret_specs_from_compose(secrets, refs, tmp_path)


class TestDefaultTarget:
    def test_default_target(self):
        assert default_secret_target("db") == "/run/secrets/db"


class TestDeterminism:
    def test_resolving_twice_is_identical(self, secret_file: Path, tmp_path: Path):
        secrets = {
            "file": _file_secret("file", "testdata/secret1.txt"),
            "inline": _inline_secret("inline", b"abc"),
        }
        refs = [ServiceSecretConfig(source="file", uid="1"), ServiceSecretConfig(source="inline")]
        assert secret_specs_from_compose(secrets, refs, tmp_path) == secret_specs_from_compose(
            secrets, refs, tmp_path,
        )
