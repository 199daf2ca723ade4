"""
Shared fixtures and fakes for the OU mover tests.
"""

import io
import os
import tempfile
from pathlib import Path

import pytest

from ou_mover.audit import AuditLog
from ou_mover.types import ClientResult


class FakeDirectoryClient:
    """
    In-memory DirectoryClient.

    Args:
        objects: Mapping of identifier -> DN for objects that exist
        resolve_failures: identifier -> ClientResult or Exception for resolve()
        move_failures: identifier -> ClientResult or Exception for move()
    """

    def __init__(self, objects=None, resolve_failures=None, move_failures=None):
        self.objects = dict(objects or {})
        self.resolve_failures = dict(resolve_failures or {})
        self.move_failures = dict(move_failures or {})
        self.resolve_calls = []
        self.move_calls = []
        self.move_dns = []
        self.closed = False

    def resolve(self, identifier):
        self.resolve_calls.append(identifier)
        failure = self.resolve_failures.get(identifier)
        if isinstance(failure, Exception):
            raise failure
        if failure is not None:
            return failure
        dn = self.objects.get(identifier)
        if dn is None:
            return ClientResult.not_found(f"no object matches '{identifier}'")
        return ClientResult.success(dn=dn)

    def move(self, identifier, destination, dn=None):
        self.move_calls.append((identifier, destination))
        self.move_dns.append(dn)
        failure = self.move_failures.get(identifier)
        if isinstance(failure, Exception):
            raise failure
        if failure is not None:
            return failure
        if destination not in self.objects.values():
            return ClientResult.other("noSuchObject (32): parent does not exist")
        rdn = self.objects[identifier].split(",", 1)[0]
        new_dn = f"{rdn},{destination}"
        self.objects[identifier] = new_dn
        return ClientResult.success(dn=new_dn)

    def close(self):
        self.closed = True


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep OU_MOVER_* settings from the host out of the tests."""
    for key in list(os.environ):
        if key.startswith("OU_MOVER_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture
def log_path():
    """Log file path inside a fresh temporary directory."""
    with tempfile.TemporaryDirectory() as tmp:
        yield Path(tmp) / "logs" / "run.log"


@pytest.fixture
def audit(log_path):
    """AuditLog writing to a temp file with console output captured in StringIO."""
    log = AuditLog.open(log_path, stdout=io.StringIO(), stderr=io.StringIO())
    yield log
    log.close()


@pytest.fixture
def make_client():
    """Factory for FakeDirectoryClient instances."""
    return FakeDirectoryClient
