from __future__ import annotations

import logging

import pytest

from adminvault.core.admins.directory import AdminDirectory
from adminvault.core.admins.io import AdminFile
from adminvault.core.ops_log import OpsLogger
from .helpers.admin_builders import cfx_link, discord_link, record
from .helpers.fakes import FakeHasher


@pytest.fixture
def logger():
    return logging.getLogger("adminvault.tests")


@pytest.fixture
def hasher():
    return FakeHasher()


@pytest.fixture
def admin_file(tmp_path):
    return AdminFile(str(tmp_path / "data" / "admins.json"))


@pytest.fixture
def ops(tmp_path):
    return OpsLogger(path=str(tmp_path / "logs" / "ops.jsonl"))


@pytest.fixture
def directory(admin_file, hasher, ops, logger):
    """
    Directory holding a master (`owner`, linked to discord + citizenfx) and one
    regular admin (`helper`).
    """
    d = AdminDirectory(admin_file=admin_file, hasher=hasher, ops=ops, logger=logger, edit_notify_delay_seconds=0.0)
    d.replace_all(
        [
            record("owner", master=True, providers={"discord": discord_link("111111"), "citizenfx": cfx_link("1000", username="ownercfx")}),
            record("helper", permissions=["players.kick"], providers={"discord": discord_link("222222")}),
        ]
    )
    yield d
    d.close(wait=True)
