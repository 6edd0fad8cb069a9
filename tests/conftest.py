"""
Squadfinger - Test Fixtures
===========================

Shared fixtures: a controllable clock, a recording server interface and a host API
backed by a plain list of ListPlayers rows.
"""

import sys
import time
import pytest
from pathlib import Path

# Repo root holds the top level modules and the lib / plugins namespaces
sys.path.insert(0, str(Path(__file__).parent.parent))

import lib.shared.clientmanager as clientmanager
import lib.shared.serverdata as serverdata
import squadfingerAPI
import squadfingerinterface


class FakeClock:
    """Stands in for time.time(), only moves when told to."""

    def __init__(self, start=1000.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class RecordingInterface(squadfingerinterface.IServerInterface):
    """Server interface that records every remote command instead of sending it."""

    def __init__(self):
        super().__init__()
        self.warnings = []
        self.disbands = []
        self.rows = []

    def IsOpened(self):
        return True

    def Warn(self, playerId, text):
        self.warnings.append((playerId, text))
        return ""

    def DisbandSquad(self, teamId, squadId):
        self.disbands.append((teamId, squadId))
        return ""

    def ListPlayers(self):
        return [dict(row) for row in self.rows]


class FakeHost:
    """Minimal host: roster sync over the interface rows, events collected in order."""

    def __init__(self, iface):
        self.iface = iface
        self.clients = clientmanager.ClientManager()
        self.events = []
        self.refreshCount = 0
        self.api = squadfingerAPI.API()
        self.api.RefreshRoster = self.RefreshRoster
        self.api.GetAllClients = self.clients.GetAllClients
        self.api.GetClientById = self.clients.GetClientById
        self.api.GetClientCount = self.clients.GetClientCount
        self.api.RaiseEvent = self.events.append

    def RefreshRoster(self):
        self.refreshCount += 1
        self.clients.Sync(self.iface.ListPlayers())


def MakeRow(id, name, role, isLeader=True, teamId=1, squadId=1, playerId=0):
    return {
        "playerId": playerId,
        "id": id,
        "onlineIds": {"steam": id},
        "name": name,
        "teamId": teamId,
        "squadId": squadId,
        "isLeader": isLeader,
        "role": role,
    }


@pytest.fixture
def clock(monkeypatch):
    fake = FakeClock()
    monkeypatch.setattr(time, "time", fake)
    return fake


@pytest.fixture
def iface():
    return RecordingInterface()


@pytest.fixture
def host(iface):
    return FakeHost(iface)


@pytest.fixture
def server_data(host, iface):
    return serverdata.ServerData(host.api, iface, None)


@pytest.fixture
def make_row():
    return MakeRow
