import time;
import lib.shared.client as client;

# Point-in-time copy of a client, later roster updates do not reach it.
class Player():
    def __init__(self, cl : client.Client):
        self._id = cl.GetId();
        self._playerId = cl.GetPlayerId();
        self._name = cl.GetName();
        self._teamId = cl.GetTeamId();
        self._squadId = cl.GetSquadId();
        self._isLeader = cl.IsLeader();
        self._role = cl.GetRole();
        self._takenAt = time.time();

    def GetId(self) -> str:
        return self._id;

    def GetPlayerId(self) -> int:
        return self._playerId;

    def GetName(self) -> str:
        return self._name;

    def GetTeamId(self) -> int:
        return self._teamId;

    def GetSquadId(self) -> int:
        return self._squadId;

    def IsLeader(self) -> bool:
        return self._isLeader;

    def GetRole(self) -> str:
        return self._role;

    def GetTakenAt(self) -> float:
        return self._takenAt;

    def __repr__(self):
        s = f"{self.GetName()} (ID : {self.GetId()})"
        return s
