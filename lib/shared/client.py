import logging
import lib.shared.teams as teams;
import threading;

log = logging.getLogger(__name__)

class Client(object):
    def __init__(self, id : str, name : str, playerId : int = -1):
        self._lock = threading.Lock();
        self._id = id;
        self._playerId = playerId;
        self._name = name;
        self._teamId = None;
        self._squadId = None;
        self._isLeader = False;
        self._role = "";
        self._onlineIds = {};

    # Stable identifier, steam ID when known, EOS ID otherwise.
    def GetId(self) -> str:
        return self._id;

    # In-game slot id, reused by the server after a disconnect.
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

    def GetOnlineIds(self) -> dict[str, str]:
        return self._onlineIds;

    def IsInSquad(self) -> bool:
        return self._squadId != None;

    def __repr__(self):
        s = f"{self._name} (ID : {self._id}) (TeamId : {self._teamId}) (SquadId : {self._squadId}) (Role : {self._role})";
        return s


    """
    ListPlayers row keys:
    playerId - in-game slot id
    id - stable id used by admin commands
    onlineIds - platform name to id, "steam" and "eos"
    name - player name
    teamId - team number, None when unassigned
    squadId - squad number, None when not in a squad
    isLeader - squad leader flag
    role - equipped kit identifier
    """

    # Returns a dict of previous values for the keys that changed.
    def Update(self, row : dict) -> dict:
        changed = {}
        with self._lock:
            if "name" in row and row["name"] != self._name:
                changed["name"] = self._name
                self._name = row["name"]
            if "playerId" in row and row["playerId"] != self._playerId:
                changed["playerId"] = self._playerId
                self._playerId = row["playerId"]
            if "teamId" in row and row["teamId"] != self._teamId:
                changed["teamId"] = self._teamId
                self._teamId = row["teamId"]
                log.debug(f"Client {self._name} has joined {teams.TranslateTeam(self._teamId)}")
            if "squadId" in row and row["squadId"] != self._squadId:
                changed["squadId"] = self._squadId
                self._squadId = row["squadId"]
            if "isLeader" in row and row["isLeader"] != self._isLeader:
                changed["isLeader"] = self._isLeader
                self._isLeader = row["isLeader"]
            if "role" in row and row["role"] != self._role:
                changed["role"] = self._role
                self._role = row["role"]
            if "onlineIds" in row:
                self._onlineIds = dict(row["onlineIds"])
        return changed
