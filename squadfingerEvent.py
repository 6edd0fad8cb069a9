import lib.shared.client as client
import lib.shared.player as player

SQUADFINGER_EVENT_TYPE_INIT                 = 1 # No need for own class, uses Event, fired once plugins are started and the roster was fetched
SQUADFINGER_EVENT_TYPE_SHUTDOWN             = 2 # No need for own class, uses Event
SQUADFINGER_EVENT_TYPE_NEW_GAME             = 3 # NewGameEvent : mapName : str, layerName : str, a new round has started on the server
SQUADFINGER_EVENT_TYPE_CLIENTCONNECT        = 4 # ClientConnectEvent : client = client instance that was connected, already present in the roster
SQUADFINGER_EVENT_TYPE_CLIENTDISCONNECT     = 5 # ClientDisconnectEvent : client = client instance that was disconnected, already removed from the roster
SQUADFINGER_EVENT_TYPE_CLIENTCHANGED        = 6 # ClientChangedEvent : client = client instance that was changed, data : dict of old values, keys "name", "teamId", "squadId", "isLeader", "role"
SQUADFINGER_EVENT_TYPE_SQUAD_AUTO_DISBANDED = 7 # SquadAutoDisbandedEvent : player : player.Player snapshot of the leader, warnings : int, startTime : float

SQUADFINGER_EVENT_TYPE_WD_DIED              = 1000 # server process has died during watch
SQUADFINGER_EVENT_TYPE_WD_STARTED           = 1001 # server process came back after dying

class Event():
    def __init__(self, type : int, data : dict, isStartup = False):
        self.type = type
        self.data = data
        self.isStartup = isStartup

class NewGameEvent(Event):
    def __init__(self, mapName : str, layerName : str, isStartup = False):
        self.mapName = mapName
        self.layerName = layerName
        super().__init__(SQUADFINGER_EVENT_TYPE_NEW_GAME, {}, isStartup)

class ClientConnectEvent(Event):
    def __init__(self, cl : client.Client, data : dict, isStartup = False):
        self.client = cl
        super().__init__(SQUADFINGER_EVENT_TYPE_CLIENTCONNECT, data, isStartup)

class ClientDisconnectEvent(Event):
    def __init__(self, cl : client.Client, data : dict, isStartup = False):
        self.client = cl
        super().__init__(SQUADFINGER_EVENT_TYPE_CLIENTDISCONNECT, data, isStartup)

class ClientChangedEvent(Event):
    def __init__(self, cl : client.Client, data : dict, isStartup = False):
        self.client = cl
        super().__init__(SQUADFINGER_EVENT_TYPE_CLIENTCHANGED, data, isStartup)

class SquadAutoDisbandedEvent(Event):
    def __init__(self, pl : player.Player, warnings : int, startTime : float):
        self.player = pl
        self.warnings = warnings
        self.startTime = startTime
        super().__init__(SQUADFINGER_EVENT_TYPE_SQUAD_AUTO_DISBANDED, {"teamId" : pl.GetTeamId(), "squadId" : pl.GetSquadId()})
