import os
import io
import re
import logging
import time
import threading
import queue
import lib.shared.threadcontrol as threadcontrol
import lib.shared.remoteconsole as remoteconsole
import lib.shared.teams as teams
import logMessage
from file_read_backwards import FileReadBackwards

Log = logging.getLogger(__name__)

IFACE_TYPE_RCON = 0
IFACE_TYPE_INVALID = -1

# ID: 3 | Online IDs: EOS: 0002a1b2 steam: 76561198000000000 | Name: Bob | Team ID: 1 | Squad ID: 2 | Is Leader: True | Role: USA_SL_01
# ID: 3 | SteamID: 76561198000000000 | Name: Bob | Team ID: 1 | Squad ID: N/A | Is Leader: False | Role: USA_Rifleman_01
PLAYER_LINE_RE = re.compile(
    r"^ID: (?P<playerId>\d+) \| "
    r"(?:Online IDs:(?P<onlineIds>[^|]+)|SteamID: (?P<steamId>\d+)) \| "
    r"Name: (?P<name>.*) \| "
    r"Team ID: (?P<teamId>\d+|N/A) \| "
    r"Squad ID: (?P<squadId>\d+|N/A) \| "
    r"Is Leader: (?P<isLeader>True|False) \| "
    r"Role: (?P<role>.*)$"
)
ONLINE_ID_RE = re.compile(r"([A-Za-z]+): ([0-9A-Za-z]+)")
DISCONNECTED_HEADER = "----- Recently Disconnected Players"

# Current level is Narva, layer is Narva_RAAS_v1, factions USA RGF
CURRENT_MAP_RE = re.compile(r"^Current level is (?P<level>[^,]*), layer is (?P<layer>[^,]*)")

# LogWorld: Bringing World /Game/Maps/Narva/Gameplay_Layers/Narva_RAAS_v1.Narva_RAAS_v1 up for play (max tick rate 50) at 2024.03.10-20.22.41
NEW_GAME_RE = re.compile(r"^LogWorld: Bringing World /(?P<root>[A-Za-z0-9_]+)/(?:Maps/)?(?P<level>[A-Za-z0-9_-]+)/(?:[^ ]+/)?(?P<layer>[A-Za-z0-9_-]+)(?:\.[A-Za-z0-9_-]+)?(?: .*)?$")
TRANSITION_MAP = "TransitionMap"

def ParsePlayerList(text : str) -> list[dict]:
    players = []
    if text == None:
        return players
    for line in text.splitlines():
        line = line.strip()
        if line.startswith(DISCONNECTED_HEADER):
            break
        match = PLAYER_LINE_RE.match(line)
        if match == None:
            continue
        onlineIds = {}
        if match.group("onlineIds") != None:
            for platform, value in ONLINE_ID_RE.findall(match.group("onlineIds")):
                onlineIds[platform.lower()] = value
        else:
            onlineIds["steam"] = match.group("steamId")
        stableId = onlineIds.get("steam", onlineIds.get("eos"))
        if stableId == None:
            Log.warning("Player list row without a usable id, skipping : %s" % line)
            continue
        players.append({
            "playerId" : int(match.group("playerId")),
            "id" : stableId,
            "onlineIds" : onlineIds,
            "name" : match.group("name"),
            "teamId" : teams.ParseId(match.group("teamId")),
            "squadId" : teams.ParseId(match.group("squadId")),
            "isLeader" : match.group("isLeader") == "True",
            "role" : match.group("role").strip(),
        })
    return players

# Returns ( level, layer ) or None.
def ParseCurrentMap(text : str):
    if text == None:
        return None
    match = CURRENT_MAP_RE.match(text.strip())
    if match == None:
        return None
    return match.group("level").strip(), match.group("layer").strip()

# Returns ( level, layer ) for a map load log line, None for anything else including the transition map.
def ParseNewGame(content : str):
    match = NEW_GAME_RE.match(content)
    if match == None:
        return None
    if match.group("layer") == TRANSITION_MAP or match.group("level") == TRANSITION_MAP:
        return None
    return match.group("level"), match.group("layer")


class IServerInterface():
    def __init__(self):
        pass

    def Open(self) -> bool:
        return False

    def Close(self):
        pass

    def IsOpened(self) -> bool:
        return False

    def Warn(self, playerId : str, text : str) -> str:
        return "Not implemented"

    def DisbandSquad(self, teamId : int, squadId : int) -> str:
        return "Not implemented"

    def Broadcast(self, text : str) -> str:
        return "Not implemented"

    def ListPlayers(self) -> list[dict]:
        return []

    def ListSquads(self) -> str:
        return "Not implemented"

    def GetCurrentMap(self):
        return None

    def GetMessages(self) -> queue.Queue:
        return None

    def GetType(self) -> int:
        return IFACE_TYPE_INVALID

class AServerInterface(IServerInterface):

    def __init__(self):
        self._queueLock = threading.Lock()
        self._messageQueueSwap = queue.Queue()
        self._workingMessageQueue = queue.Queue()
        self._isOpened = False
        self._isReady = False

    def Open(self) -> bool:
        if self._isOpened:
            self.Close()
        return True

    def Close(self):
        if self._isOpened:
            self._isOpened = False
        super().Close()

    def IsOpened(self) -> bool:
        return self._isOpened

    def GetMessages(self) -> queue.Queue:
        with self._queueLock:
            tmp = self._workingMessageQueue
            self._workingMessageQueue = self._messageQueueSwap
            self._workingMessageQueue.queue.clear()
            self._messageQueueSwap = tmp
            return self._messageQueueSwap

    def PutMessage(self, message : logMessage.LogMessage):
        with self._queueLock:
            self._workingMessageQueue.put(message)

    def IsReady(self) -> bool:
        return self._isReady

    def WaitUntilReady(self):
        while not self.IsReady():
            time.sleep(0.001)


class RconInterface(AServerInterface):
    def __init__(self, ipAddress : str, port : int, password : str, logPath : str, readDelay : float = 0.1, requestTimeout : float = 5.0):
        super().__init__()
        self._logReaderLock = threading.Lock()
        self._logReaderThreadControl = threadcontrol.ThreadControl()
        self._logReaderTime = readDelay
        self._logReaderThread = None
        self._logPath = logPath
        self._rcon = remoteconsole.RCON((ipAddress, port), password, requestTimeout)

    def __del__(self):
        self.Close()

    def GetType(self) -> int:
        return IFACE_TYPE_RCON

    def Warn(self, playerId : str, text : str) -> str:
        if self.IsOpened():
            return self._rcon.AdminWarn(playerId, text)
        return None

    def DisbandSquad(self, teamId : int, squadId : int) -> str:
        if self.IsOpened():
            return self._rcon.AdminDisbandSquad(teamId, squadId)
        return None

    def Broadcast(self, text : str) -> str:
        if self.IsOpened():
            return self._rcon.AdminBroadcast(text)
        return None

    def ListPlayers(self) -> list[dict]:
        if self.IsOpened():
            return ParsePlayerList(self._rcon.ListPlayers())
        return []

    def ListSquads(self) -> str:
        if self.IsOpened():
            return self._rcon.ListSquads()
        return None

    def GetCurrentMap(self):
        if self.IsOpened():
            return ParseCurrentMap(self._rcon.ShowCurrentMap())
        return None

    def ParseLogThreadHandler(self, control, sleepTime):
        with open(self._logPath, "r", encoding="utf-8", errors="replace") as log:
            log.seek(0, io.SEEK_END)
            pending = ""
            while True:
                stop = False
                with self._logReaderLock:
                    stop = control.stop
                if stop:
                    break
                chunk = log.read()
                if chunk == "":
                    time.sleep(sleepTime)
                    continue
                pending += chunk
                lines = pending.split("\n")
                pending = lines.pop() # partial last line stays until its newline arrives
                with self._queueLock:
                    for line in lines:
                        line = line.rstrip("\r")
                        if len(line) > 0:
                            self._workingMessageQueue.put(logMessage.LogMessage(line))

    # Walks the log backwards to the last map load so the current round is known on startup.
    def _ReadPrestart(self) -> list[logMessage.LogMessage]:
        prestart = []
        with FileReadBackwards(self._logPath, encoding="utf-8") as logFile:
            for line in logFile:
                message = logMessage.LogMessage(line, True)
                if ParseNewGame(message.content) != None:
                    prestart.append(message)
                    break
        return prestart

    def Open(self) -> bool:
        if not super().Open():
            return False
        try:
            if not self._rcon.Open():
                return False
        except remoteconsole.RconError as ex:
            Log.error("Unable to open RCON : %s" % str(ex))
            return False

        if not os.path.exists(self._logPath):
            Log.error("Server log file is not found at path %s, abort startup." % self._logPath)
            self._rcon.Close()
            return False

        prestart = self._ReadPrestart()
        if len(prestart) > 0:
            with self._queueLock:
                for message in prestart:
                    self._workingMessageQueue.put(message)

        self._logReaderThreadControl.stop = False
        self._logReaderThread = threading.Thread(target=self.ParseLogThreadHandler, daemon=True,
                                                 args=(self._logReaderThreadControl, self._logReaderTime))
        self._logReaderThread.start()
        self._isOpened = True
        self._isReady = True
        return True

    def Close(self):
        if self.IsOpened():
            with self._logReaderLock:
                self._logReaderThreadControl.stop = True
            if self._logReaderThread != None:
                self._logReaderThread.join()
                self._logReaderThread = None
            self._rcon.Close()
            self._messageQueueSwap.queue.clear()
            self._workingMessageQueue.queue.clear()
            self._isReady = False
            super().Close()
