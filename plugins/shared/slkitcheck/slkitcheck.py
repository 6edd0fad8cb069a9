# SL Kit Check Plugin
# Warns squad leaders that are not wearing a squad leader kit and disbands their squad
# once they ignored the configured amount of warnings.

import logging
import os
import time
import squadfingerEvent
import lib.shared.serverdata as serverdata
import lib.shared.config as config
import lib.shared.client as client
import lib.shared.timeout as timeout
from lib.shared.player import Player
import plugins.shared.slkitcheck.kits as kits

SERVER_DATA = None

CONFIG_DEFAULT_PATH = os.path.join(os.path.dirname(__file__), "slkitcheckCfg.json")
CONFIG_FALLBACK = \
"""{
    "enabled": true,
    "warningMessage": "You must use a squad leader kit",
    "disbandMessage": "Squad disbanded due to invalid squad leader kit",
    "frequency": 30,
    "maxWarnings": 3,
    "roundStartDelay": 180,
    "extraValidKits": []
}
"""

DEFAULT_CONFIG = {
    "enabled": True,
    "warningMessage": "You must use a squad leader kit",
    "disbandMessage": "Squad disbanded due to invalid squad leader kit",
    "frequency": 30,            # seconds between roster checks and between warnings
    "maxWarnings": 3,           # warnings before the squad is disbanded
    "roundStartDelay": 180,     # seconds after a new round before checks begin
    "validKits": None,          # replaces the built-in kit list when set
    "extraValidKits": [],       # added to the kit list
}

Log = logging.getLogger(__name__)

PluginInstance = None

class RoundPhase():
    """Round start grace period shared by every scheduled check of the plugin."""
    def __init__(self):
        self._graceTimeout = timeout.Timeout()

    def Begin(self, delay):
        self._graceTimeout.Set(delay)

    def Cancel(self):
        self._graceTimeout.Finish()

    def IsStarting(self) -> bool:
        return self._graceTimeout.IsSet()

    def Left(self):
        return self._graceTimeout.Left()

class TrackedPlayer():
    """A squad leader seen with an invalid kit, with its own warning cadence."""
    def __init__(self, player : Player, frequency):
        self._player = player
        self._warnings = 0
        self._startTime = time.time()
        self._warnTimer = timeout.Interval(frequency)
        self._warnTimer.Start()

    def GetPlayer(self) -> Player:
        return self._player

    def GetId(self) -> str:
        return self._player.GetId()

    def GetWarnings(self) -> int:
        return self._warnings

    def GetStartTime(self) -> float:
        return self._startTime

    def AddWarning(self) -> int:
        self._warnings += 1
        return self._warnings

    def IsWarnDue(self) -> bool:
        return self._warnTimer.Tick()

    def IsTimerActive(self) -> bool:
        return self._warnTimer.IsRunning()

    def Cancel(self):
        self._warnTimer.Stop()

    def __repr__(self):
        return f"TrackedPlayer {self._player} (warnings : {self._warnings})"

class TrackingTable():
    """Owns the tracked squad leaders and the disband queue, every change goes through here."""
    def __init__(self):
        self._tracked : dict[str, TrackedPlayer] = {}
        self._toDisband : dict[str, None] = {}  # ordered set

    def Track(self, player : Player, frequency) -> TrackedPlayer:
        tracker = TrackedPlayer(player, frequency)
        self._tracked[player.GetId()] = tracker
        return tracker

    def Untrack(self, id : str) -> TrackedPlayer:
        self._toDisband.pop(id, None)
        tracker = self._tracked.pop(id, None)
        if tracker != None:
            tracker.Cancel()
        return tracker

    def IsTracked(self, id : str) -> bool:
        return id in self._tracked

    def Get(self, id : str) -> TrackedPlayer:
        return self._tracked.get(id)

    def GetAll(self) -> list[TrackedPlayer]:
        return list(self._tracked.values())

    def GetTrackedIds(self) -> list[str]:
        return list(self._tracked.keys())

    def QueueDisband(self, id : str):
        self._toDisband[id] = None

    def IsQueued(self, id : str) -> bool:
        return id in self._toDisband

    def HasQueued(self) -> bool:
        return len(self._toDisband) > 0

    def GetQueued(self) -> list[str]:
        return list(self._toDisband.keys())

    def ClearQueue(self):
        self._toDisband.clear()

    def Clear(self):
        for tracker in self._tracked.values():
            tracker.Cancel()
        self._tracked.clear()
        self._toDisband.clear()

    def __len__(self):
        return len(self._tracked)

class SLKitCheck():
    def __init__(self, serverData : serverdata.ServerData, cfg : config.Config):
        self._serverData = serverData
        self._config = cfg
        self._config.ApplyDefaults(DEFAULT_CONFIG)
        self._enabled = bool(self._config.GetValue("enabled", True))
        self._warningMessage = self._config.GetValue("warningMessage", DEFAULT_CONFIG["warningMessage"])
        self._disbandMessage = self._config.GetValue("disbandMessage", DEFAULT_CONFIG["disbandMessage"])
        self._frequency = self._config.GetNumber("frequency", DEFAULT_CONFIG["frequency"], 0, exclusive=True)
        self._maxWarnings = int(self._config.GetNumber("maxWarnings", DEFAULT_CONFIG["maxWarnings"], 0))
        self._roundStartDelay = self._config.GetNumber("roundStartDelay", DEFAULT_CONFIG["roundStartDelay"], 0)
        self._validKits = kits.BuildKitSet(self._config.GetValue("validKits", None), self._config.GetValue("extraValidKits", None))
        self._roundPhase = RoundPhase()
        self._table = TrackingTable()
        self._checkInterval = timeout.Interval(self._frequency)
        self._disbandInterval = timeout.Interval(self._frequency)
        Log.info("SL kit check initialized, %d valid kits, checking every %s seconds, %d warnings before disband"
                 % (len(self._validKits), self._frequency, self._maxWarnings))

    def Start(self) -> bool:
        if not self._enabled:
            Log.info("SL kit check is disabled in config, not starting.")
            return True
        self._checkInterval.Start()
        self._disbandInterval.Start()
        return True

    def Finish(self):
        self._checkInterval.Stop()
        self._disbandInterval.Stop()
        self._roundPhase.Cancel()
        self._table.Clear()

    def GetTable(self) -> TrackingTable:
        return self._table

    def GetTrackedPlayers(self) -> list[TrackedPlayer]:
        return self._table.GetAll()

    def IsRoundStarting(self) -> bool:
        return self._roundPhase.IsStarting()

    def IsInvalidKit(self, cl : client.Client) -> bool:
        return cl.IsLeader() and cl.GetRole() not in self._validKits

    def OnNewGame(self):
        # squads do not survive the round change, neither do their warnings
        if len(self._table) > 0:
            Log.debug("New game, dropping %d tracked squad leaders" % len(self._table))
        self._table.Clear()
        self._roundPhase.Begin(self._roundStartDelay)
        Log.debug("New game, SL kit checks resume in %s seconds" % self._roundStartDelay)

    def OnClientDisconnect(self, cl : client.Client):
        if self._table.IsTracked(cl.GetId()):
            self.UntrackPlayer(cl.GetId())

    def UpdateTrackingList(self):
        if self._roundPhase.IsStarting():
            return

        self._serverData.API.RefreshRoster()

        present = set()
        for cl in self._serverData.API.GetAllClients():
            id = cl.GetId()
            present.add(id)
            isTracked = self._table.IsTracked(id) or self._table.IsQueued(id)
            if not self.IsInvalidKit(cl):
                if isTracked:
                    self.UntrackPlayer(id)
                continue
            if not isTracked:
                self.TrackPlayer(cl)

        for id in self._table.GetTrackedIds():
            if id not in present:
                Log.debug("Tracked squad leader %s has left the server" % id)
                self.UntrackPlayer(id)

    def TrackPlayer(self, cl : client.Client) -> TrackedPlayer:
        Log.debug(f"Tracking SL: {cl.GetName()} ({cl.GetRole()})")
        return self._table.Track(Player(cl), self._frequency)

    def UntrackPlayer(self, id : str):
        tracker = self._table.Untrack(id)
        if tracker != None:
            Log.debug(f"unTrack squad leader: {tracker.GetPlayer().GetName()}")

    def WarnTrackedPlayers(self):
        if self._roundPhase.IsStarting():
            return
        for tracker in self._table.GetAll():
            if not self._table.IsTracked(tracker.GetId()):
                continue
            if tracker.IsWarnDue():
                self._WarnTick(tracker)

    def _WarnTick(self, tracker : TrackedPlayer):
        player = tracker.GetPlayer()
        if tracker.GetWarnings() >= self._maxWarnings:
            # one tick past the last warning, the disband pass takes it from here
            self._table.QueueDisband(player.GetId())
            tracker.Cancel()
            return

        warnings = tracker.AddWarning()
        if warnings >= self._maxWarnings:
            self._table.QueueDisband(player.GetId())

        warningsText = f" ({warnings} / {self._maxWarnings})" if self._maxWarnings else ""
        self._serverData.interface.Warn(player.GetId(), f"{self._warningMessage}{warningsText}")
        Log.debug(f"SL kit warning: {player.GetName()}{warningsText}")

    def DisbandSquads(self):
        if self._roundPhase.IsStarting() or not self._table.HasQueued():
            return

        self.UpdateTrackingList()

        for id in self._table.GetQueued():
            tracker = self._table.Get(id)
            # Untrack also dequeues, only an entry queued without a record lands here
            if tracker == None:
                Log.debug("Squad leader %s left the disband queue before the disband pass" % id)
                continue
            self.UntrackPlayer(id)
            player = tracker.GetPlayer()
            if player.GetTeamId() == None or player.GetSquadId() == None:
                Log.warning(f"Cannot disband squad of {player.GetName()}, no team or squad recorded")
                continue

            self._serverData.interface.DisbandSquad(player.GetTeamId(), player.GetSquadId())
            self._serverData.interface.Warn(player.GetId(), self._disbandMessage)
            self._serverData.API.RaiseEvent(squadfingerEvent.SquadAutoDisbandedEvent(player, tracker.GetWarnings(), tracker.GetStartTime()))
            Log.info(f"Disbanded squad: {player.GetSquadId()} in team: {player.GetTeamId()} (leader {player.GetName()}, kit {player.GetRole()})")

        self._table.ClearQueue()

    def Loop(self):
        if self._checkInterval.Tick():
            self.UpdateTrackingList()
        self.WarnTrackedPlayers()
        if self._disbandInterval.Tick():
            self.DisbandSquads()

# Called once when this module ( plugin ) is loaded, return is bool to indicate success for the system
def OnInitialize(serverData : serverdata.ServerData, exports = None) -> bool:
    global SERVER_DATA
    SERVER_DATA = serverData # keep it stored
    cfg = config.Config.fromJSON(CONFIG_DEFAULT_PATH, CONFIG_FALLBACK)
    if cfg == None:
        Log.error("Unable to load SL kit check config, plugin will not run.")
        return False
    global PluginInstance
    PluginInstance = SLKitCheck(serverData, cfg)
    if exports != None:
        exports.Add("GetTrackedPlayers", PluginInstance.GetTrackedPlayers)
        exports.Add("IsRoundStarting", PluginInstance.IsRoundStarting)
    return True # indicate plugin load success

# Called once when platform starts, after platform is done with loading internal data and preparing
def OnStart():
    global PluginInstance
    return PluginInstance.Start()

# Called each loop tick from the system
def OnLoop():
    global PluginInstance
    PluginInstance.Loop()

# Called before plugin is unloaded by the system, finalize and free everything here
def OnFinish():
    global PluginInstance
    if PluginInstance != None:
        PluginInstance.Finish()

# Called from system on some event raising, return True to indicate event being captured in this module, False to continue tossing it to other plugins in chain
def OnEvent(event) -> bool:
    global PluginInstance
    if PluginInstance == None:
        return False

    if event.type == squadfingerEvent.SQUADFINGER_EVENT_TYPE_NEW_GAME:
        # a map load read back from the log on startup is not a fresh round
        if not event.isStartup:
            PluginInstance.OnNewGame()
        return False
    elif event.type == squadfingerEvent.SQUADFINGER_EVENT_TYPE_CLIENTDISCONNECT:
        PluginInstance.OnClientDisconnect(event.client)
        return False
    elif event.type == squadfingerEvent.SQUADFINGER_EVENT_TYPE_SHUTDOWN:
        return False
    return False

if __name__ == "__main__":
    print("This is a plugin for the Squadfinger platform. Run squadfinger.py and make sure this module's path is listed in squadfingerCfg.json.")
    exit()
