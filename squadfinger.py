# platform imports
import os
import time
import traceback
import psutil
import logging
import argparse
import signal
import sys

Server = None
Args = None

def Sighandler(signum, frame):
    if signum == signal.SIGINT or signum == signal.SIGTERM:
        global Server
        if Server != None:
            Server.Stop()

def ParseArgs(argv = None):
    argparser = argparse.ArgumentParser(prog="Squadfinger", description="Python platform for Squad server moderation plugins")
    argparser.add_argument("-d", "--debug", action="store_true")
    argparser.add_argument("-lf", "--logfile", default="")
    argparser.add_argument("-c", "--config", default=None)
    return argparser.parse_args(argv)

Log = logging.getLogger(__name__)

# custom imports
import lib.shared.config as config
import lib.shared.serverdata as serverdata
import lib.shared.clientmanager as clientmanager
import lib.shared.timeout as timeout
import squadfingerEvent
import squadfingerAPI
import squadfingerinterface
import plugin
import logMessage

CONFIG_DEFAULT_PATH = os.path.join(os.getcwd(), "squadfingerCfg.json")
CONFIG_FALLBACK = \
"""{
    "Name":"Squadfinger",
    "serverFileName":"SquadGameServer",
    "logPath":"your/path/here/SquadGame/Saved/Logs/SquadGame.log",
    "logReadDelay":0.1,
    "logicDelay":0.05,
    "processWatchDelay":5,

    "interfaces":
    {
        "rcon":
        {
            "address":
            {
                "ip":"127.0.0.1",
                "port":21114
            },
            "password":"rconPassword",
            "timeout":5
        }
    },
    "interface":"rcon",

    "paths":
    [
        "./"
    ],

    "Plugins":
    [
        {
            "path":"plugins.shared.slkitcheck.slkitcheck"
        }
    ]
}
"""

# LogNet: Join succeeded: Bob
JOIN_SUCCEEDED_PREFIX = "LogNet: Join succeeded: "
# LogNet: UChannel::Close: Sending CloseBunch ... UniqueId: RedpointEOS:0002...
PLAYER_LEFT_PREFIX = "LogNet: UChannel::Close: Sending CloseBunch"


class SquadServer:

    STATUS_SERVER_JUST_AN_ERROR = -6
    STATUS_SERVER_NOT_RUNNING = -5
    STATUS_PLUGIN_ERROR = -4
    STATUS_RCON_ERROR = -2
    STATUS_CONFIG_ERROR = -1
    STATUS_INIT = 0
    STATUS_RUNNING = 1
    STATUS_FINISHING = 2
    STATUS_FINISHED = 3
    STATUS_STOPPING = 4
    STATUS_STOPPED = 5

    @staticmethod
    def StatusString(statusId):
        if statusId == SquadServer.STATUS_INIT:
            return "Status : Initialized Ok."
        elif statusId == SquadServer.STATUS_CONFIG_ERROR:
            return "Status : Error at configuration load."
        elif statusId == SquadServer.STATUS_RCON_ERROR:
            return "Status : Unable to open the server interface."
        elif statusId == SquadServer.STATUS_PLUGIN_ERROR:
            return "Status : Plugin failed to initialize."
        elif statusId == SquadServer.STATUS_SERVER_NOT_RUNNING:
            return "Status : Server process is not running."
        else:
            return "Unknown status id."

    @staticmethod
    def ValidateConfig(cfg : config.Config) -> bool:
        if cfg == None:
            return False
        curVar = cfg.GetValue("logPath", None)
        if curVar == None or curVar.startswith("your/path/here/"):
            Log.error("logPath is not configured.")
            return False
        curVar = cfg.GetValue("serverFileName", None)
        if curVar == None or curVar == "":
            Log.error("serverFileName is not configured.")
            return False
        curVar = cfg.GetValue("interface", None)
        if curVar != "rcon":
            Log.error("Only the rcon interface is supported.")
            return False
        rconCfg = cfg.GetValue("interfaces", {}).get("rcon")
        if rconCfg == None or "address" not in rconCfg or "password" not in rconCfg:
            Log.error("interfaces.rcon needs an address and a password.")
            return False
        return True

    def GetStatus(self):
        return self._status

    def __init__(self, args, configPath = CONFIG_DEFAULT_PATH):
        self._isFinished = False
        self._isRunning = False
        self._pluginManager = None
        self._svInterface = None
        self._args = args

        startTime = time.time()
        self._status = SquadServer.STATUS_INIT
        Log.info("Initializing Squadfinger...")
        # Config load first
        self._config = config.Config.fromJSON(configPath, CONFIG_FALLBACK)
        if not SquadServer.ValidateConfig(self._config):
            self._status = SquadServer.STATUS_CONFIG_ERROR
            return

        for path in self._config.GetValue("paths", []):
            sys.path.append(os.path.normpath(path))
        Log.debug("System path total %s", str(sys.path))

        rconCfg = self._config.cfg["interfaces"]["rcon"]
        self._svInterface = squadfingerinterface.RconInterface(rconCfg["address"]["ip"],
                                                               int(rconCfg["address"]["port"]),
                                                               rconCfg["password"],
                                                               self._config.cfg["logPath"],
                                                               self._config.GetValue("logReadDelay", 0.1),
                                                               rconCfg.get("timeout", 5))
        if not self._svInterface.Open():
            Log.error("Unable to Open server interface.")
            self._status = SquadServer.STATUS_RCON_ERROR
            return
        self._svInterface.WaitUntilReady()

        # Client management
        self._clientManager = clientmanager.ClientManager()

        # Server data handling
        exportAPI = squadfingerAPI.API()
        exportAPI.RefreshRoster     = self.API_RefreshRoster
        exportAPI.GetClientCount    = self.API_GetClientCount
        exportAPI.GetClientById     = self.API_GetClientById
        exportAPI.GetClientByName   = self.API_GetClientByName
        exportAPI.GetAllClients     = self.API_GetAllClients
        exportAPI.GetCurrentMap     = self.API_GetCurrentMap
        exportAPI.RaiseEvent        = self.API_RaiseEvent
        exportAPI.GetPlugin         = self.API_GetPlugin
        self._serverData = serverdata.ServerData(exportAPI, self._svInterface, args)

        # Plugins
        self._pluginManager = plugin.PluginManager()
        if not self._pluginManager.Initialize(self._config.GetValue("Plugins", []), self._serverData):
            self._status = SquadServer.STATUS_PLUGIN_ERROR
            return
        self._logicDelayS = self._config.GetValue("logicDelay", 0.05)
        self._processWatch = timeout.Interval(self._config.GetValue("processWatchDelay", 5))
        self._processAlive = True

        Log.info("Squadfinger initialized in %.2f seconds!" % (time.time() - startTime))

    def Finish(self):
        if not self._isFinished:
            Log.info("Finishing Squadfinger...")
            self._status = SquadServer.STATUS_FINISHING
            self.Stop()
            if self._pluginManager is not None:
                self._pluginManager.Event(squadfingerEvent.Event(squadfingerEvent.SQUADFINGER_EVENT_TYPE_SHUTDOWN, None))
                self._pluginManager.Finish()
            if self._svInterface is not None:
                self._svInterface.Close()
            self._status = SquadServer.STATUS_FINISHED
            self._isFinished = True
            Log.info("Finished Squadfinger.")

    def _IsServerProcessRunning(self) -> bool:
        name = self._config.cfg["serverFileName"]
        for proc in psutil.process_iter(["name"]):
            procName = proc.info.get("name") or ""
            if procName.startswith(name):
                return True
        return False

    def _FetchStatus(self):
        current = self._svInterface.GetCurrentMap()
        if current != None:
            self._serverData.mapName, self._serverData.layerName = current
            Log.info("Current map %s, layer %s" % current)
        else:
            Log.warning("Server current map is unreachable.")
        self.API_RefreshRoster()
        Log.info("Roster holds %d players." % self._clientManager.GetClientCount())

    def Start(self):
        try:
            if not self._IsServerProcessRunning():
                self._status = SquadServer.STATUS_SERVER_NOT_RUNNING
                if not self._args.debug:
                    Log.error("Server is not running, start the server first, terminating...")
                    return
                else:
                    Log.debug("Running in debug mode and server process is not found, continuing.")

            self._FetchStatus()

            if not self._pluginManager.Start():
                self._status = SquadServer.STATUS_PLUGIN_ERROR
                return
            self._isRunning = True
            self._status = SquadServer.STATUS_RUNNING
            self._processWatch.Start()
            self._pluginManager.Event(squadfingerEvent.Event(squadfingerEvent.SQUADFINGER_EVENT_TYPE_INIT, {"map" : self._serverData.mapName}))
            while self._isRunning:
                startTime = time.time()
                self.Loop()
                elapsed = time.time() - startTime
                sleepTime = self._logicDelayS - elapsed
                if sleepTime <= 0:
                    sleepTime = 0
                time.sleep(sleepTime)

        except KeyboardInterrupt:
            Log.info("Interrupt recieved.")
            self.Stop()

    def Stop(self):
        if self._isRunning:
            Log.info("Stopping Squadfinger...")
            self._status = SquadServer.STATUS_STOPPING
            self._isRunning = False
            self._status = SquadServer.STATUS_STOPPED
            Log.info("Stopped.")

    def Loop(self):
        messages = self._svInterface.GetMessages()
        while not messages.empty():
            message = messages.get()
            self._ParseMessage(message)
        if self._processWatch.Tick():
            self._WatchProcess()
        self._pluginManager.Loop()

    def _WatchProcess(self):
        alive = self._IsServerProcessRunning()
        if alive == self._processAlive:
            return
        self._processAlive = alive
        if alive:
            Log.info("Server process is back online.")
            self._pluginManager.Event(squadfingerEvent.Event(squadfingerEvent.SQUADFINGER_EVENT_TYPE_WD_STARTED, None))
        else:
            Log.warning("Server process has died.")
            self._pluginManager.Event(squadfingerEvent.Event(squadfingerEvent.SQUADFINGER_EVENT_TYPE_WD_DIED, None))

    def _ParseMessage(self, message : logMessage.LogMessage):
        line = message.content
        newGame = squadfingerinterface.ParseNewGame(line)
        if newGame != None:
            self.OnNewGame(newGame[0], newGame[1], message.isStartup)
        elif line.startswith(JOIN_SUCCEEDED_PREFIX):
            self.OnJoinSucceeded(message)
        elif line.startswith(PLAYER_LEFT_PREFIX):
            self.OnPlayerLeft(message)

    def OnNewGame(self, mapName : str, layerName : str, isStartup = False):
        Log.info("New game on %s ( %s )" % (mapName, layerName))
        self._serverData.mapName = mapName
        self._serverData.layerName = layerName
        self._pluginManager.Event(squadfingerEvent.NewGameEvent(mapName, layerName, isStartup = isStartup))

    # Join and leave lines carry too little to identify the player reliably, the roster diff does.
    def OnJoinSucceeded(self, message : logMessage.LogMessage):
        Log.debug("Join log entry %s", message.content)
        self._SyncRoster(message.isStartup)

    def OnPlayerLeft(self, message : logMessage.LogMessage):
        Log.debug("Player left log entry %s", message.content)
        self._SyncRoster(message.isStartup)

    def _SyncRoster(self, isStartup = False):
        added, removed, changed = self._clientManager.Sync(self._svInterface.ListPlayers())
        for cl in added:
            self._pluginManager.Event(squadfingerEvent.ClientConnectEvent(cl, None, isStartup = isStartup))
        for cl in changed:
            self._pluginManager.Event(squadfingerEvent.ClientChangedEvent(cl, changed[cl], isStartup = isStartup))
        for cl in removed:
            self._pluginManager.Event(squadfingerEvent.ClientDisconnectEvent(cl, None, isStartup = isStartup))

    # API export functions
    def API_RefreshRoster(self):
        self._SyncRoster()

    def API_GetClientById(self, id):
        return self._clientManager.GetClientById(id)

    def API_GetClientByName(self, name):
        return self._clientManager.GetClientByName(name)

    def API_GetAllClients(self):
        return self._clientManager.GetAllClients()

    def API_GetClientCount(self):
        return self._clientManager.GetClientCount()

    def API_GetCurrentMap(self):
        return "" + self._serverData.mapName

    def API_RaiseEvent(self, event : squadfingerEvent.Event):
        self._pluginManager.Event(event)

    def API_GetPlugin(self, name) -> plugin.Plugin:
        return self._pluginManager.GetPlugin(name)

def InitLogger(args):
    loggingMode = logging.INFO
    loggingFile = ""

    if args.debug:
        print("DEBUGGING MODE.")
        loggingMode = logging.DEBUG
    if args.logfile:
        # Add timestamp to log file so they don't get overwritten
        if os.path.exists(args.logfile):
            loggingFile = args.logfile + '-' + time.strftime("%m%d%Y_%H%M%S", time.localtime(time.time()))
        else:
            loggingFile = args.logfile
        print(f"Logging into file {loggingFile}")

    if loggingFile != "":
        logging.basicConfig(
        filename = loggingFile,
        level = loggingMode,
        filemode = 'a',
        format='%(asctime)s %(levelname)08s %(name)s %(message)s',
        )
    else:
        logging.basicConfig(
        level = loggingMode,
        format='%(asctime)s %(levelname)08s %(name)s %(message)s',
        )

def main(argv = None):
    global Args
    Args = ParseArgs(argv)
    InitLogger(Args)
    signal.signal(signal.SIGINT, Sighandler)
    signal.signal(signal.SIGTERM, Sighandler)
    Log.info("Squadfinger entry point.")
    global Server
    Server = SquadServer(Args, Args.config if Args.config else CONFIG_DEFAULT_PATH)
    status = Server.GetStatus()
    if status == SquadServer.STATUS_INIT:
        try:
            Server.Start()  # it will exit the Start on user shutdown
        except Exception as e:
            Log.error(f"ERROR occurred: Type: {type(e)}; Reason: {e}; Traceback: {traceback.format_exc()}")
        status = Server.GetStatus()
        if status == SquadServer.STATUS_SERVER_NOT_RUNNING:
            print("Unable to start with not running server for safety measures, abort init.")
    else:
        Log.info("Squadfinger initialize error %s" % (SquadServer.StatusString(status)))
    Server.Finish()
    Server = None
    return 0 if status == SquadServer.STATUS_STOPPED else 1


if __name__ == "__main__":
    sys.exit(main())
