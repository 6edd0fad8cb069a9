"""Host side: log line parsing, config validation and event dispatch from log messages."""

import json
import argparse
import pytest

import lib.shared.config as config
import logMessage
import squadfinger
import squadfingerEvent
import squadfingerinterface


# ==========================================================================
# Log lines
# ==========================================================================

class TestLogLines:

    def test_prefix_is_split(self):
        message = logMessage.LogMessage("[2024.03.10-18.22.41:311][ 54]LogNet: Join succeeded: Bob")

        assert message.timestamp == "2024.03.10-18.22.41:311"
        assert message.chainId == 54
        assert message.content == "LogNet: Join succeeded: Bob"
        assert not message.isStartup

    def test_line_without_prefix_is_kept_whole(self):
        message = logMessage.LogMessage("Log file open, 03/10/24 18:20:01", True)

        assert message.timestamp is None
        assert message.content == "Log file open, 03/10/24 18:20:01"
        assert message.isStartup

    @pytest.mark.parametrize("content, expected", [
        ("LogWorld: Bringing World /Game/Maps/Narva/Gameplay_Layers/Narva_RAAS_v1.Narva_RAAS_v1 up for play (max tick rate 50) at 2024.03.10-20.22.41", ("Narva", "Narva_RAAS_v1")),
        ("LogWorld: Bringing World /Game/Maps/Yehorivka/Gameplay_Layers/Yehorivka_AAS_v2.Yehorivka_AAS_v2 up for play (max tick rate 50) at 2024.03.10-21.05.12", ("Yehorivka", "Yehorivka_AAS_v2")),
        ("LogWorld: Bringing World /Game/Maps/TransitionMap/TransitionMap.TransitionMap up for play (max tick rate 50) at 2024.03.10-20.21.58", None),
        ("LogWorld: Bringing up level for play took: 0.6", None),
        ("LogNet: Join succeeded: Bob", None),
    ])
    def test_new_game_lines(self, content, expected):
        assert squadfingerinterface.ParseNewGame(content) == expected

    def test_prestart_read_finds_last_map_load(self, tmp_path):
        logPath = tmp_path / "SquadGame.log"
        logPath.write_text(
            "[2024.03.10-18.00.02:101][  0]LogWorld: Bringing World /Game/Maps/Narva/Gameplay_Layers/Narva_RAAS_v1.Narva_RAAS_v1 up for play (max tick rate 50) at 2024.03.10-18.00.02\n"
            "[2024.03.10-19.10.40:017][812]LogWorld: Bringing World /Game/Maps/TransitionMap/TransitionMap.TransitionMap up for play (max tick rate 50) at 2024.03.10-19.10.40\n"
            "[2024.03.10-19.10.55:530][840]LogWorld: Bringing World /Game/Maps/Yehorivka/Gameplay_Layers/Yehorivka_AAS_v2.Yehorivka_AAS_v2 up for play (max tick rate 50) at 2024.03.10-19.10.55\n"
            "[2024.03.10-19.11.30:004][901]LogNet: Join succeeded: Bob\n"
        )
        iface = squadfingerinterface.RconInterface("127.0.0.1", 21114, "secret", str(logPath))

        prestart = iface._ReadPrestart()

        assert len(prestart) == 1
        assert prestart[0].isStartup
        assert squadfingerinterface.ParseNewGame(prestart[0].content) == ("Yehorivka", "Yehorivka_AAS_v2")


# ==========================================================================
# Config validation
# ==========================================================================

def ValidConfig(**overrides):
    data = json.loads(squadfinger.CONFIG_FALLBACK)
    data["logPath"] = "/srv/squad/SquadGame/Saved/Logs/SquadGame.log"
    data.update(overrides)
    return config.Config(data)


class TestValidateConfig:

    def test_configured_file_passes(self):
        assert squadfinger.SquadServer.ValidateConfig(ValidConfig())

    def test_fallback_log_path_is_rejected(self):
        assert not squadfinger.SquadServer.ValidateConfig(config.Config.FromJSONString(squadfinger.CONFIG_FALLBACK))

    def test_unknown_interface_is_rejected(self):
        assert not squadfinger.SquadServer.ValidateConfig(ValidConfig(interface="telnet"))

    def test_rcon_without_password_is_rejected(self):
        cfg = ValidConfig()
        del cfg.cfg["interfaces"]["rcon"]["password"]
        assert not squadfinger.SquadServer.ValidateConfig(cfg)

    def test_missing_config_is_rejected(self):
        assert not squadfinger.SquadServer.ValidateConfig(None)


# ==========================================================================
# Message handling
# ==========================================================================

class StubInterface(squadfingerinterface.AServerInterface):
    rows = []

    def __init__(self, *args):
        super().__init__()
        self.args = args

    def Open(self):
        self._isOpened = True
        self._isReady = True
        return True

    def ListPlayers(self):
        return [dict(row) for row in StubInterface.rows]

    def GetCurrentMap(self):
        return ("Narva", "Narva_RAAS_v1")


@pytest.fixture
def server(tmp_path, monkeypatch):
    StubInterface.rows = []
    monkeypatch.setattr(squadfingerinterface, "RconInterface", StubInterface)
    cfgPath = tmp_path / "squadfingerCfg.json"
    data = json.loads(squadfinger.CONFIG_FALLBACK)
    data["logPath"] = str(tmp_path / "SquadGame.log")
    data["paths"] = []
    data["Plugins"] = []
    cfgPath.write_text(json.dumps(data))

    srv = squadfinger.SquadServer(argparse.Namespace(debug=True, logfile=""), str(cfgPath))
    events = []
    monkeypatch.setattr(srv._pluginManager, "Event", events.append)
    srv.events = events
    return srv


class TestMessages:

    def test_server_initializes_with_stub_interface(self, server):
        assert server.GetStatus() == squadfinger.SquadServer.STATUS_INIT

    def test_new_game_line_raises_event(self, server):
        server._svInterface.PutMessage(logMessage.LogMessage(
            "[2024.03.10-18.22.41:311][ 54]LogWorld: Bringing World /Game/Maps/Narva/Gameplay_Layers/Narva_RAAS_v1.Narva_RAAS_v1 up for play (max tick rate 50) at 2024.03.10-18.22.41"))

        server.Loop()

        assert len(server.events) == 1
        event = server.events[0]
        assert event.type == squadfingerEvent.SQUADFINGER_EVENT_TYPE_NEW_GAME
        assert (event.mapName, event.layerName) == ("Narva", "Narva_RAAS_v1")
        assert server.API_GetCurrentMap() == "Narva"

    def test_join_and_leave_lines_sync_roster(self, server, make_row):
        StubInterface.rows = [make_row("a", "Alpha", "USA_SL_01")]
        server._svInterface.PutMessage(logMessage.LogMessage("[2024.03.10-18.22.41:311][ 60]LogNet: Join succeeded: Alpha"))
        server.Loop()

        StubInterface.rows = []
        server._svInterface.PutMessage(logMessage.LogMessage("[2024.03.10-18.25.02:004][ 99]LogNet: UChannel::Close: Sending CloseBunch. ChIndex == 0."))
        server.Loop()

        assert [e.type for e in server.events] == [
            squadfingerEvent.SQUADFINGER_EVENT_TYPE_CLIENTCONNECT,
            squadfingerEvent.SQUADFINGER_EVENT_TYPE_CLIENTDISCONNECT,
        ]
        assert server.API_GetClientCount() == 0

    def test_role_change_raises_changed_event(self, server, make_row):
        StubInterface.rows = [make_row("a", "Alpha", "USA_Rifleman_01")]
        server.API_RefreshRoster()
        StubInterface.rows = [make_row("a", "Alpha", "USA_SL_01")]
        server.API_RefreshRoster()

        changed = server.events[-1]
        assert changed.type == squadfingerEvent.SQUADFINGER_EVENT_TYPE_CLIENTCHANGED
        assert changed.data == {"role": "USA_Rifleman_01"}

    def test_finish_sends_shutdown(self, server):
        server.Finish()

        assert server.events[-1].type == squadfingerEvent.SQUADFINGER_EVENT_TYPE_SHUTDOWN
        assert server.GetStatus() == squadfinger.SquadServer.STATUS_FINISHED

    def test_plugin_api_reaches_the_host(self, server, make_row):
        StubInterface.rows = [make_row("a", "Alpha", "USA_SL_01", playerId=4)]
        api = server._serverData.API

        api.RefreshRoster()

        assert api.GetClientCount() == 1
        assert api.GetClientByName("Alpha").GetPlayerId() == 4
        assert api.GetClientById("a") is api.GetAllClients()[0]
        assert api.GetPlugin("plugins.shared.slkitcheck.slkitcheck") is None
        assert server._serverData.interface is server._svInterface
