"""Plugin loading, hook dispatch and exception isolation."""

import textwrap
import pytest

import plugin
import squadfingerEvent
import plugins.shared.slkitcheck.slkitcheck as slkitcheck

PLUGIN_TEMPLATE = textwrap.dedent("""
    CALLS = []
    CAPTURE = {capture}

    def OnInitialize(serverData, exports=None):
        CALLS.append("init")
        exports.Add("Ping", lambda: "pong")
        return {initResult}

    def OnStart():
        CALLS.append("start")
        return True

    def OnLoop():
        CALLS.append("loop")
        {loopBody}

    def OnEvent(event):
        CALLS.append(("event", event.type))
        return CAPTURE

    def OnFinish():
        CALLS.append("finish")
        {finishBody}
""")


@pytest.fixture
def write_plugin(tmp_path, monkeypatch):
    monkeypatch.syspath_prepend(str(tmp_path))

    def _Write(name, capture=False, initResult=True, loopBody="pass", finishBody="pass"):
        source = PLUGIN_TEMPLATE.format(capture=capture, initResult=initResult, loopBody=loopBody, finishBody=finishBody)
        (tmp_path / (name + ".py")).write_text(source)
        return name
    return _Write


def test_plugins_load_start_and_finish(write_plugin, server_data):
    name = write_plugin("sqf_plain_plugin")
    manager = plugin.PluginManager()

    manager.Initialize([{"path": name}], server_data)
    assert manager.Start()
    manager.Loop()
    manager.Finish()
    manager.Finish()

    module = manager.GetPlugin(name)._module
    assert module.CALLS == ["init", "start", "loop", "finish"]
    assert manager.GetPlugin(name).GetExports().Get("Ping").pointer() == "pong"


def test_missing_or_failed_plugins_are_skipped(write_plugin, server_data):
    refused = write_plugin("sqf_refusing_plugin", initResult=False)
    manager = plugin.PluginManager()

    manager.Initialize([{"path": "sqf_does_not_exist"}, {"path": refused}], server_data)

    assert manager.GetPlugin("sqf_does_not_exist") is None
    assert manager.GetPlugin(refused) is None


def test_plugin_exceptions_do_not_escape(write_plugin, server_data):
    broken = write_plugin("sqf_broken_plugin", loopBody="raise RuntimeError('loop')", finishBody="raise RuntimeError('finish')")
    healthy = write_plugin("sqf_healthy_plugin")
    manager = plugin.PluginManager()
    manager.Initialize([{"path": broken}, {"path": healthy}], server_data)

    manager.Loop()
    manager.Finish()

    assert manager.GetPlugin(healthy)._module.CALLS[-2:] == ["loop", "finish"]


def test_captured_event_stops_dispatch(write_plugin, server_data):
    first = write_plugin("sqf_capturing_plugin", capture=True)
    second = write_plugin("sqf_second_plugin")
    manager = plugin.PluginManager()
    manager.Initialize([{"path": first}, {"path": second}], server_data)

    manager.Event(squadfingerEvent.Event(squadfingerEvent.SQUADFINGER_EVENT_TYPE_INIT, {}))

    assert ("event", squadfingerEvent.SQUADFINGER_EVENT_TYPE_INIT) in manager.GetPlugin(first)._module.CALLS
    assert not any(isinstance(c, tuple) for c in manager.GetPlugin(second)._module.CALLS)


def test_kit_check_loads_as_plugin(tmp_path, monkeypatch, server_data):
    monkeypatch.setattr(slkitcheck, "CONFIG_DEFAULT_PATH", str(tmp_path / "slkitcheckCfg.json"))
    manager = plugin.PluginManager()

    manager.Initialize([{"path": "plugins.shared.slkitcheck.slkitcheck"}], server_data)

    loaded = manager.GetPlugin("plugins.shared.slkitcheck.slkitcheck")
    assert loaded is not None
    assert manager.Start()
    assert loaded.GetExports().Get("GetTrackedPlayers").pointer() == []
    assert (tmp_path / "slkitcheckCfg.json").exists()
    manager.Finish()
