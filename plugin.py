import importlib.util
import logging;
import importlib;
import time;
import traceback;

Log = logging.getLogger(__name__);

class ExportInstance():
    def __init__(self, name : str, pointer : any, isFunc : bool = True ):
        self.name = name;
        self.pointer = pointer;
        self.isfunc = isFunc;

class ExportTable():
    def __init__(self):
        self.instances = list[ExportInstance]();

    def Add(self, name : str, pointer : any, isFunc : bool = True):
        self.instances.append(ExportInstance(name, pointer, isFunc));

    def Get(self, name) -> ExportInstance:
        for inst in self.instances:
            if inst.name == name:
                return inst;
        return None;

    def copy(self):
        rslt = ExportTable();
        rslt.instances = self.instances.copy();
        return rslt;

class Plugin():

    def __init__(self, module):
        self._module = module;
        self._onInitialize = None;
        self._onStart = None;
        self._onLoop = None;
        self._onEvent = None;
        self._onFinish = None;
        self._isFinished = False;
        self._exports = ExportTable();

    def GetName(self) -> str:
        return self._module.__name__;

    def Initialize(self, data : any) -> bool:
        self._onInitialize  = getattr(self._module, "OnInitialize");
        self._onStart       = getattr(self._module, "OnStart");
        self._onLoop        = getattr(self._module, "OnLoop");
        self._onEvent       = getattr(self._module, "OnEvent");
        self._onFinish      = getattr(self._module, "OnFinish");
        return self._onInitialize(data, self._exports);

    def Finish(self):
        if self._isFinished:
            return;
        Log.info("Finishing Plugin %s...", self.GetName());
        self._isFinished = True;
        try:
            self._onFinish();
        except Exception as ex:
            Log.error("Exception [%s] caught on Finish for plugin [%s]\n %s", str(ex), self.GetName(), traceback.format_exc());
        Log.info("Finished Plugin %s.", self.GetName());

    def Start(self) -> bool:
        startTime = time.time();
        Log.info("Starting Plugin %s.", self.GetName());
        rslt = self._onStart();
        if rslt:
            Log.info("Plugin %s has started in %.2f seconds." % (self.GetName(), time.time() - startTime));
        return rslt;

    def Loop(self):
        try:
            self._onLoop();
        except Exception as ex:
            Log.error("Exception [%s] caught on Loop tick for plugin [%s]\n %s", str(ex), self.GetName(), traceback.format_exc());

    def Event(self, event) -> bool:
        try:
            return bool(self._onEvent(event));
        except Exception as ex:
            Log.error("Exception [%s] caught on Event call for plugin [%s]\n %s", str(ex), self.GetName(), traceback.format_exc());
            return False;

    def GetExports(self):
        return self._exports.copy();

class PluginManager():
    def __init__(self):
        self._isInit = False;
        self._plugins = {};
        self._isFinished = False;

    def Initialize(self, targetPlugins : list, data : any) -> bool:
        Log.info("Loading plugins...");
        totalLoaded = 0;
        for targetPlug in targetPlugins:
            plug = self.LoadPlugin(targetPlug["path"], data);
            if plug != None:
                self._plugins[targetPlug["path"]] = plug;
                totalLoaded += 1;
        Log.info("Loaded total %d plugins. "% (totalLoaded));
        self._isInit = True;
        return self._isInit;

    def Start(self) -> bool:
        rslt = True;
        for targetPlug in self._plugins:
            rslt = self._plugins[targetPlug].Start();
            if not rslt:
                Log.error("Failed to start plugin %s." % targetPlug);
                return rslt;
        return rslt;

    def LoadPlugin(self, name, data : any):
        Log.info("Loading plugin %s...", name);
        try:
            plugSpec = importlib.util.find_spec(name);
        except ModuleNotFoundError:
            plugSpec = None;
        if plugSpec == None:
            Log.error("Unable to locate plugin %s" % name);
            return None;
        Log.debug("Full path to target module %s" % plugSpec.origin);
        try:
            mod = importlib.import_module(name, package=None);
        except Exception as ex:
            Log.error("Plugin %s was unable to load : %s\n %s" % (name, str(ex), traceback.format_exc()));
            return None;
        newPlug = Plugin(mod);
        startTime = time.time();
        if not newPlug.Initialize(data):
            Log.error("Plugin %s has failed to initialize." % name);
            return None;
        Log.info("Plugin %s has been Loaded and Initialized in %.2f seconds." % (mod.__name__, time.time() - startTime));
        return newPlug;

    def Finish(self):
        if not self._isFinished:
            Log.info("Finishing plugin manager...");
            for plugin in self._plugins:
                self._plugins[plugin].Finish();
            self._isFinished = True;
            Log.info("Finished plugin manager.");

    def Loop(self):
        for plugin in self._plugins:
            self._plugins[plugin].Loop();

    def Event(self, event):
        for plugin in self._plugins:
            if self._plugins[plugin].Event(event): # handle hard capture return
                return;

    def GetPlugin(self, plugName):
        if plugName in self._plugins:
            return self._plugins[plugName];
        else:
            return None;
