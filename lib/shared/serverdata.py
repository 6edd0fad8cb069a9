import squadfingerAPI;
import squadfingerinterface;

# Handed to every plugin on initialize, the host keeps the map fields current.
class ServerData():

    def __init__(self, API : squadfingerAPI.API, iface : squadfingerinterface.IServerInterface, args):
        self.API = API;
        self.args = args;
        self.interface = iface;
        self.mapName = "";
        self.layerName = "";

    def __repr__(self):
        return "Server data (map %s, layer %s)\n" % (self.mapName, self.layerName);
