import lib.shared.client as client;
import threading;
import logging;

Log = logging.getLogger(__name__);

class ClientManager():
    def __init__(self):
        self._clients = [];
        self._lock = threading.Lock();

    def Reset(self):
        with self._lock:
            self._clients.clear();

    def GetClientCount(self) -> int:
        with self._lock:
            return len(self._clients);

    def GetAllClients(self) -> list[client.Client]:
        with self._lock:
            return self._clients.copy();

    def GetClientById(self, id) -> client.Client:
        with self._lock:
            for client in self._clients:
                if client.GetId() == id:
                    return client;
        return None;

    def GetClientByName(self, name : str )-> client.Client:
        with self._lock:
            for client in self._clients:
                if client.GetName() == name:
                    return client;
        return None;

    def AddClient(self, client : client.Client):
        with self._lock:
            if client not in self._clients:
                self._clients.append(client);

    def RemoveClient(self, client : client.Client):
        with self._lock:
            if client in self._clients:
                self._clients.remove(client);

    def RemoveClientById(self, id : str):
        client = self.GetClientById(id);
        if client != None:
            self.RemoveClient(client);

    # Makes the roster match a fresh ListPlayers result.
    # Returns ( added clients, removed clients, { client : changed data } ).
    def Sync(self, rows : list[dict]):
        added = [];
        removed = [];
        changed = {};
        seen = set();
        for row in rows:
            id = row["id"];
            if id in seen:
                Log.warning("Duplicate player id %s in player list, ignoring the repeat." % id);
                continue;
            seen.add(id);
            existing = self.GetClientById(id);
            if existing == None:
                newClient = client.Client(id, row["name"], row.get("playerId", -1));
                newClient.Update(row);
                self.AddClient(newClient);
                added.append(newClient);
            else:
                diff = existing.Update(row);
                if len(diff) > 0:
                    changed[existing] = diff;
        for cl in self.GetAllClients():
            if cl.GetId() not in seen:
                self.RemoveClient(cl);
                removed.append(cl);
        Log.debug("Roster synced, %d added, %d removed, %d changed" % (len(added), len(removed), len(changed)));
        return added, removed, changed;
