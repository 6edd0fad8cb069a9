# Functions are bound by the host before plugins are loaded.
class API():
    def __init__(self):
        self.RefreshRoster = None
        self.GetClientCount = None
        self.GetClientById = None
        self.GetClientByName = None
        self.GetAllClients = None
        self.GetCurrentMap = None
        self.RaiseEvent = None
        self.GetPlugin = None
