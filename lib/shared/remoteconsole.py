import socket;
import struct;
import threading;
import logging;
import lib.shared.timeout as timeout;

Log = logging.getLogger(__name__);

# Source RCON packet types, EXECCOMMAND and AUTH_RESPONSE share the value.
SERVERDATA_RESPONSE_VALUE = 0;
SERVERDATA_CHAT_VALUE     = 1; # squad pushes chat lines over the same connection
SERVERDATA_AUTH_RESPONSE  = 2;
SERVERDATA_EXECCOMMAND    = 2;
SERVERDATA_AUTH           = 3;

AUTH_FAILED_ID = -1;
HEADER_SIZE    = 4;
MIN_PACKET_LEN = 10; # id + type + two terminating nulls
MAX_PACKET_LEN = 4096 + MIN_PACKET_LEN;

class RconError(ConnectionError):
    pass

class RconAuthError(RconError):
    pass

class Packet(object):
    def __init__(self, id : int, type : int, body : bytes):
        self.id = id;
        self.type = type;
        self.body = body;

    def __repr__(self):
        return "Packet (id %d) (type %d) (body %r)" % (self.id, self.type, self.body);

def EncodePacket(id : int, ptype : int, body) -> bytes:
    if not type(body) == bytes:
        body = bytes(body, "UTF-8");
    payload = struct.pack("<ii", id, ptype) + body + b"\x00\x00";
    return struct.pack("<i", len(payload)) + payload;

# Returns ( packet, remaining bytes ), packet is None while the buffer holds an incomplete frame.
def DecodePacket(data : bytes):
    if len(data) < HEADER_SIZE:
        return None, data;
    size = struct.unpack_from("<i", data, 0)[0];
    if size < MIN_PACKET_LEN or size > MAX_PACKET_LEN:
        raise RconError("Malformed RCON packet size %d" % size);
    end = HEADER_SIZE + size;
    if len(data) < end:
        return None, data;
    id, ptype = struct.unpack_from("<ii", data, HEADER_SIZE);
    body = data[HEADER_SIZE + 8:end - 2];
    return Packet(id, ptype, body), data[end:];


class RCON(object):
    def __init__(self, address, password, requestTimeout = 5.0):
        self._address = address;
        self._password = password;
        self._requestTimeout = requestTimeout;
        self._sockLock = threading.Lock();
        self._sock = None;
        self._isOpened = False;
        self._nextId = 1;
        self._inBuf = b'';
        self._bytesSent = 0;
        self._bytesRead = 0;
        self._deadline = timeout.Timeout();

    def __del__(self):
        if self._isOpened:
            self.Close();

    def Open(self) -> bool:
        if self._isOpened:
            return True;
        try:
            self._sock = socket.create_connection(self._address, timeout=self._requestTimeout);
        except OSError as ex:
            Log.error("Unable to connect to RCON at %s:%s : %s" % (self._address[0], self._address[1], str(ex)));
            return False;
        self._inBuf = b'';
        self._isOpened = True;
        try:
            self._Authenticate();
        except RconError:
            self.Close();
            raise;
        Log.info("RCON connection to %s:%s authenticated." % (self._address[0], self._address[1]));
        return True;

    def Close(self):
        if self._isOpened:
            with self._sockLock:
                try:
                    self._sock.close();
                except OSError:
                    pass;
                self._sock = None;
            self._isOpened = False;

    def IsOpened(self) -> bool:
        return self._isOpened;

    def _NewId(self) -> int:
        id = self._nextId;
        self._nextId += 1;
        if self._nextId >= 0x7fffffff:
            self._nextId = 1;
        return id;

    def _Send(self, id : int, ptype : int, body : str):
        payload = EncodePacket(id, ptype, body);
        try:
            self._sock.sendall(payload);
        except OSError as ex:
            self.Close();
            raise RconError("RCON send failed : %s" % str(ex));
        self._bytesSent += len(payload);

    def _ReadPacket(self) -> Packet:
        while True:
            packet, self._inBuf = DecodePacket(self._inBuf);
            if packet != None:
                return packet;
            if not self._deadline.IsSet():
                raise RconError("RCON request timed out.");
            try:
                self._sock.settimeout(max(self._deadline.Left(), 0.001));
                chunk = self._sock.recv(4096);
            except socket.timeout:
                continue;
            except OSError as ex:
                self.Close();
                raise RconError("RCON read failed : %s" % str(ex));
            if chunk == b'':
                self.Close();
                raise RconError("Remote host closed the RCON connection.");
            self._bytesRead += len(chunk);
            self._inBuf += chunk;

    def _Authenticate(self):
        with self._sockLock:
            id = self._NewId();
            self._deadline.Set(self._requestTimeout);
            self._Send(id, SERVERDATA_AUTH, self._password);
            while True:
                packet = self._ReadPacket();
                if packet.type != SERVERDATA_AUTH_RESPONSE:
                    continue; # empty RESPONSE_VALUE precedes the auth result
                if packet.id == AUTH_FAILED_ID:
                    raise RconAuthError("RCON authentication rejected, check the password.");
                if packet.id == id:
                    return;

    # Sends a command and waits for its full, possibly multi-packet, response.
    def Request(self, command : str) -> str:
        if not self.IsOpened():
            raise RconError("RCON is not connected.");
        with self._sockLock:
            id = self._NewId();
            marker = self._NewId();
            self._deadline.Set(self._requestTimeout);
            self._Send(id, SERVERDATA_EXECCOMMAND, command);
            # the server answers an empty RESPONSE_VALUE after it finished the command
            self._Send(marker, SERVERDATA_RESPONSE_VALUE, "");
            chunks = [];
            while True:
                packet = self._ReadPacket();
                if packet.type == SERVERDATA_CHAT_VALUE:
                    continue;
                if packet.id == marker:
                    break;
                if packet.id == id and packet.type == SERVERDATA_RESPONSE_VALUE:
                    chunks.append(packet.body);
            # the marker echo can be followed by a stray frame, drop anything already buffered for it
            self._inBuf = b'';
        return b''.join(chunks).decode("UTF-8", errors="replace");

    def ListPlayers(self) -> str:
        return self.Request("ListPlayers");

    def ListSquads(self) -> str:
        return self.Request("ListSquads");

    def ShowCurrentMap(self) -> str:
        return self.Request("ShowCurrentMap");

    def AdminWarn(self, id : str, msg : str) -> str:
        return self.Request('AdminWarn "%s" %s' % (id, msg));

    def AdminBroadcast(self, msg : str) -> str:
        return self.Request("AdminBroadcast %s" % msg);

    def AdminDisbandSquad(self, teamId : int, squadId : int) -> str:
        return self.Request("AdminDisbandSquad %d %d" % (teamId, squadId));
