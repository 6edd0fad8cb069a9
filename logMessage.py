import re

# [2024.03.10-18.22.41:311][ 54]LogWorld: Bringing World ...
LINE_PREFIX_RE = re.compile(r"^\[(?P<time>[0-9.:-]+)\]\[(?P<chain>[ 0-9]*)\](?P<content>.*)$")

class LogMessage(object):
    def __init__(self, line : str, isStartup = False):
        self.raw = line
        self.isStartup = isStartup
        self.timestamp = None
        self.chainId = None
        match = LINE_PREFIX_RE.match(line)
        if match != None:
            self.timestamp = match.group("time")
            chain = match.group("chain").strip()
            self.chainId = int(chain) if chain != "" else None
            self.content = match.group("content")
        else:
            self.content = line

    def __repr__(self):
        return "LogMessage (%s) %s" % (self.timestamp, self.content)
