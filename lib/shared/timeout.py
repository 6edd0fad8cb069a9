import time;

class Timeout:
    def __init__(self):
        self._startS = 0;
        self._endS = 0;
        self._timeS = 0;

    def Set(self, seconds):
        self._startS = time.time();
        self._timeS = seconds;
        self._endS = self._startS + self._timeS;

    # Moves the deadline one period past the previous one, never into the past.
    def Rearm(self):
        now = time.time();
        self._startS = self._endS;
        self._endS = self._startS + self._timeS;
        if self._endS <= now:
            self._startS = now;
            self._endS = now + self._timeS;

    def Finish(self):
        self._timeS = 0
        self._startS = 0
        self._endS = 0

    def IsSet(self):
        return (self.Left() > 0);

    # Armed and not finished, elapsed or not.
    def IsArmed(self) -> bool:
        return self._endS != 0;

    def HasElapsed(self) -> bool:
        return self.IsArmed() and self.Left() == 0;

    def TimeStart(self) -> float:
        return self._startS;

    def Left(self):
        if self._endS == 0:
            return 0;
        left = self._endS - time.time();
        if left < 0:
            left = 0;
        return left;


class Interval:
    '''
    Repeating timer driven from a loop.

    Tick() returns True once per elapsed period; the next deadline is measured from the
    previous one, so a late loop tick does not shift the cadence.
    '''
    def __init__(self, seconds):
        self._periodS = seconds;
        self._timeout = Timeout();
        self._isRunning = False;

    def Start(self):
        self._timeout.Set(self._periodS);
        self._isRunning = True;

    def Stop(self):
        self._timeout.Finish();
        self._isRunning = False;

    def IsRunning(self) -> bool:
        return self._isRunning;

    def GetPeriod(self):
        return self._periodS;

    def Left(self):
        return self._timeout.Left();

    def Tick(self) -> bool:
        if not self._isRunning:
            return False;
        if not self._timeout.HasElapsed():
            return False;
        self._timeout.Rearm();
        return True;
