TEAM_INVALID = -1;
TEAM_ONE     = 1;
TEAM_TWO     = 2;
TEAM_COUNT   = 2;

TEAMS = {
TEAM_ONE : "Team 1",
TEAM_TWO : "Team 2",
}

def TranslateTeam(num):
    if num in TEAMS:
        return TEAMS[num]
    return "Unassigned"

def IsRealTeam(teamId : int ) -> bool:
    return teamId == TEAM_ONE or teamId == TEAM_TWO;

# "N/A" in server output means no squad / no team.
def ParseId(value : str) -> int:
    if value == None:
        return None;
    value = value.strip();
    if value == "" or value == "N/A":
        return None;
    return int(value);
