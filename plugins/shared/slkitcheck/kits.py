# Kits a squad leader is allowed to hold, per faction: SL kits, crewman and pilot kits.
VALID_KITS = frozenset([
    # Australian Defence Force
    "AUS_SL_01",
    "AUS_SL_02",
    "AUS_SL_03",
    "AUS_SLCrewman_01",
    "AUS_Crewman_01",
    "AUS_SLPilot_01",
    "AUS_Pilot_01",

    # Canadian Armed Forces
    "CAF_SL_01",
    "CAF_SL_02",
    "CAF_SL_03",
    "CAF_SLCrewman_01",
    "CAF_Crewman_01",
    "CAF_SLPilot_01",
    "CAF_Pilot_01",

    # British Armed Forces
    "GB_SL_01",
    "GB_SL_02",
    "GB_SL_03",
    "GB_SLCrewman_01",
    "GB_Crewman_01",
    "GB_SLPilot_01",
    "GB_Pilot_01",

    # Insurgents, no aircraft
    "INS_SL_01",
    "INS_SL_02",
    "INS_SL_03",
    "INS_SLCrewman_01",
    "INS_Crewman_01",

    # Middle Eastern Alliance
    "MEA_SL_01",
    "MEA_SL_02",
    "MEA_SL_03",
    "MEA_SLCrewman_01",
    "MEA_Crewman_01",
    "MEA_SLPilot_01",
    "MEA_Pilot_01",

    # Irregular Militia, no aircraft
    "MIL_SL_01",
    "MIL_SL_02",
    "MIL_SL_03",
    "MIL_SLCrewman_01",
    "MIL_Crewman_01",

    # Russian Ground Forces
    "RUS_SL_01",
    "RUS_SL_02",
    "RUS_SL_03",
    "RUS_SLCrewman_01",
    "RUS_Crewman_01",
    "RUS_SLPilot_01",
    "RUS_Pilot_01",

    # US Army
    "USA_SL_01",
    "USA_SL_02",
    "USA_SL_03",
    "USA_SLCrewman_01",
    "USA_Crewman_01",
    "USA_SLPilot_01",
    "USA_Pilot_01",

    # US Marine Corps
    "USMC_SL_01",
    "USMC_SL_02",
    "USMC_SL_03",
    "USMC_SLCrewman_01",
    "USMC_Crewman_01",
    "USMC_SLPilot_01",
    "USMC_Pilot_01",
])

def BuildKitSet(replacement = None, extra = None) -> frozenset:
    kits = VALID_KITS
    if replacement != None:
        kits = frozenset(str(k) for k in replacement)
    if extra != None:
        kits = kits | frozenset(str(k) for k in extra)
    return kits
