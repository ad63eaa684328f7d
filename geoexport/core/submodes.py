"""Static lookup of the transport submode that applies to each stop type."""
from typing import Dict, FrozenSet, Optional

from geoexport.core.models import StopPlace, StopType

# Stop type -> the transport mode whose submode describes it
STOP_TYPE_MODES: Dict[StopType, str] = {
    StopType.AIRPORT: "air",
    StopType.HARBOUR_PORT: "water",
    StopType.FERRY_STOP: "water",
    StopType.FERRY_PORT: "water",
    StopType.BUS_STATION: "bus",
    StopType.COACH_STATION: "bus",
    StopType.ONSTREET_BUS: "bus",
    StopType.RAIL_STATION: "rail",
    StopType.METRO_STATION: "metro",
    StopType.ONSTREET_TRAM: "tram",
    StopType.TRAM_STATION: "tram",
}

_COMMON = frozenset({"unknown", "undefined"})

MODE_SUBMODES: Dict[str, FrozenSet[str]] = {
    "air": _COMMON | {
        "internationalFlight", "domesticFlight", "intercontinentalFlight",
        "domesticScheduledFlight", "shuttleFlight", "intercontinentalCharterFlight",
        "internationalCharterFlight", "roundTripCharterFlight", "sightseeingFlight",
        "helicopterService", "domesticCharterFlight", "SchengenAreaFlight",
        "airshipService", "shortHaulInternationalFlight", "canalBarge",
    },
    "water": _COMMON | {
        "internationalCarFerry", "nationalCarFerry", "regionalCarFerry", "localCarFerry",
        "internationalPassengerFerry", "nationalPassengerFerry", "regionalPassengerFerry",
        "localPassengerFerry", "postBoat", "trainFerry", "roadFerryLink", "airportBoatLink",
        "highSpeedVehicleService", "highSpeedPassengerService", "sightseeingService",
        "schoolBoat", "cableFerry", "riverBus", "scheduledFerry", "shuttleFerryService",
    },
    "bus": _COMMON | {
        "localBus", "regionalBus", "expressBus", "nightBus", "postBus", "specialNeedsBus",
        "mobilityBus", "mobilityBusForRegisteredDisabled", "sightseeingBus", "shuttleBus",
        "highFrequencyBus", "dedicatedLaneBus", "schoolBus", "schoolAndPublicServiceBus",
        "railReplacementBus", "demandAndResponseBus", "airportLinkBus",
    },
    "rail": _COMMON | {
        "local", "highSpeedRail", "suburbanRailway", "regionalRail", "interregionalRail",
        "longDistance", "international", "sleeperRailService", "nightRail",
        "carTransportRailService", "touristRailway", "airportLinkRail", "railShuttle",
        "replacementRailService", "specialTrain", "crossCountryRail", "rackAndPinionRailway",
    },
    "metro": _COMMON | {"metro", "tube", "urbanRailway"},
    "tram": _COMMON | {
        "cityTram", "localTram", "regionalTram", "sightseeingTram", "shuttleTram", "trainTram",
    },
}


def mode_for_stop_type(stop_type: Optional[StopType]) -> Optional[str]:
    return STOP_TYPE_MODES.get(stop_type) if stop_type is not None else None


def is_known_submode(stop_type: StopType, submode: str) -> bool:
    """True when ``submode`` belongs to the submode set of the stop type's mode."""
    mode = mode_for_stop_type(stop_type)
    return mode is not None and submode in MODE_SUBMODES[mode]


def submode_of(stop_place: StopPlace) -> Optional[str]:
    """The submode of the mode matching the stop place's type, if any."""
    mode = mode_for_stop_type(stop_place.stop_place_type)
    if mode is None:
        return None
    return stop_place.submodes.get(mode)
