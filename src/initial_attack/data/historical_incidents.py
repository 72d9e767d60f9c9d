"""Archived initial-attack outcomes used for analog matching.

Illustrative composites of California initial-attack incidents: fuel type,
weather at ignition, outcome and the resources committed in the first hours.
Used for the "similar incidents" context only, never for recommendations.

Replace with an export from the agency incident archive when one is wired in.
"""

from initial_attack.models import HistoricalIncident

HISTORICAL_INCIDENTS: tuple[HistoricalIncident, ...] = (
    HistoricalIncident(
        id="hist_001",
        name="Mesa Ridge Fire",
        date="2020-08-18",
        location="Santa Clara County, California",
        fuel="grass",
        wind_speed_mps=9.0,
        humidity_pct=16,
        temperature_c=33,
        outcome="escaped",
        containment_time_hours=96,
        final_acres=4200,
        engines=4,
        dozers=1,
        air_support=True,
        key_lesson="Grass fire outran hand line once afternoon wind exceeded 8 m/s.",
    ),
    HistoricalIncident(
        id="hist_002",
        name="Cedar Flat Fire",
        date="2019-10-02",
        location="Napa County, California",
        fuel="mixed",
        wind_speed_mps=7.5,
        humidity_pct=21,
        temperature_c=29,
        outcome="contained",
        containment_time_hours=6,
        final_acres=85,
        engines=5,
        dozers=2,
        air_support=True,
        key_lesson="Early tanker drop on the right flank held the fire to the first ridge.",
    ),
    HistoricalIncident(
        id="hist_003",
        name="Oak Hollow Fire",
        date="2021-07-11",
        location="Sonoma County, California",
        fuel="mixed",
        wind_speed_mps=4.0,
        humidity_pct=32,
        temperature_c=27,
        outcome="contained",
        containment_time_hours=4,
        final_acres=22,
        engines=3,
        dozers=1,
        air_support=False,
        key_lesson="Light wind allowed a direct attack from the heel with engines alone.",
    ),
    HistoricalIncident(
        id="hist_004",
        name="Canyon View Fire",
        date="2018-11-09",
        location="Ventura County, California",
        fuel="chaparral",
        wind_speed_mps=15.0,
        humidity_pct=8,
        temperature_c=24,
        outcome="escaped",
        containment_time_hours=240,
        final_acres=38000,
        engines=6,
        dozers=2,
        air_support=False,
        key_lesson="Offshore wind grounded aircraft; evacuation triggers were the only effective tool.",
    ),
    HistoricalIncident(
        id="hist_005",
        name="Dry Creek Fire",
        date="2022-06-27",
        location="Fresno County, California",
        fuel="grass",
        wind_speed_mps=6.0,
        humidity_pct=19,
        temperature_c=36,
        outcome="contained",
        containment_time_hours=3,
        final_acres=140,
        engines=4,
        dozers=1,
        air_support=True,
        key_lesson="Dozer line tied into a road held the head before the wind peak.",
    ),
    HistoricalIncident(
        id="hist_006",
        name="Pine Gulch Fire",
        date="2020-09-05",
        location="Madera County, California",
        fuel="brush",
        wind_speed_mps=8.5,
        humidity_pct=14,
        temperature_c=35,
        outcome="escaped",
        containment_time_hours=120,
        final_acres=9800,
        engines=3,
        dozers=0,
        air_support=True,
        key_lesson="A 40-degree wind shift at hour two turned the flank into a new head.",
    ),
    HistoricalIncident(
        id="hist_007",
        name="Laurel Grade Fire",
        date="2017-08-30",
        location="San Luis Obispo County, California",
        fuel="brush",
        wind_speed_mps=5.5,
        humidity_pct=24,
        temperature_c=31,
        outcome="partial",
        containment_time_hours=30,
        final_acres=1100,
        engines=4,
        dozers=1,
        air_support=True,
        key_lesson="Spotting across the grade forced a second anchor point.",
    ),
    HistoricalIncident(
        id="hist_008",
        name="Bluebird Fire",
        date="2023-07-15",
        location="Butte County, California",
        fuel="mixed",
        wind_speed_mps=10.0,
        humidity_pct=17,
        temperature_c=34,
        outcome="partial",
        containment_time_hours=20,
        final_acres=640,
        engines=5,
        dozers=1,
        air_support=True,
        key_lesson="Structure protection pulled engines off the flank during the first hour.",
    ),
    HistoricalIncident(
        id="hist_009",
        name="Sage Hill Fire",
        date="2021-10-11",
        location="San Diego County, California",
        fuel="chaparral",
        wind_speed_mps=11.0,
        humidity_pct=12,
        temperature_c=28,
        outcome="escaped",
        containment_time_hours=72,
        final_acres=5100,
        engines=5,
        dozers=1,
        air_support=True,
        key_lesson="Aircraft arrived after the fire crested the ridge; early order would have mattered.",
    ),
    HistoricalIncident(
        id="hist_010",
        name="Juniper Point Fire",
        date="2019-08-03",
        location="Washoe County, Nevada",
        fuel="grass",
        wind_speed_mps=8.0,
        humidity_pct=15,
        temperature_c=32,
        outcome="contained",
        containment_time_hours=8,
        final_acres=300,
        engines=6,
        dozers=2,
        air_support=True,
        key_lesson="Parallel dozer lines on both flanks pinched the head at a road.",
    ),
)
