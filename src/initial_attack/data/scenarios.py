"""Built-in initial-attack scenarios.

Fictional situations for drills and demos. Each bundles an incident, the
resources on hand and the assets to protect; some carry a default what-if
wind shift.

Also the reference weather snapshot used when no live observation is
available: a dry, moderately windy afternoon with wind from the west-southwest.
"""

from initial_attack.models import Asset, Incident, Perimeter, Resources, Scenario, Weather, WindShift

REFERENCE_WEATHER = Weather(
    wind_speed_mps=8.2,
    wind_gust_mps=12.7,
    wind_dir_deg=245,
    temperature_c=29,
    humidity_pct=18,
)
"""Reference conditions for offline assessment."""

SCENARIOS: tuple[Scenario, ...] = (
    Scenario(
        id="riverside-creek",
        name="Riverside Creek Fire",
        description="Foothill start upwind of a creekside community; wind shift expected mid-afternoon.",
        incident=Incident(
            id="inc_riverside_creek",
            name="Riverside Creek Fire",
            lat=37.42,
            lon=-122.17,
            start_time_iso="2026-02-13T18:30:00Z",
            perimeter=Perimeter(radius_meters=120),
            fuel_proxy="mixed",
            notes="Reported by lookout; oak woodland with grass understory",
        ),
        resources=Resources(
            engines_available=3,
            dozers_available=1,
            air_support_available=True,
            eta_minutes_engine=18,
            eta_minutes_air=40,
        ),
        assets=(
            Asset(
                id="asset_riverside_creek",
                type="community",
                name="Riverside Creek Community",
                lat=37.428,
                lon=-122.155,
                priority="high",
            ),
            Asset(
                id="asset_ridge_substation",
                type="infrastructure",
                name="Ridge Road Substation",
                lat=37.445,
                lon=-122.12,
                priority="medium",
            ),
        ),
        default_wind_shift=WindShift(enabled=True, at_minutes=90, new_dir_deg=290),
    ),
    Scenario(
        id="valley-grass",
        name="Valley Grass Fire",
        description="Roadside grass start in the Central Valley with a school downwind.",
        incident=Incident(
            id="inc_valley_grass",
            name="Valley Grass Fire",
            lat=36.81,
            lon=-119.74,
            start_time_iso="2026-07-02T21:10:00Z",
            perimeter=Perimeter(radius_meters=200),
            fuel_proxy="grass",
            notes="Roadside ignition along county road",
        ),
        resources=Resources(
            engines_available=2,
            dozers_available=0,
            air_support_available=False,
            eta_minutes_engine=22,
            eta_minutes_air=55,
        ),
        assets=(
            Asset(
                id="asset_valley_school",
                type="school",
                name="Orchard Lane Elementary",
                lat=36.83,
                lon=-119.70,
                priority="high",
            ),
        ),
    ),
    Scenario(
        id="coastal-chaparral",
        name="Coastal Chaparral Fire",
        description="Chaparral start in a canyon above a hospital; full air support available.",
        incident=Incident(
            id="inc_coastal_chaparral",
            name="Coastal Chaparral Fire",
            lat=34.28,
            lon=-119.21,
            start_time_iso="2026-10-08T16:45:00Z",
            perimeter=Perimeter(radius_meters=350),
            fuel_proxy="chaparral",
            notes="Canyon start, steep terrain",
        ),
        resources=Resources(
            engines_available=5,
            dozers_available=2,
            air_support_available=True,
            eta_minutes_engine=15,
            eta_minutes_air=25,
        ),
        assets=(
            Asset(
                id="asset_coastal_hospital",
                type="hospital",
                name="Harbor View Medical Center",
                lat=34.27,
                lon=-119.18,
                priority="high",
            ),
            Asset(
                id="asset_canyon_homes",
                type="community",
                name="Canyon Heights",
                lat=34.30,
                lon=-119.17,
                priority="medium",
            ),
        ),
        default_wind_shift=WindShift(enabled=False, at_minutes=60, new_dir_deg=45),
    ),
)
