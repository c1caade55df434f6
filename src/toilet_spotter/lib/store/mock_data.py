"""Demo access codes around Capitol Hill, Seattle.

Twelve records lie within 2 km of :data:`MOCK_CENTER`; three (Bellevue,
Ballard, Green Lake) lie well outside it.
"""

from toilet_spotter.lib.geo import Coordinate
from toilet_spotter.lib.store.base import CodeRecord

MOCK_CENTER = Coordinate(latitude=47.6169, longitude=-122.3201)

# (code, description, latitude, longitude, vote_score)
_MOCK_ROWS: list[tuple[str, str | None, float, float, int]] = [
    ("1234", "Coffee shop on Broadway, ask for the key", 47.6169, -122.3201, 5),
    ("4521#", "Bookstore restroom, back left", 47.6148, -122.3204, 3),
    ("0000", "Cal Anderson Park fieldhouse", 47.6185, -122.3212, -1),
    ("7788", "Grocery store, second floor", 47.6201, -122.3165, 8),
    ("*2580", "Pharmacy near the light rail", 47.6132, -122.3255, 2),
    ("1357", None, 47.6220, -122.3120, 0),
    ("9900", "Community college library lobby", 47.6105, -122.3180, 4),
    ("2468#", "Burger place on Pike", 47.6250, -122.3260, 1),
    ("5555", "Hotel lobby, left of the elevators", 47.6080, -122.3290, 6),
    ("1212", "Volunteer Park conservatory", 47.6290, -122.3150, -2),
    ("3030", "Hospital cafeteria", 47.6060, -122.3100, 0),
    ("8080", "Diner off Denny Way", 47.6230, -122.3400, 3),
    ("4040", "Bellevue transit center cafe", 47.6101, -122.2015, 7),
    ("6060", "Ballard brewery taproom", 47.6687, -122.3847, 2),
    ("7070", "Green Lake boathouse", 47.6805, -122.3284, 1),
]


def mock_code_records() -> list[CodeRecord]:
    """Build fresh copies of the fifteen demo records."""
    return [
        CodeRecord(
            code=code,
            description=description,
            latitude=latitude,
            longitude=longitude,
            vote_score=vote_score,
            device_id=f"device_seed{index:02d}",
        )
        for index, (code, description, latitude, longitude, vote_score) in enumerate(_MOCK_ROWS, start=1)
    ]
