# app/mock_data.py
# Canned fixtures for the stand-in analysis service.
# Values are static samples; nothing here is computed from orbital elements.

MOCK_SATELLITES = [
    {"name": "ISS (ZARYA)", "altitude": 418.43, "norad_id": 25544},
    {"name": "CSS (TIANHE)", "altitude": 383.12, "norad_id": 48274},
    {"name": "HUBBLE SPACE TELESCOPE", "altitude": 538.70, "norad_id": 20580},
    {"name": "STARLINK-1008", "altitude": 549.21, "norad_id": 44714},
    {"name": "STARLINK-1130", "altitude": 551.87, "norad_id": 44937},
    {"name": "COSMOS 2251 DEB", "altitude": 556.04, "norad_id": 34427},
    {"name": "IRIDIUM 33 DEB", "altitude": 772.90, "norad_id": 33442},
    {"name": "NOAA 19", "altitude": 858.60, "norad_id": 33591},
]

MOCK_SATCAT = {
    25544: {
        "official_name": "ISS (ZARYA)",
        "launch_date": "1998-11-20",
        "country": "ISS",
        "purpose": "Space Station",
        "status": "Active",
    },
    20580: {
        "official_name": "HST",
        "launch_date": "1990-04-24",
        "country": "US",
        "purpose": "Astronomy",
        "status": "Active",
    },
    44714: {
        "official_name": "STARLINK-1008",
        "launch_date": "2019-11-11",
        "country": "US",
        "purpose": "Communications",
        "status": "Active",
    },
}

MOCK_CLOSE_APPROACHES = [
    {
        "object1_name": "STARLINK-1008",
        "object2_name": "STARLINK-1130",
        "min_distance_km": 3.42,
        "time_from_now_hr": 5.5,
    },
    {
        "object1_name": "HUBBLE SPACE TELESCOPE",
        "object2_name": "COSMOS 2251 DEB",
        "min_distance_km": 8.91,
        "time_from_now_hr": 17.0,
    },
]

# Density sample around 550 km (20 km bands)
MOCK_DENSITY = {
    "analysis": [
        {"alt_start_km": 500, "alt_end_km": 520, "object_count": 14, "is_target_bin": False},
        {"alt_start_km": 520, "alt_end_km": 540, "object_count": 9, "is_target_bin": False},
        {"alt_start_km": 540, "alt_end_km": 560, "object_count": 31, "is_target_bin": True},
        {"alt_start_km": 560, "alt_end_km": 580, "object_count": 6, "is_target_bin": False},
        {"alt_start_km": 580, "alt_end_km": 600, "object_count": 11, "is_target_bin": False},
    ],
    "recommendation": {
        "safe_alt_start_km": 560,
        "safe_alt_end_km": 580,
        "object_count": 6,
    },
}

# Server-side messages
AUTH_FAILED = "Authentication failed."
PRO_FEATURE = "This is a Pro feature. Please upgrade your plan."
PRO_REQUIRED = "Forbidden: Pro plan required."
INVALID_PARAMS = "Missing or invalid parameters."
INVALID_JSON = "Invalid JSON"
INVALID_LOGIN = "Invalid email or password."
USER_EXISTS = "User with this email already exists."
DETAILS_NOT_FOUND = "Details not found for this NORAD ID."
NOT_FOUND = "Endpoint not found"
