"""Static constants and mappings for mapty."""

from __future__ import annotations

STORAGE_KEY = "workouts"

MONTHS = [
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
]

MAP_ZOOM = 15
PAN_DURATION_SECONDS = 1.0

TILE_URL = "http://{s}.google.com/vt/lyrs=m&x={x}&y={y}&z={z}"
TILE_MAX_ZOOM = 20
TILE_SUBDOMAINS = ["mt0", "mt1", "mt2", "mt3"]

POPUP_MAX_WIDTH = 250
POPUP_MIN_WIDTH = 100

IP_GEOLOCATION_URL = "https://ipapi.co/json/"

KIND_ICONS = {"running": "🏃", "cycling": "🚴‍♀️"}
DURATION_ICON = "⏱"
METRIC_ICON = "⚡️"
CADENCE_ICON = "🦶🏼"
ELEVATION_ICON = "⛰"

INVALID_INPUT_MESSAGE = "Inputs have to be positive numbers!"
LOCATION_UNAVAILABLE_MESSAGE = "Couldn't get your location"
