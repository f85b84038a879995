# backend/trip_places/constants.py

"""
Global constants shared by the normalizer, resolver and HTTP transport.
"""

USER_AGENT = "trip-places/0.1 (+https://github.com/trip-places/trip-places)"

R_EARTH_KM = 6_371.0

# searchPlaces result limits
TARGETED_QUERY_LIMIT = 12
FALLBACK_QUERY_LIMIT = 20

SUBLOC_ID_PREFIX = "subloc-"
LOCATION_ID_PREFIX = "loc-"
