import requests
from requests import Response

from transit.src.constants import (
    OPENOBSERVE_HOST,
    OPENOBSERVE_ORG,
    OPENOBSERVE_PASSWORD,
    OPENOBSERVE_PORT,
    OPENOBSERVE_PROTOCOL,
    OPENOBSERVE_STREAM,
    OPENOBSERVE_USERNAME,
    OPENOBSERVE_TIMEOUT,
)

# Audit stream ingestion endpoint
openobserve_host = f"{OPENOBSERVE_PROTOCOL}://{OPENOBSERVE_HOST}:{OPENOBSERVE_PORT}"
openobserve_url = f"{openobserve_host}/api/{OPENOBSERVE_ORG}/{OPENOBSERVE_STREAM}/_json"
credentials = (OPENOBSERVE_USERNAME, OPENOBSERVE_PASSWORD)


def logEvent(eventData: dict) -> Response:
    """
    Send one audit event to the transit stream in OpenObserve.

    Args:
        eventData (dict): The event, serialized as a one element JSON array.
            Example:
                {
                    "_method": "POST",
                    "_path": "/admin/bus_line",
                    "_account_id": 1,
                    "id": 7,
                    "name": "Ligne A"
                }

    Returns:
        requests.Response: The HTTP response returned by the ingestion API.
    """
    return requests.post(
        openobserve_url,
        auth=credentials,
        json=[eventData],
        timeout=OPENOBSERVE_TIMEOUT,
    )
