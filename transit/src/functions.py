from typing import List, Dict, Optional, Set
from pydantic import BaseModel
from shapely.geometry.base import BaseGeometry
from PIL import Image
from io import BytesIO

from transit.src.exceptions import APIException


def fuseExceptionResponses(exceptions: List[APIException]) -> Dict[int, dict]:
    """
    Generate OpenAPI response documentation by fusing multiple APIException instances.

    Args:
        exceptions (List[APIException]): List of instantiated exceptions.

    Returns:
        Dict[int, dict]: A dictionary of OpenAPI response specs grouped by status code.
    """
    # Imported here, schemas depends on this module for geometry checks
    from transit.src.schemas import ErrorResponse

    responses = {}

    for exception in exceptions:
        status_code = exception.status_code
        example_key = type(exception).__name__
        example_value = {
            "summary": str(exception.headers),
            "value": {"detail": exception.detail},
        }

        if status_code not in responses:
            responses[status_code] = {
                "model": ErrorResponse,
                "content": {
                    "application/json": {"examples": {example_key: example_value}}
                },
            }
        else:
            responses[status_code]["content"]["application/json"]["examples"][
                example_key
            ] = example_value

    return responses


def enumStr(enumClass) -> str:
    """
    Convert an Enum class into a comma-separated string of its members.

    Each enum member is formatted as "<NAME>: <VALUE>".

    Example:
        >>> from enum import IntEnum
        >>> class OrderIn(IntEnum):
        ...     ASC = 1
        ...     DESC = 2
        >>> enumStr(OrderIn)
        'ASC: 1, DESC: 2'
    """
    return ", ".join(f"{x.name}: {x.value}" for x in enumClass)


def isSRID4326(geometry: BaseGeometry) -> bool:
    """
    Check that every position of a shapely geometry lies within WGS84 bounds.

    Positions are read as (x, y) = (longitude, latitude).

    Example:
        >>> from shapely.geometry import Point, LineString
        >>> isSRID4326(Point(29.36, -3.3731))
        True
        >>> isSRID4326(LineString([(29.36, -3.37), (200, 50)]))
        False
    """
    if geometry.is_empty:
        return False
    minLongitude, minLatitude, maxLongitude, maxLatitude = geometry.bounds
    return (
        -180 <= minLongitude <= maxLongitude <= 180
        and -90 <= minLatitude <= maxLatitude <= 90
    )


def updateIfChanged(row, values: dict, fields: List[str]) -> None:
    """
    Write the allowed `fields` present in `values` onto an ORM row.

    A present None is written too, so a partial record can clear an optional
    column. Unchanged values are skipped and do not mark the row dirty.
    """
    for field in fields:
        if field in values and getattr(row, field) != values[field]:
            setattr(row, field, values[field])


def logoImage(imageBytes: bytes, size: int) -> bytes:
    """
    Re-encode an uploaded logo as an RGB JPEG that fits in a `size` square.

    The aspect ratio is kept, smaller images are not enlarged.

    Raises:
        PIL.UnidentifiedImageError: If the bytes are not a readable image.
    """
    image = Image.open(BytesIO(imageBytes))
    image.thumbnail((size, size))
    if image.mode != "RGB":
        image = image.convert("RGB")

    with BytesIO() as outputBuffer:
        image.save(outputBuffer, "JPEG")
        return outputBuffer.getvalue()


def mediaType(contentType: Optional[str]) -> Optional[str]:
    """
    Top-level media type of a Content-Type value, lower-cased.

    Example:
        >>> mediaType("image/PNG; q=0.9")
        'image'
        >>> mediaType(None) is None
        True
    """
    if not contentType:
        return None
    return contentType.partition("/")[0].strip().lower() or None


def providedFields(
    form: BaseModel, sent: Set[str], exclude: Set[str] = {"id"}
) -> dict:
    """
    Collect the fields of an update form that the client actually sent.

    FastAPI turns an empty optional form value into its default (None), so
    the form model alone cannot tell "sent empty" from "not sent". `sent`
    holds the submitted field names: a sent field is kept even when its
    value is None, which is how a client clears an optional value.

    Example:
        >>> providedFields(UpdateForm(id=3, name="Ligne B"), {"id", "name", "stops"})
        {'name': 'Ligne B', 'stops': None}
    """
    return {
        key: value
        for key, value in form.model_dump(exclude=exclude).items()
        if key in sent
    }
