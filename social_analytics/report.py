"""JSON export of platform aggregates.

The downloadable report is ``{"generated_at", "network", "data"}`` where
``data`` is the aggregate serialized field for field, so loading a report
gives back an equal aggregate. The same (de)serialization is used for saved
analyses and API request bodies.
"""

import json
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any

from pydantic import TypeAdapter, ValidationError

from social_analytics.aggregates import DATA_TYPES, Platform, PlatformData

_ADAPTERS: dict[Platform, TypeAdapter] = {
    platform: TypeAdapter(data_type) for platform, data_type in DATA_TYPES.items()
}


class ReportError(ValueError):
    """Raised when a report or payload does not describe a valid aggregate."""


@dataclass
class Report:
    generated_at: str
    network: Platform
    data: PlatformData


def data_to_dict(platform: "Platform | str", data: PlatformData) -> dict[str, Any]:
    return _ADAPTERS[Platform.parse(platform)].dump_python(data, mode="json")


def data_from_dict(platform: "Platform | str", payload: Any) -> PlatformData:
    """Validate a decoded JSON object into the platform's aggregate type.

    Raises:
        ReportError: If the object does not match the aggregate's shape.
    """
    try:
        return _ADAPTERS[Platform.parse(platform)].validate_python(payload)
    except ValidationError as exc:
        raise ReportError(f"Invalid {platform} data: {exc.error_count()} validation error(s)") from exc


def data_to_json(platform: "Platform | str", data: PlatformData) -> str:
    return json.dumps(data_to_dict(platform, data), ensure_ascii=False)


def data_from_json(platform: "Platform | str", text: str | bytes) -> PlatformData:
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ReportError(f"Payload is not valid JSON: {exc}") from exc
    return data_from_dict(platform, payload)


def build_report(
    network: "Platform | str",
    data: PlatformData,
    generated_at: datetime | None = None,
) -> dict[str, Any]:
    platform = Platform.parse(network)
    generated_at = generated_at or datetime.now(timezone.utc)
    return {
        "generated_at": generated_at.isoformat(),
        "network": platform.value,
        "data": data_to_dict(platform, data),
    }


def dumps_report(
    network: "Platform | str",
    data: PlatformData,
    generated_at: datetime | None = None,
) -> str:
    return json.dumps(build_report(network, data, generated_at), ensure_ascii=False, indent=2)


def load_report(source: str | bytes | dict) -> Report:
    """Parse a report produced by ``dumps_report``.

    Raises:
        ReportError: If the document is not a valid report.
    """
    if isinstance(source, dict):
        document = source
    else:
        try:
            document = json.loads(source)
        except json.JSONDecodeError as exc:
            raise ReportError(f"Report is not valid JSON: {exc}") from exc

    if not isinstance(document, dict) or not {"generated_at", "network", "data"} <= document.keys():
        raise ReportError("Report must contain 'generated_at', 'network' and 'data'")

    try:
        platform = Platform.parse(document["network"])
    except ValueError as exc:
        raise ReportError(str(exc)) from exc

    return Report(
        generated_at=str(document["generated_at"]),
        network=platform,
        data=data_from_dict(platform, document["data"]),
    )


def report_filename(network: "Platform | str", day: date | None = None) -> str:
    """Download name, e.g. ``instagram-analytics-2024-01-31.json``."""
    day = day or datetime.now(timezone.utc).date()
    return f"{Platform.parse(network).value}-analytics-{day.isoformat()}.json"
