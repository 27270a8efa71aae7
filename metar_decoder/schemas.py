from pydantic import BaseModel, field_validator
from datetime import date, datetime
from typing import Any, Optional, Union

from metar_decoder.models import ParsedReport


class DecodeRequest(BaseModel):
    raw: str
    reference_date: Optional[date] = None   # supplies year/month for the time group

    @field_validator("raw")
    @classmethod
    def not_blank(cls, v):
        assert v.strip(), "raw report must not be empty"
        return v


class WindSchema(BaseModel):
    direction: int
    speed: int
    gusting: Optional[int] = None
    variation: Optional[tuple[int, int]] = None


class CloudLayerSchema(BaseModel):
    coverage: str
    height: int
    type: Optional[str] = None


class ParsedReportSchema(BaseModel):
    icao_code: str
    time: Optional[datetime] = None
    wind: Optional[WindSchema] = None
    visibility: Optional[int] = None
    temperature: Optional[int] = None
    dewpoint: Optional[int] = None
    cloud: Union[list[CloudLayerSchema], str, None] = None
    cloud_ceiling: Optional[int] = None
    altimeter: Optional[int] = None
    cavok: bool = False

    @classmethod
    def from_record(cls, record: ParsedReport) -> "ParsedReportSchema":
        data = record.as_dict()
        cloud = data["cloud"]
        if isinstance(cloud, list):
            data["cloud"] = [
                CloudLayerSchema(
                    coverage=layer["coverage"].value,
                    height=layer["height"],
                    type=layer["type"].value if layer["type"] else None,
                )
                for layer in cloud
            ]
        elif cloud is not None:
            data["cloud"] = cloud.value
        return cls(**data)


class FieldResponse(BaseModel):
    icao_code: str
    field: str
    value: Any = None
